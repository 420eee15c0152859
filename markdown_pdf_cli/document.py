"""
Markdown source documents and their front matter.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import frontmatter

from .errors import UserInputError

MARKDOWN_EXTENSIONS = ('.md', '.markdown')
SUPPORTED_TYPES = ('html', 'pdf', 'png', 'jpeg')


@dataclass
class Document:
    """One Markdown file: its location, raw text and split-off front matter."""

    path: str
    text: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_text(cls, path: str, text: str) -> "Document":
        """Build a document from already-loaded text."""
        try:
            metadata, content = frontmatter.parse(text)
        except Exception as e:
            raise UserInputError(f"Invalid front matter in {path}: {e}") from e
        return cls(path=os.path.abspath(path), text=text, content=content, metadata=dict(metadata or {}))

    @classmethod
    def load(cls, path: str) -> "Document":
        """Read a Markdown file from disk."""
        if not os.path.isfile(path):
            raise UserInputError(f"Input file not found: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise UserInputError(f"Unable to read input file {path}: {e}") from e
        return cls.from_text(path, text)

    @property
    def directory(self) -> str:
        return os.path.dirname(self.path)

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def stem(self) -> str:
        return os.path.splitext(self.name)[0]

    def option(self, key: str, configured: Any = None, default: Any = None) -> Any:
        """Front-matter value for ``key``, else the configured value, else ``default``.

        Empty strings and None fall through to the next level; an explicit
        ``false`` in front matter always wins.
        """
        value = self.metadata.get(key)
        if value is False:
            return False
        if value not in (None, ''):
            return value
        if configured is False:
            return False
        if configured not in (None, ''):
            return configured
        return default

    def flag(self, key: str, configured: Optional[bool]) -> bool:
        """Boolean option with front matter taking precedence over config."""
        return bool(self.option(key, configured, False))
