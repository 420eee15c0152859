"""
Heading anchor ids.

The punctuation denylist is kept literal so generated anchors stay
compatible with links written against earlier output.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import re
from typing import Dict, Optional
from urllib.parse import quote

PUNCTUATION = (
    "][!'#$%&()*+,./:;<=?>@\\^_{|}~`"
    "。，、；：？！…—·ˉ¨‘’“”々～‖∶＂＇｀｜〃〔〕〈〉《》「」『』．〖〗【】（）［］｛｝"
)

_WHITESPACE_RE = re.compile(r'\s+')
_PUNCTUATION_RE = re.compile('[' + re.escape(PUNCTUATION) + ']')
_LEADING_HYPHENS_RE = re.compile(r'^-+')
_TRAILING_HYPHENS_RE = re.compile(r'-+$')

# Characters left intact by encodeURI
_URI_SAFE = ";,/?:@&=+$-_.!~*'()#"


def slugify(text: str) -> str:
    """Convert heading text to a URL-safe anchor (may be empty)."""
    slug = str(text).strip().lower()
    slug = _WHITESPACE_RE.sub('-', slug)
    slug = _PUNCTUATION_RE.sub('', slug)
    slug = _LEADING_HYPHENS_RE.sub('', slug)
    slug = _TRAILING_HYPHENS_RE.sub('', slug)
    return quote(slug, safe=_URI_SAFE)


class SlugRegistry:
    """Hands out collision-free heading ids within one rendered document."""

    def __init__(self):
        self._seen: Dict[str, int] = {}

    def allocate(self, text: str) -> Optional[str]:
        """Return a unique id for ``text``, or None if it slugifies to nothing.

        The first occurrence keeps the bare slug; repeats get ``-1``, ``-2``, ...
        """
        text = (text or '').strip()
        if not text:
            return None
        slug = slugify(text)
        if not slug:
            return None
        if slug in self._seen:
            self._seen[slug] += 1
            return f"{slug}-{self._seen[slug]}"
        self._seen[slug] = 0
        return slug
