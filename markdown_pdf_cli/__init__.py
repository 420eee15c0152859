"""
markdown-pdf-cli - Convert Markdown to HTML, PDF, PNG or JPEG

Renders Markdown with markdown-it-py and prints the result with headless
Chromium through Playwright.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

__version__ = "1.0.0"

from .config import EffectiveConfig, load_config, merge_config
from .converter import MarkdownPdfConverter, resolve_types
from .document import Document
from .errors import ConfigurationDefect, EnvironmentFailure, MarkdownPdfError, UserInputError

__all__ = [
    "EffectiveConfig",
    "load_config",
    "merge_config",
    "MarkdownPdfConverter",
    "resolve_types",
    "Document",
    "MarkdownPdfError",
    "UserInputError",
    "ConfigurationDefect",
    "EnvironmentFailure",
]
