"""
Resolution of stylesheet and image references.

Stylesheets are linked from the assembled page and may be addressed
relative to the document or to the working directory. Images in non-HTML
output are always resolved against the document directory, because the
page is loaded from a temporary file that may live elsewhere.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import os
import re
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit, urlunsplit

_QUOTES_RE = re.compile(r'["\']')
_FILE_PREFIX_RE = re.compile(r'^file://')


def expand_home(path: str) -> str:
    """Expand a leading ``~`` to the user's home directory."""
    if not path.startswith('~'):
        return path
    return os.path.join(str(Path.home()), path[1:].lstrip('/\\'))


def _normalize_url(href: str) -> str:
    parts = urlsplit(href)
    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        parts.path or '/',
        parts.query,
        parts.fragment,
    ))


def is_remote_url(href: str) -> bool:
    """True for an absolute http(s) URL."""
    try:
        parts = urlsplit(href)
    except ValueError:
        return False
    return parts.scheme.lower() in ('http', 'https') and bool(parts.netloc)


def resolve_style_href(href: str, document_path: str, relative_to_file: bool = True,
                       cwd: Optional[str] = None) -> str:
    """Turn a configured stylesheet reference into a URL the browser can load.

    Args:
        href: Entry from ``markdown.styles`` or ``markdownPdf.styles``.
        document_path: Path of the Markdown file being converted.
        relative_to_file: Resolve relative paths against the document
            directory (``stylesRelativePathFile``) instead of the working directory.
        cwd: Working directory override.

    Returns:
        The normalized URL for remote references, a ``file://`` URI otherwise.
    """
    if not href:
        return href

    if is_remote_url(href):
        return _normalize_url(href)

    if href.startswith('~'):
        return Path(expand_home(href)).as_uri()

    if os.path.isabs(href):
        return Path(os.path.abspath(href)).as_uri()

    if relative_to_file:
        base_dir = os.path.dirname(os.path.abspath(document_path))
    else:
        base_dir = cwd or os.getcwd()
    return Path(os.path.abspath(os.path.join(base_dir, href))).as_uri()


def clean_image_src(src: str) -> str:
    """Image reference for HTML output: decoded and unquoted, left relative."""
    return _QUOTES_RE.sub('', unquote(src))


def resolve_image_src(src: str, document_path: str) -> str:
    """Image reference for PDF/PNG/JPEG output, as an absolute ``file:`` URI.

    Remote and other non-file references are returned untouched. ``#`` is
    percent-encoded so the browser does not read it as a fragment marker.
    """
    href = clean_image_src(src).replace('\\', '/').replace('#', '%23')

    try:
        scheme = urlsplit(href).scheme
    except ValueError:
        return src

    if scheme == 'file':
        if not href.startswith('file:///'):
            return _FILE_PREFIX_RE.sub('file:///', href)
        return href
    if scheme:
        return src

    doc_dir = os.path.dirname(os.path.abspath(document_path))
    resolved = os.path.abspath(os.path.join(doc_dir, href))
    resolved = resolved.replace('\\', '/').replace('#', '%23')

    if resolved.startswith('//'):
        return f"file:{resolved}"
    if resolved.startswith('/'):
        return f"file://{resolved}"
    return f"file:///{resolved}"
