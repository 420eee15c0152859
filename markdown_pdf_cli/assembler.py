"""
Wraps a rendered fragment into a complete HTML page.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import html
import os
from pathlib import Path
from typing import Iterable, Optional

from jinja2 import Template
from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from .assets import resolve_style_href
from .config import EffectiveConfig
from .console import ConsoleLogger
from .errors import ConfigurationDefect, UserInputError

PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATE_FILE = PACKAGE_DIR / "templates" / "template.html"
STYLES_DIR = PACKAGE_DIR / "styles"
HIGHLIGHT_SCOPE = ".hljs"


def make_css(filename) -> str:
    """Inline a stylesheet file; a missing file contributes nothing."""
    if not filename or not os.path.isfile(filename):
        return ""
    with open(filename, 'r', encoding='utf-8') as f:
        return make_style_block(f.read())


def make_style_block(css: str) -> str:
    return f"\n<style>\n{css}\n</style>\n"


def resolve_highlight_css(style_name: str) -> str:
    """CSS for a highlight theme given as a file path or a Pygments style name.

    ``monokai`` and ``monokai.css`` both name the bundled Pygments style.
    """
    candidate = os.path.expanduser(style_name)
    if os.path.isfile(candidate):
        with open(candidate, 'r', encoding='utf-8') as f:
            return f.read()

    name = style_name[:-len('.css')] if style_name.endswith('.css') else style_name
    try:
        return HtmlFormatter(style=name).get_style_defs(HIGHLIGHT_SCOPE)
    except ClassNotFound as e:
        raise UserInputError(f"Unable to resolve highlight style: {style_name}") from e


class DocumentAssembler:
    """Builds the self-contained page: template, styles, body and diagram script."""

    def __init__(self, config: EffectiveConfig, logger: Optional[ConsoleLogger] = None,
                 template_path: Path = TEMPLATE_FILE):
        self.config = config
        self.settings = config.markdown_pdf
        self.logger = logger or ConsoleLogger(debug=self.settings.debug)
        self.template_path = template_path
        self._template = None

    @property
    def template(self) -> Template:
        if self._template is None:
            if not os.path.isfile(self.template_path):
                raise ConfigurationDefect(f"Template not found: {self.template_path}")
            with open(self.template_path, 'r', encoding='utf-8') as f:
                self._template = Template(f.read())
        return self._template

    def _style_links(self, hrefs: Iterable[str], document_path: str) -> str:
        links = []
        for href in hrefs:
            resolved = resolve_style_href(href, document_path, self.settings.styles_relative_path_file)
            if resolved:
                links.append(f'<link rel="stylesheet" href="{html.escape(resolved)}" type="text/css">')
        return "".join(links)

    def build_styles(self, document_path: str) -> str:
        """Style block in cascade order: base, markdown links, highlight theme, PDF base, custom links."""
        settings = self.settings
        style = ""

        if settings.include_default_styles:
            style += make_css(STYLES_DIR / "markdown.css")
            style += self._style_links(self.config.markdown.styles, document_path)

        if settings.highlight:
            if settings.highlight_style:
                style += make_style_block(resolve_highlight_css(settings.highlight_style))
            else:
                style += make_css(STYLES_DIR / "tomorrow.css")

        if settings.include_default_styles:
            style += make_css(STYLES_DIR / "markdown-pdf.css")

        style += self._style_links(settings.styles, document_path)
        return style

    def assemble(self, fragment: str, document_path: str) -> str:
        """Return the complete HTML page for ``fragment``."""
        mermaid_server = self.settings.mermaid_server
        page = self.template.render(
            title=os.path.basename(document_path),
            style=self.build_styles(document_path),
            content=fragment,
            mermaid=f'<script src="{html.escape(mermaid_server)}"></script>' if mermaid_server else "",
        )
        self.logger.debug(f"Assembled {len(page)} characters of HTML for {os.path.basename(document_path)}")
        return page
