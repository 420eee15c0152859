"""
Markdown to HTML fragment rendering.

A fresh markdown-it parser is configured for every (document, target)
render. Render-rule overrides are collected in a :class:`RenderRules`
object and installed on that parser; each override receives the parser's
default rule so it can delegate after adjusting the token.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import os
import re
from dataclasses import dataclass
from typing import Callable, Optional

from bs4 import BeautifulSoup
from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml, unescapeAll
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .assets import clean_image_src, resolve_image_src
from .config import EffectiveConfig, IncludeSettings
from .console import ConsoleLogger
from .document import Document
from .plugins import (
    DEFAULT_PLANTUML_SERVER,
    emoji_image_loader,
    emoji_plugin,
    find_emoji_font,
    generic_container_plugin,
    include_plugin,
    load_emoji_definitions,
    plantuml_plugin,
)
from .slug import SlugRegistry

MERMAID_RE = re.compile(r'\bmermaid\b', re.IGNORECASE)

# (tokens, idx, options, env, default) -> html
RuleOverride = Callable[..., str]


@dataclass
class RenderRules:
    """Overrides for the markdown-it render rules this converter customizes."""

    fence: Optional[RuleOverride] = None
    image: Optional[RuleOverride] = None
    html_block: Optional[RuleOverride] = None
    heading_open: Optional[RuleOverride] = None

    RULE_NAMES = ("fence", "image", "html_block", "heading_open")

    def install(self, md: MarkdownIt) -> None:
        """Register every override on ``md``, keeping the previous rule as fallback."""
        for name in self.RULE_NAMES:
            override = getattr(self, name)
            if override is None:
                continue
            default = md.renderer.rules.get(name) or md.renderer.renderToken
            md.add_render_rule(name, _bind(override, default))


def _bind(override: RuleOverride, default: Callable[..., str]):
    def rule(self, tokens, idx, options, env):
        return override(tokens, idx, options, env, default)
    return rule


def _as_list(value) -> tuple:
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(',') if part.strip())
    return tuple(value or ())


class MarkdownRenderer:
    """Renders a :class:`Document` into an HTML fragment for one output type."""

    def __init__(self, config: EffectiveConfig, logger: Optional[ConsoleLogger] = None):
        self.config = config
        self.settings = config.markdown_pdf
        self.logger = logger or ConsoleLogger(debug=self.settings.debug)
        self._formatter = HtmlFormatter(nowrap=True)
        self._emoji_definitions = None

    def highlight_code(self, code: str, lang: str) -> str:
        """Highlighted (or escaped) code in the ``pre.hljs`` wrapper."""
        body = None
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripnl=False)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                try:
                    body = highlight(code, lexer, self._formatter)
                except Exception as e:
                    self.logger.warning(f"Highlighting failed for language '{lang}': {e}")
        if body is None:
            body = escapeHtml(code)
        return f'<pre class="hljs"><code><div>{body}</div></code></pre>\n'

    def _build_rules(self, document: Document, target: str) -> RenderRules:
        slugs = SlugRegistry()

        def fence(tokens, idx, options, env, default):
            token = tokens[idx]
            info = unescapeAll(token.info).strip() if token.info else ""
            lang = info.split()[0] if info else ""
            if lang and MERMAID_RE.search(lang):
                return f'<div class="mermaid">{escapeHtml(token.content)}</div>\n'
            return self.highlight_code(token.content, lang)

        def image(tokens, idx, options, env, default):
            token = tokens[idx]
            src = token.attrGet("src")
            if src:
                if target == "html":
                    token.attrSet("src", clean_image_src(str(src)))
                else:
                    token.attrSet("src", resolve_image_src(str(src), document.path))
            return default(tokens, idx, options, env)

        def html_block(tokens, idx, options, env, default):
            soup = BeautifulSoup(tokens[idx].content, "html.parser")
            changed = False
            for img in soup.find_all("img"):
                src = img.get("src")
                if src:
                    img["src"] = resolve_image_src(src, document.path)
                    changed = True
            if changed:
                return str(soup)
            return default(tokens, idx, options, env)

        def heading_open(tokens, idx, options, env, default):
            token = tokens[idx]
            if not token.attrGet("id"):
                text = ""
                if idx + 1 < len(tokens) and tokens[idx + 1].type == "inline":
                    inline = tokens[idx + 1]
                    text = inline.content or "".join(child.content for child in inline.children or [])
                slug = slugs.allocate(text)
                if slug:
                    token.attrSet("id", slug)
            return default(tokens, idx, options, env)

        return RenderRules(
            fence=fence,
            image=image,
            html_block=html_block if target != "html" else None,
            heading_open=heading_open,
        )

    def build_parser(self, document: Document, target: str) -> MarkdownIt:
        """Configure a parser for ``document`` rendered as ``target``."""
        settings = self.settings
        breaks = document.flag("breaks", settings.breaks)

        md = MarkdownIt("commonmark", {"html": True, "breaks": breaks})
        md.enable(["table", "strikethrough"])

        if settings.include.enable:
            root = document.option("includeRoot", None, document.directory)
            pattern = document.option("includePattern", settings.include.pattern, IncludeSettings.pattern)
            include_plugin(md, os.path.join(document.directory, os.path.expanduser(str(root))), pattern)

        plantuml_plugin(
            md,
            open_marker=document.option("plantumlOpenMarker", settings.plantuml_open_marker, "@startuml"),
            close_marker=document.option("plantumlCloseMarker", settings.plantuml_close_marker, "@enduml"),
            server=document.option("plantumlServer", settings.plantuml_server, DEFAULT_PLANTUML_SERVER),
        )
        md.use(tasklists_plugin, label=True)
        generic_container_plugin(md, _as_list(document.option("containerClasses", settings.container_classes, ())))

        if document.flag("emoji", settings.emoji):
            if self._emoji_definitions is None:
                self._emoji_definitions = load_emoji_definitions()
            image_for = emoji_image_loader(settings.emoji_image_directory or None, find_emoji_font())
            emoji_plugin(md, self._emoji_definitions, image_for)

        self._build_rules(document, target).install(md)
        self.logger.debug(f"Parser ready for {document.name} ({target}): breaks={breaks}")
        return md

    def render(self, document: Document, target: str) -> str:
        """Render the document body (front matter excluded) to an HTML fragment."""
        md = self.build_parser(document, target)
        return md.render(document.content)
