"""
markdown-it extensions: PlantUML blocks, generic containers, file
inclusion and emoji shortcodes.

Checkboxes come straight from ``mdit_py_plugins.tasklists``; everything here
is registered per parser instance by :mod:`markdown_pdf_cli.renderer`.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import base64
import io
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import emoji
import plantuml
from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.rules_block import StateBlock
from markdown_it.rules_core import StateCore
from markdown_it.token import Token
from mdit_py_plugins.container import container_plugin as _container_plugin
from PIL import Image, ImageDraw, ImageFont

from .errors import UserInputError

DEFAULT_PLANTUML_SERVER = "https://www.plantuml.com/plantuml"


# --- PlantUML -----------------------------------------------------------

def plantuml_plugin(md: MarkdownIt, open_marker: str = "@startuml", close_marker: str = "@enduml",
                    server: str = "", image_format: str = "svg") -> None:
    """Render ``@startuml ... @enduml`` blocks as images served by a PlantUML server."""
    server = (server or DEFAULT_PLANTUML_SERVER).rstrip('/')
    client = plantuml.PlantUML(url=f"{server}/{image_format}/")

    def uml_block(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
        start = state.bMarks[startLine] + state.tShift[startLine]
        maximum = state.eMarks[startLine]

        if not state.src.startswith(open_marker, start):
            return False

        markup = open_marker
        params = state.src[start + len(open_marker):maximum]
        if silent:
            return True

        nextLine = startLine
        auto_closed = False
        while True:
            nextLine += 1
            if nextLine >= endLine:
                break
            start = state.bMarks[nextLine] + state.tShift[nextLine]
            maximum = state.eMarks[nextLine]
            if start < maximum and state.sCount[nextLine] < state.blkIndent:
                break
            if not state.src.startswith(close_marker, start):
                continue
            if state.sCount[nextLine] > state.sCount[startLine]:
                continue
            if state.skipSpaces(start + len(close_marker)) < maximum:
                continue
            auto_closed = True
            break

        contents = state.getLines(startLine + 1, nextLine, state.sCount[startLine], False)

        token = state.push("uml_diagram", "img", 0)
        token.attrs = {
            "src": client.get_url(f"@startuml\n{contents}\n@enduml"),
            "alt": params[1:] if params else "uml diagram",
        }
        token.block = True
        token.info = params
        token.map = [startLine, nextLine]
        token.markup = markup

        state.line = nextLine + (1 if auto_closed else 0)
        return True

    def render_uml(self, tokens, idx, options, env):
        token = tokens[idx]
        return f'<img src="{escapeHtml(token.attrGet("src"))}" alt="{escapeHtml(token.attrGet("alt"))}">\n'

    md.block.ruler.before(
        "fence", "uml_diagram", uml_block,
        {"alt": ["paragraph", "reference", "blockquote", "list"]},
    )
    md.add_render_rule("uml_diagram", render_uml)


# --- Containers ---------------------------------------------------------

def generic_container_plugin(md: MarkdownIt, allowed: Iterable[str] = ()) -> None:
    """``::: name`` blocks become ``<div class="name">``.

    Any non-empty name is accepted unless ``allowed`` lists the permitted names.
    """
    allowed = {name.strip() for name in allowed if name and name.strip()}

    def validate(params: str, *args) -> bool:
        name = params.strip()
        if not name:
            return False
        return not allowed or name.split()[0] in allowed

    def render(self, tokens, idx, options, env):
        token = tokens[idx]
        if token.nesting == 1:
            return f'<div class="{escapeHtml(token.info.strip())}">\n'
        return '</div>\n'

    _container_plugin(md, "", validate=validate, render=render)


# --- Include ------------------------------------------------------------

def expand_includes(source: str, root: str, pattern: str, _chain: Optional[List[str]] = None) -> str:
    """Replace ``:[label](file.md)`` directives with the referenced file's text.

    Included files may include others; their paths resolve against the
    directory of the including file.
    """
    chain = _chain or []
    include_re = re.compile(pattern, re.IGNORECASE)

    def replace(match: re.Match) -> str:
        file_path = os.path.abspath(os.path.join(root, match.group(1).strip()))
        if file_path in chain:
            raise UserInputError(f"Circular include of {file_path}")
        if not os.path.isfile(file_path):
            raise UserInputError(f"Included file not found: {file_path}")
        with open(file_path, 'r', encoding='utf-8') as f:
            text = f.read()
        text = expand_includes(text, os.path.dirname(file_path), pattern, chain + [file_path])
        return text[:-1] if text.endswith('\n') else text

    return include_re.sub(replace, source)


def include_plugin(md: MarkdownIt, root: str, pattern: str) -> None:
    """Expand include directives in the source before block parsing."""

    def include_rule(state: StateCore) -> None:
        state.src = expand_includes(state.src, root, pattern)

    md.core.ruler.before("normalize", "include", include_rule)


# --- Emoji --------------------------------------------------------------

_SHORTCODE_RE = re.compile(r':([A-Za-z0-9_+\-]+):')

EMOJI_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/noto/NotoColorEmoji.ttf",
    "/usr/share/fonts/noto/NotoColorEmoji.ttf",
    "/usr/share/fonts/google-noto-emoji/NotoColorEmoji.ttf",
    "/System/Library/Fonts/Apple Color Emoji.ttc",
    "C:/Windows/Fonts/seguiemj.ttf",
)
# Noto's color bitmaps only exist at this size
EMOJI_FONT_SIZE = 109
EMOJI_IMAGE_SIZE = 64


def load_emoji_definitions() -> Dict[str, str]:
    """Shortcode name (without colons) to emoji character.

    Names come from the ``emoji`` package: the CLDR name plus the GitHub
    style aliases (``smile``, ``+1``, ``tada``).
    """
    definitions: Dict[str, str] = {}
    for char, data in emoji.EMOJI_DATA.items():
        for shortcode in [data.get('en', '')] + list(data.get('alias', [])):
            name = shortcode.strip(':')
            if name:
                definitions.setdefault(name, char)
    return definitions


def _split_shortcodes(token: Token, definitions: Dict[str, str]) -> List[Token]:
    pieces = []
    text = token.content
    last = 0
    for match in _SHORTCODE_RE.finditer(text):
        name = match.group(1)
        if name not in definitions:
            continue
        if match.start() > last:
            pieces.append(Token("text", "", 0, content=text[last:match.start()], level=token.level))
        pieces.append(Token("emoji", "", 0, markup=name, content=definitions[name], level=token.level))
        last = match.end()
    if not pieces:
        return [token]
    if last < len(text):
        pieces.append(Token("text", "", 0, content=text[last:], level=token.level))
    return pieces


def emoji_plugin(md: MarkdownIt, definitions: Dict[str, str],
                 image_for: Callable[[str, str], Optional[str]]) -> None:
    """Turn known ``:shortcode:`` text into emoji.

    ``image_for(name, char)`` returns a data URI, or None to emit the
    character itself in a ``span.emoji``.
    """

    def emoji_rule(state: StateCore) -> None:
        for block_token in state.tokens:
            if block_token.type != "inline" or not block_token.children:
                continue
            children = []
            link_depth = 0
            for token in block_token.children:
                if token.type == "link_open":
                    link_depth += 1
                elif token.type == "link_close":
                    link_depth -= 1
                if token.type == "text" and ':' in token.content and not link_depth:
                    children.extend(_split_shortcodes(token, definitions))
                else:
                    children.append(token)
            block_token.children = children

    def render_emoji(self, tokens, idx, options, env):
        token = tokens[idx]
        src = image_for(token.markup, token.content)
        if src:
            return f'<img class="emoji" alt="{escapeHtml(token.markup)}" src="{src}" />'
        return f'<span class="emoji">{escapeHtml(token.content)}</span>'

    md.core.ruler.push("emoji", emoji_rule)
    md.add_render_rule("emoji", render_emoji)


def find_emoji_font() -> Optional[str]:
    """First color emoji font installed on this system, if any."""
    for candidate in EMOJI_FONT_CANDIDATES:
        if os.path.isfile(candidate):
            return candidate
    return None


@lru_cache(maxsize=256)
def render_emoji_png(char: str, font_path: str) -> Optional[str]:
    """Draw ``char`` with a color emoji font and return it as a PNG data URI."""
    try:
        font = ImageFont.truetype(font_path, EMOJI_FONT_SIZE)
        canvas = Image.new('RGBA', (EMOJI_FONT_SIZE * 2, EMOJI_FONT_SIZE * 2), (0, 0, 0, 0))
        ImageDraw.Draw(canvas).text((EMOJI_FONT_SIZE // 2, EMOJI_FONT_SIZE // 2), char,
                                    font=font, embedded_color=True)
    except (OSError, ValueError):
        return None

    bbox = canvas.getbbox()
    if not bbox:
        return None
    glyph = canvas.crop(bbox)
    glyph.thumbnail((EMOJI_IMAGE_SIZE, EMOJI_IMAGE_SIZE), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    glyph.save(buffer, format='PNG')
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode('ascii')


def emoji_image_loader(directory: Optional[str] = None,
                       font_path: Optional[str] = None) -> Callable[[str, str], Optional[str]]:
    """Return a lookup for emoji images.

    ``{directory}/{name}.png`` is inlined when present; otherwise the
    character is drawn with ``font_path``.
    """
    image_dir = Path(directory) if directory else None

    def image_for(name: str, char: str) -> Optional[str]:
        if image_dir is not None:
            image_path = image_dir / f"{name}.png"
            if image_path.is_file():
                data = base64.b64encode(image_path.read_bytes()).decode('ascii')
                return f"data:image/png;base64,{data}"
        if font_path:
            return render_emoji_png(char, font_path)
        return None

    return image_for
