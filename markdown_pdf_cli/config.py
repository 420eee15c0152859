"""
Configuration loading and merging.

The effective configuration is a tree of frozen dataclasses. Each field maps
to the camelCase key used in the JSON files. Merging walks the schema field
by field: nested sections merge recursively, list values replace the
previous list entirely, scalars overwrite.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import json
import os
from dataclasses import dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .console import ConsoleLogger
from .errors import ConfigurationDefect, UserInputError

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_FILE = PACKAGE_DIR / "data" / "defaults.json"
USER_CONFIG_CANDIDATE = "markdown-pdf.config.json"


def _key(name: str) -> Dict[str, str]:
    return {"key": name}


@dataclass(frozen=True)
class Margin:
    top: Optional[str] = None
    right: Optional[str] = None
    bottom: Optional[str] = None
    left: Optional[str] = None


@dataclass(frozen=True)
class Clip:
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


@dataclass(frozen=True)
class IncludeSettings:
    enable: bool = False
    pattern: str = r":\[.+\]\((.+\..+)\)"


@dataclass(frozen=True)
class MarkdownPdfSettings:
    """Settings grouped under the ``markdownPdf`` key."""

    type: Tuple[str, ...] = ("pdf",)
    output_directory: str = field(default="", metadata=_key("outputDirectory"))
    output_directory_relative_path_file: bool = field(
        default=True, metadata=_key("outputDirectoryRelativePathFile"))
    styles: Tuple[str, ...] = ()
    styles_relative_path_file: bool = field(default=True, metadata=_key("stylesRelativePathFile"))
    include_default_styles: bool = field(default=True, metadata=_key("includeDefaultStyles"))
    highlight: bool = True
    highlight_style: str = field(default="", metadata=_key("highlightStyle"))
    breaks: bool = False
    emoji: bool = True
    emoji_image_directory: str = field(default="", metadata=_key("emojiImageDirectory"))
    executable_path: str = field(default="", metadata=_key("executablePath"))
    scale: float = 1
    display_header_footer: bool = field(default=False, metadata=_key("displayHeaderFooter"))
    header_template: str = field(default="", metadata=_key("headerTemplate"))
    footer_template: str = field(default="", metadata=_key("footerTemplate"))
    print_background: bool = field(default=True, metadata=_key("printBackground"))
    orientation: str = "portrait"
    page_ranges: str = field(default="", metadata=_key("pageRanges"))
    format: str = "A4"
    width: str = ""
    height: str = ""
    margin: Margin = field(default_factory=Margin)
    quality: int = 100
    clip: Clip = field(default_factory=Clip)
    omit_background: bool = field(default=False, metadata=_key("omitBackground"))
    plantuml_open_marker: str = field(default="@startuml", metadata=_key("plantumlOpenMarker"))
    plantuml_close_marker: str = field(default="@enduml", metadata=_key("plantumlCloseMarker"))
    plantuml_server: str = field(default="", metadata=_key("plantumlServer"))
    mermaid_server: str = field(default="", metadata=_key("mermaidServer"))
    container_classes: Tuple[str, ...] = field(default=(), metadata=_key("containerClasses"))
    include: IncludeSettings = field(default_factory=IncludeSettings, metadata=_key("markdown-it-include"))
    debug: bool = False


@dataclass(frozen=True)
class MarkdownSettings:
    """Settings grouped under the ``markdown`` key."""

    styles: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HttpSettings:
    proxy: str = ""


@dataclass(frozen=True)
class EffectiveConfig:
    """Merged settings for one invocation."""

    markdown_pdf: MarkdownPdfSettings = field(default_factory=MarkdownPdfSettings, metadata=_key("markdownPdf"))
    markdown: MarkdownSettings = field(default_factory=MarkdownSettings)
    http: HttpSettings = field(default_factory=HttpSettings)
    language: str = ""


def _merge_section(section: Any, data: Mapping[str, Any], where: str, logger: Optional[ConsoleLogger]):
    """Return a copy of ``section`` with ``data`` merged onto it."""
    changes = {}
    known = set()
    for f in fields(section):
        key = f.metadata.get("key", f.name)
        known.add(key)
        if key not in data:
            continue
        value = data[key]
        current = getattr(section, f.name)
        path = f"{where}.{key}" if where else key

        if is_dataclass(current):
            if value is None:
                continue
            if not isinstance(value, Mapping):
                raise UserInputError(f"Config value '{path}' must be an object, got {type(value).__name__}")
            changes[f.name] = _merge_section(current, value, path, logger)
        elif isinstance(current, tuple):
            # A bare string is accepted where a list is expected ("type": "pdf")
            if value is None:
                value = []
            elif isinstance(value, str):
                value = [value] if value.strip() else []
            if not isinstance(value, (list, tuple)):
                raise UserInputError(f"Config value '{path}' must be a list, got {type(value).__name__}")
            changes[f.name] = tuple(value)
        else:
            if isinstance(value, (Mapping, list)):
                raise UserInputError(f"Config value '{path}' must be a scalar, got {type(value).__name__}")
            changes[f.name] = value

    if logger:
        for key in data:
            if key not in known:
                logger.debug(f"Ignoring unknown config key: {where + '.' if where else ''}{key}")

    return replace(section, **changes) if changes else section


def merge_config(config: EffectiveConfig, override: Mapping[str, Any],
                 logger: Optional[ConsoleLogger] = None) -> EffectiveConfig:
    """Merge a JSON-shaped override onto ``config`` and return the result."""
    if not isinstance(override, Mapping):
        raise UserInputError("Configuration must be a JSON object")
    return _merge_section(config, override, "", logger)


def _read_json(path: Path) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_defaults(path: Path = DEFAULT_CONFIG_FILE) -> EffectiveConfig:
    """Load the bundled defaults. Any failure here means a broken installation."""
    try:
        data = _read_json(path)
        return merge_config(EffectiveConfig(), data)
    except (OSError, ValueError, UserInputError) as e:
        raise ConfigurationDefect(f"Invalid bundled configuration {path}: {e}") from e


def load_config(override_path: Optional[str] = None, cwd: Optional[str] = None,
                logger: Optional[ConsoleLogger] = None) -> EffectiveConfig:
    """Resolve the effective configuration.

    Args:
        override_path: Explicit config file; it must exist.
        cwd: Directory probed for ``markdown-pdf.config.json`` (default: process cwd).
        logger: Optional logger for debug output.

    Returns:
        Defaults merged with the user configuration, if any.
    """
    config = load_defaults()
    base_dir = Path(cwd or os.getcwd())

    if override_path:
        candidate = base_dir / Path(override_path).expanduser()
        if not candidate.is_file():
            raise UserInputError(f"Config file not found: {candidate}")
    else:
        candidate = base_dir / USER_CONFIG_CANDIDATE
        if not candidate.is_file():
            if logger:
                logger.debug("No user configuration found, using defaults")
            return config

    try:
        data = _read_json(candidate)
    except (OSError, ValueError) as e:
        raise UserInputError(f"Unable to read config file {candidate}: {e}") from e

    if logger:
        logger.debug(f"Using configuration file: {candidate}")
    return merge_config(config, data or {}, logger)
