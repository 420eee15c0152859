"""
Writing the assembled page as HTML, or printing it to PDF/PNG/JPEG with Chromium.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import math
import os
from pathlib import Path
from typing import Any, Dict, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .assets import expand_home
from .browser import BrowserExecutable, run_async
from .config import EffectiveConfig, MarkdownPdfSettings
from .console import ConsoleLogger
from .errors import EnvironmentFailure, UserInputError

TEMP_SUFFIX = "_tmp.html"
CLIP_FIELDS = ("x", "y", "width", "height")


def to_number(value: Any, fallback: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def _is_set(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def resolve_output_path(input_path: str, target: str, output_override: Optional[str] = None,
                        settings: Optional[MarkdownPdfSettings] = None, cwd: Optional[str] = None) -> str:
    """Path of the file produced for ``target``.

    Directory precedence: ``output_override``, ``outputDirectory``, the
    document's own directory. Relative directories resolve against the
    document directory when ``outputDirectoryRelativePathFile`` is set,
    else against the working directory.
    """
    settings = settings or MarkdownPdfSettings()
    input_path = os.path.abspath(input_path)
    doc_dir = os.path.dirname(input_path)
    output_dir = output_override or settings.output_directory or ""

    if not output_dir:
        output_dir = doc_dir
    elif output_dir.startswith('~'):
        output_dir = expand_home(output_dir)
    elif not os.path.isabs(output_dir):
        base_dir = doc_dir if settings.output_directory_relative_path_file else (cwd or os.getcwd())
        output_dir = os.path.abspath(os.path.join(base_dir, output_dir))

    stem = os.path.splitext(os.path.basename(input_path))[0]
    return os.path.join(output_dir, f"{stem}.{target}")


def temp_html_path(target_path: str, target: str) -> str:
    """Sibling file the browser loads before capturing ``target_path``."""
    directory = os.path.dirname(target_path)
    stem = os.path.basename(target_path)
    if stem.endswith(f".{target}"):
        stem = stem[:-len(target) - 1]
    return os.path.join(directory, f"{stem}{TEMP_SUFFIX}")


def build_pdf_options(target_path: str, settings: MarkdownPdfSettings) -> Dict[str, Any]:
    """Keyword arguments for ``page.pdf``.

    An explicit width or height replaces the named paper format.
    """
    has_width = _is_set(settings.width)
    has_height = _is_set(settings.height)

    options: Dict[str, Any] = {
        "path": target_path,
        "scale": to_number(settings.scale, 1),
        "display_header_footer": bool(settings.display_header_footer),
        "header_template": settings.header_template or "",
        "footer_template": settings.footer_template or "",
        "print_background": settings.print_background is not False,
        "landscape": (settings.orientation or "").lower() == "landscape",
        "page_ranges": settings.page_ranges or "",
    }
    if not has_width and not has_height:
        options["format"] = settings.format or "A4"
    if has_width:
        options["width"] = str(settings.width)
    if has_height:
        options["height"] = str(settings.height)

    margin = {}
    for side in ("top", "right", "bottom", "left"):
        value = getattr(settings.margin, side)
        if _is_set(value):
            margin[side] = str(value)
    options["margin"] = margin
    return options


def _clip_value(name: str, value: Any) -> float:
    number = to_number(value, math.nan)
    if math.isnan(number):
        raise UserInputError(f"Config value 'markdownPdf.clip.{name}' must be a number, got {value!r}")
    return number


def build_screenshot_options(target_path: str, target: str, settings: MarkdownPdfSettings) -> Dict[str, Any]:
    """Keyword arguments for ``page.screenshot``.

    A clip rectangle is used only when all four of its fields are given;
    otherwise the full page is captured.
    """
    clip_values = [getattr(settings.clip, name) for name in CLIP_FIELDS]
    has_clip = all(value is not None for value in clip_values)

    options: Dict[str, Any] = {
        "path": target_path,
        "type": target,
        "full_page": not has_clip,
        "omit_background": bool(settings.omit_background),
    }
    if target == "jpeg":
        options["quality"] = int(to_number(settings.quality, 100))
    if has_clip:
        options["clip"] = {name: _clip_value(name, value) for name, value in zip(CLIP_FIELDS, clip_values)}
    return options


class Exporter:
    """Emits one assembled page as a file of the requested type."""

    def __init__(self, config: EffectiveConfig, logger: Optional[ConsoleLogger] = None,
                 browser: Optional[BrowserExecutable] = None):
        self.config = config
        self.settings = config.markdown_pdf
        self.logger = logger or ConsoleLogger(debug=self.settings.debug)
        self.browser = browser or BrowserExecutable()

    async def _capture(self, html_file: str, target_path: str, target: str) -> None:
        """Load ``html_file`` in a fresh Chromium and print or screenshot it."""
        async with async_playwright() as p:
            browser = await p.chromium.launch(**self.browser.launch_options(self.config))
            try:
                page = await browser.new_page()
                page.set_default_timeout(0)
                await page.goto(Path(html_file).absolute().as_uri(), wait_until="networkidle", timeout=0)

                if target == "pdf":
                    options = build_pdf_options(target_path, self.settings)
                    self.logger.debug(f"PDF options: {options}")
                    await page.pdf(**options)
                else:
                    options = build_screenshot_options(target_path, target, self.settings)
                    self.logger.debug(f"Screenshot options: {options}")
                    await page.screenshot(**options)
            finally:
                await browser.close()

    def export(self, html: str, input_path: str, target: str, output_override: Optional[str] = None) -> str:
        """Write ``html`` for ``target`` and return the path of the produced file."""
        target_path = resolve_output_path(input_path, target, output_override, self.settings)
        Path(target_path).parent.mkdir(parents=True, exist_ok=True)

        if target == "html":
            with open(target_path, 'w', encoding='utf-8') as f:
                f.write(html)
            self.logger.success(f"Saved: {target_path}")
            return target_path

        tmp_file = temp_html_path(target_path, target)
        with open(tmp_file, 'w', encoding='utf-8') as f:
            f.write(html)
        self.logger.debug(f"Wrote temporary page: {tmp_file}")

        try:
            run_async(self._capture(tmp_file, target_path, target))
        except PlaywrightError as e:
            raise EnvironmentFailure(f"Chromium failed while producing {target_path}: {e}") from e
        finally:
            if not self.settings.debug and os.path.exists(tmp_file):
                os.remove(tmp_file)
                self.logger.debug(f"Removed temporary page: {tmp_file}")

        self.logger.success(f"Saved: {target_path}")
        return target_path
