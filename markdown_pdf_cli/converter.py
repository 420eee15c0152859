"""
Markdown to HTML/PDF/PNG/JPEG converter using Playwright (Puppeteer approach,
inspired by vscode-markdown-pdf).

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import os
import sys
from typing import Iterable, List, Optional, Sequence

from tqdm import tqdm

from .assembler import DocumentAssembler
from .browser import BrowserExecutable, apply_proxy, resolve_chromium
from .config import EffectiveConfig
from .console import ConsoleLogger
from .document import MARKDOWN_EXTENSIONS, SUPPORTED_TYPES, Document
from .errors import UserInputError
from .exporter import Exporter
from .renderer import MarkdownRenderer


def split_types(value: Optional[str]) -> List[str]:
    """Split a comma-separated type list, lower-cased, empties dropped."""
    if not value:
        return []
    return [entry.strip().lower() for entry in value.split(',') if entry.strip()]


def resolve_types(cli_types: Optional[Sequence[str]], config_types: Optional[Iterable[str]] = None,
                  logger: Optional[ConsoleLogger] = None) -> List[str]:
    """Output types to produce, in order, without duplicates.

    The command line wins over the configured types; ``pdf`` is the
    fallback. ``all`` expands to every supported type. Unsupported entries
    are dropped with a warning.
    """
    logger = logger or ConsoleLogger()
    resolved = list(cli_types or [])
    if not resolved:
        resolved = [str(entry) for entry in (config_types or ()) if str(entry).strip()]
    if not resolved:
        resolved = ["pdf"]

    resolved = [entry.strip().lower() for entry in resolved]
    if "all" in resolved:
        resolved = list(SUPPORTED_TYPES)

    normalized = []
    for value in resolved:
        if value not in SUPPORTED_TYPES:
            logger.warning(f"Unsupported type ignored: {value}")
            continue
        if value not in normalized:
            normalized.append(value)

    if not normalized:
        raise UserInputError("No valid output types were provided.")
    return normalized


class MarkdownPdfConverter:
    """Converts one Markdown file into each requested output type in turn."""

    def __init__(self, config: EffectiveConfig, logger: Optional[ConsoleLogger] = None,
                 show_progress: Optional[bool] = None):
        self.config = config
        self.logger = logger or ConsoleLogger(debug=config.markdown_pdf.debug)
        self.renderer = MarkdownRenderer(config, self.logger)
        self.assembler = DocumentAssembler(config, self.logger)
        if show_progress is None:
            show_progress = sys.stdout.isatty()
        self.show_progress = show_progress

    def _load_document(self, input_path: str) -> Document:
        input_path = os.path.abspath(input_path)
        if not os.path.isfile(input_path):
            raise UserInputError(f"Input file not found: {input_path}")
        if os.path.splitext(input_path)[1].lower() not in MARKDOWN_EXTENSIONS:
            self.logger.warning(f"Input does not look like Markdown: {os.path.basename(input_path)}")
        return Document.load(input_path)

    def convert_target(self, document: Document, target: str, exporter: Exporter,
                       output_dir: Optional[str] = None) -> str:
        """Render, assemble and export one target. Returns the written path."""
        with tqdm(total=3, unit="step", leave=False, disable=not self.show_progress) as pbar:
            pbar.set_description(f"  {document.name} - Render")
            fragment = self.renderer.render(document, target)
            pbar.update(1)

            pbar.set_description(f"  {document.name} - Assemble")
            html = self.assembler.assemble(fragment, document.path)
            pbar.update(1)

            pbar.set_description(f"  {document.name} - {target.upper()}")
            written = exporter.export(html, document.path, target, output_dir)
            pbar.update(1)
        return written

    def convert(self, input_path: str, types: Optional[Sequence[str]] = None,
                output_dir: Optional[str] = None) -> List[str]:
        """Convert ``input_path`` to every requested type, sequentially.

        The first failure propagates; files written for earlier types stay on disk.
        """
        document = self._load_document(input_path)
        targets = resolve_types(types, self.config.markdown_pdf.type, self.logger)
        apply_proxy(self.config)

        browser = BrowserExecutable()
        if any(target != "html" for target in targets):
            browser = resolve_chromium(self.config, self.logger)
        exporter = Exporter(self.config, self.logger, browser)

        written = []
        for target in targets:
            self.logger.info(f"Converting {document.name} => {target}")
            written.append(self.convert_target(document, target, exporter, output_dir))
        return written
