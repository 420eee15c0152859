#!/usr/bin/env python3
"""
Command-line entry point.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import argparse
import sys
import traceback

from colorama import Fore, Style

from . import __version__
from .config import load_config, merge_config
from .console import ConsoleLogger
from .converter import MarkdownPdfConverter, split_types
from .errors import MarkdownPdfError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markdown-pdf-cli",
        description="Convert a Markdown file to HTML, PDF, PNG or JPEG using headless Chromium.",
        epilog="Examples:\n"
               "  markdown-pdf-cli README.md\n"
               "  markdown-pdf-cli README.md -t html,pdf -o out\n"
               "  markdown-pdf-cli -i notes.md --type all --config my.config.json",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input_file", nargs="?", help="Markdown file to convert")
    parser.add_argument("-i", "--input", dest="input", default=None,
                        help="Markdown file to convert (alternative to the positional argument)")
    parser.add_argument("-t", "--type", dest="types", action="append", default=[],
                        help="Output types separated by comma [html,pdf,png,jpeg,all]; may be repeated")
    parser.add_argument("-o", "--output", default=None, help="Output directory override")
    parser.add_argument("--config", default=None,
                        help="Path to configuration JSON file (default: ./markdown-pdf.config.json)")
    parser.add_argument("--debug", action="store_true",
                        help="Enable debug logging and keep temporary HTML files")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = ConsoleLogger(debug=args.debug)

    input_file = args.input or args.input_file
    if not input_file:
        parser.print_help()
        logger.error("Input markdown file is required.")
        return 1
    if args.input and args.input_file:
        logger.warning(f"Ignoring extra argument: {args.input_file}")

    types = []
    for value in args.types:
        types.extend(split_types(value))

    try:
        config = load_config(args.config, logger=logger)
        if args.debug:
            config = merge_config(config, {"markdownPdf": {"debug": True}})
        logger.debug_enabled = config.markdown_pdf.debug

        converter = MarkdownPdfConverter(config, logger)
        written = converter.convert(input_file, types, args.output)
    except MarkdownPdfError as e:
        logger.error(str(e))
        if logger.debug_enabled:
            traceback.print_exc()
        return 1

    logger.success(f"Conversion complete: {len(written)} file(s) written")
    return 0


def run() -> None:
    """Console-script wrapper that exits with ``main``'s status."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} Interrupted", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
