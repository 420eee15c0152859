"""
Exception types raised by the converter.

Library code raises these; only the command-line entry point turns them
into messages and exit codes.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""


class MarkdownPdfError(Exception):
    """Base class for every error the converter reports to the user."""


class UserInputError(MarkdownPdfError):
    """Bad input file, config file, theme name or output type list."""


class ConfigurationDefect(MarkdownPdfError):
    """Broken installation: bundled defaults or template missing or malformed."""


class EnvironmentFailure(MarkdownPdfError):
    """Chromium could not be found, installed, launched or driven."""
