"""
Colored console output shared by every stage of a conversion.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import sys

from colorama import init, Fore, Style

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class ConsoleLogger:
    """Prefix-tagged colored logger ([DEBUG], [INFO], [WARNING], [ERROR], [OK])."""

    def __init__(self, debug: bool = False, stream=None, error_stream=None):
        self.debug_enabled = debug
        self._stream = stream
        self._error_stream = error_stream

    @property
    def stream(self):
        return self._stream or sys.stdout

    @property
    def error_stream(self):
        return self._error_stream or sys.stderr

    def debug(self, message: str) -> None:
        """Log debug message with color (only if debug mode is enabled)."""
        if self.debug_enabled:
            print(f"{Fore.CYAN}[DEBUG]{Style.RESET_ALL} {message}", file=self.stream)

    def info(self, message: str) -> None:
        """Log info message with color."""
        print(f"{Fore.GREEN}[INFO]{Style.RESET_ALL} {message}", file=self.stream)

    def warning(self, message: str) -> None:
        """Log warning message with color."""
        print(f"{Fore.YELLOW}[WARNING]{Style.RESET_ALL} {message}", file=self.error_stream)

    def error(self, message: str) -> None:
        """Log error message with color."""
        print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} {message}", file=self.error_stream)

    def success(self, message: str) -> None:
        """Log success message with color."""
        print(f"{Fore.GREEN}[OK]{Style.RESET_ALL} {message}", file=self.stream)
