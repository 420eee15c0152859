"""
Locating, installing and launching Chromium through Playwright.

MIT License - Copyright (c) 2025 markdown-pdf-cli
"""

import asyncio
import os
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .config import EffectiveConfig
from .console import ConsoleLogger
from .errors import EnvironmentFailure


@dataclass(frozen=True)
class BrowserExecutable:
    """Chromium chosen for this invocation.

    ``path`` is None when Playwright's own Chromium build is used.
    """

    path: Optional[str] = None

    def launch_options(self, config: EffectiveConfig) -> Dict[str, Any]:
        options: Dict[str, Any] = {"headless": True, "args": launch_args(config)}
        if self.path:
            options["executable_path"] = self.path
        return options


def run_async(coro):
    """Run a coroutine on a fresh event loop and close it afterwards."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()
        asyncio.set_event_loop(None)


def detect_language(config: EffectiveConfig) -> str:
    return config.language or os.environ.get("LANG") or os.environ.get("LANGUAGE") or "en-US"


def launch_args(config: EffectiveConfig) -> List[str]:
    return [
        f"--lang={detect_language(config)}",
        "--no-sandbox",
        "--disable-setuid-sandbox",
    ]


def apply_proxy(config: EffectiveConfig) -> None:
    """Export ``http.proxy`` so Chromium and the installer go through it."""
    proxy = config.http.proxy
    if proxy:
        os.environ["HTTPS_PROXY"] = proxy
        os.environ["HTTP_PROXY"] = proxy


async def _bundled_chromium_path() -> str:
    async with async_playwright() as p:
        return p.chromium.executable_path


def install_chromium(logger: ConsoleLogger) -> None:
    """Download Playwright's Chromium build."""
    logger.info("Installing Chromium ...")
    cmd = [sys.executable, "-m", "playwright", "install", "chromium"]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise EnvironmentFailure(f"Unable to run the Chromium installer: {e}") from e
    if result.returncode != 0:
        raise EnvironmentFailure(f"Chromium installation failed: {result.stderr.strip()}")
    logger.success("Chromium installed")


def resolve_chromium(config: EffectiveConfig, logger: ConsoleLogger) -> BrowserExecutable:
    """Decide which Chromium to drive, installing Playwright's build if needed.

    Called once per invocation; the result is handed to the exporter.
    """
    configured = config.markdown_pdf.executable_path
    if configured:
        if os.path.isfile(configured):
            logger.debug(f"Using configured Chromium: {configured}")
            return BrowserExecutable(configured)
        logger.warning(f"Configured executablePath not found, using bundled Chromium: {configured}")

    try:
        bundled = run_async(_bundled_chromium_path())
    except PlaywrightError as e:
        raise EnvironmentFailure(f"Unable to start Playwright: {e}") from e

    if bundled and os.path.isfile(bundled):
        logger.debug(f"Using bundled Chromium: {bundled}")
        return BrowserExecutable()

    install_chromium(logger)
    return BrowserExecutable()
