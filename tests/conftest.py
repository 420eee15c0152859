"""Shared fixtures for markdown-pdf-cli tests."""

import io
from pathlib import Path
from urllib.parse import unquote, urlsplit

import pytest
from playwright.async_api import Error as PlaywrightError

from markdown_pdf_cli.config import load_defaults, merge_config
from markdown_pdf_cli.console import ConsoleLogger
from markdown_pdf_cli.document import Document


@pytest.fixture
def default_config():
    """Return the bundled default configuration."""
    return load_defaults()


@pytest.fixture
def make_config(default_config):
    """Return a helper merging an override onto the defaults."""
    def _make(override=None):
        return merge_config(default_config, override or {})
    return _make


@pytest.fixture
def logger():
    """Return a logger writing into in-memory streams."""
    return ConsoleLogger(debug=True, stream=io.StringIO(), error_stream=io.StringIO())


@pytest.fixture
def docs_dir(tmp_path):
    """Return an empty docs directory inside the test's tmp dir."""
    path = tmp_path / "docs"
    path.mkdir()
    return path


@pytest.fixture
def make_document(docs_dir):
    """Return a helper that writes a Markdown file and loads it as a Document."""
    def _make(text, name="readme.md"):
        path = docs_dir / name
        path.write_text(text, encoding="utf-8")
        return Document.load(str(path))
    return _make


class FakeBrowserRecorder:
    """Collects what the exporter asked the fake browser to do."""

    def __init__(self):
        self.launches = []
        self.visited = []
        self.visited_html = []
        self.pdf_calls = []
        self.screenshot_calls = []
        self.default_timeout = None
        self.closed = 0
        self.fail_on = set()


class _FakePage:
    def __init__(self, recorder):
        self.recorder = recorder

    def set_default_timeout(self, timeout):
        self.recorder.default_timeout = timeout

    async def goto(self, url, **kwargs):
        self.recorder.visited.append((url, kwargs))
        local_path = unquote(urlsplit(url).path)
        self.recorder.visited_html.append(Path(local_path).read_text(encoding="utf-8"))
        if "goto" in self.recorder.fail_on:
            raise PlaywrightError("net::ERR_FAILED")

    async def pdf(self, **options):
        self.recorder.pdf_calls.append(options)
        if "pdf" in self.recorder.fail_on:
            raise PlaywrightError("Target closed")
        Path(options["path"]).write_bytes(b"%PDF-1.4 fake")

    async def screenshot(self, **options):
        self.recorder.screenshot_calls.append(options)
        Path(options["path"]).write_bytes(b"\x89PNG fake")


class _FakeBrowser:
    def __init__(self, recorder):
        self.recorder = recorder

    async def new_page(self):
        return _FakePage(self.recorder)

    async def close(self):
        self.recorder.closed += 1


class _FakeChromium:
    def __init__(self, recorder):
        self.recorder = recorder

    async def launch(self, **options):
        self.recorder.launches.append(options)
        return _FakeBrowser(self.recorder)


class _FakePlaywrightContext:
    def __init__(self, recorder):
        self.recorder = recorder

    async def __aenter__(self):
        return type("FakePlaywright", (), {"chromium": _FakeChromium(self.recorder)})()

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def fake_browser(monkeypatch):
    """Replace Playwright in the exporter with an in-process fake."""
    recorder = FakeBrowserRecorder()
    monkeypatch.setattr(
        "markdown_pdf_cli.exporter.async_playwright",
        lambda: _FakePlaywrightContext(recorder),
    )
    return recorder


@pytest.fixture
def no_chromium_lookup(monkeypatch):
    """Skip the real Chromium lookup in the converter."""
    from markdown_pdf_cli.browser import BrowserExecutable

    calls = []

    def _resolve(config, logger):
        calls.append(config)
        return BrowserExecutable()

    monkeypatch.setattr("markdown_pdf_cli.converter.resolve_chromium", _resolve)
    return calls


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    """Run every test from a directory without a user config file."""
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.delenv("HTTP_PROXY", raising=False)
    monkeypatch.delenv("HTTPS_PROXY", raising=False)
    return workdir
