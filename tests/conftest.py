"""Fake Playwright objects so probes run without a real browser."""

import asyncio
import sys

import pytest
from loguru import logger

from campsite_checker.config import Config
from campsite_checker.prober import (
    CLICK_NTH_JS,
    COLLECT_TEXTS_JS,
    SET_LENGTH_JS,
)


class FakeResponse:
    def __init__(self, url="", status=200, payload=None):
        self.url = url
        self.status = status
        self._payload = payload
        self.read = False

    async def json(self):
        await asyncio.sleep(0)
        self.read = True
        if self._payload is None:
            raise ValueError("not JSON")
        return self._payload


class FakePage:
    def __init__(self, html="", texts=None, length_field=None, goto_error=None,
                 status=200, responses=()):
        self.html = html
        self.texts = texts or {}
        self.length_field = length_field
        self.goto_error = goto_error
        self.status = status
        self.responses = list(responses)
        self.handlers = {}
        self.visited = []
        self.clicks = []
        self.lengths = []
        self.waits = []
        self.screenshots = []

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        self.handlers[event].remove(handler)

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        for response in self.responses:
            for handler in list(self.handlers.get("response", [])):
                handler(response)
        if self.goto_error is not None:
            raise self.goto_error
        return FakeResponse(url, self.status)

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)

    async def evaluate(self, script, arg=None):
        if script == COLLECT_TEXTS_JS:
            return list(self.texts.get(arg, []))
        if script == CLICK_NTH_JS:
            self.clicks.append(tuple(arg))
            return True
        if script == SET_LENGTH_JS:
            self.lengths.append(arg)
            return self.length_field
        raise AssertionError("unexpected script")

    async def screenshot(self, path=None, full_page=False):
        self.screenshots.append((path, full_page))

    async def content(self):
        return self.html


class FakeContext:
    def __init__(self, page):
        self.page = page

    async def new_page(self):
        return self.page


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.closed = False
        self.context_options = None

    async def new_context(self, **options):
        self.context_options = options
        return FakeContext(self.page)

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser):
        self.browser = browser
        self.launches = []

    async def launch(self, **options):
        self.launches.append(options)
        return self.browser


class FakePlaywright:
    def __init__(self, browser):
        self.chromium = FakeChromium(browser)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


@pytest.fixture
def config(tmp_path):
    return Config(
        base_url="https://book.example.com/campgrounds/barrett-cove",
        settle_delay_ms=0,
        results_wait_ms=0,
        screenshot_path=str(tmp_path / "campcheck-results.png"),
    )


@pytest.fixture
def browser_for():
    """Build (factory, browser) around a FakePage."""
    def build(page):
        browser = FakeBrowser(page)
        playwright = FakePlaywright(browser)
        return (lambda: playwright), browser
    return build


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks added by the CLI so they don't outlive the test."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")
