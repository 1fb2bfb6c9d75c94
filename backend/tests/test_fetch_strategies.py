import threading
import time
from collections import Counter
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from articlr.errors import EmptyContentError, FetchStrategyError, HttpStatusError
from articlr.services import fetch_strategies
from articlr.services.fetch_strategies import (
    EMPTY_CONTENT_MESSAGE,
    FORBIDDEN_MESSAGE,
    RETRY_STATUS_CODES,
    BrowserFetchStrategy,
    HttpFetchStrategy,
    build_retry_session,
    extract_body_text,
    normalize_text,
)

from conftest import FakeResponse, FakeSession

URL = "https://example.com/article"


def make_strategy(routes, calls=None):
    calls = calls if calls is not None else []
    return HttpFetchStrategy(session_factory=lambda: FakeSession(routes, calls)), calls


def test_normalize_text_collapses_whitespace_and_truncates():
    assert normalize_text("  a\n\n b\t c  ") == "a b c"
    assert len(normalize_text("x " * 10000, max_chars=8000)) == 8000


def test_extract_body_text_skips_scripts_and_styles():
    html = "<html><head><title>t</title></head><body><script>var x=1;</script><style>p{}</style><p>本文</p></body></html>"
    assert normalize_text(extract_body_text(html)) == "本文"


@pytest.mark.asyncio
async def test_http_strategy_truncates_long_pages():
    html = "<html><body><p>" + ("あ" * 20000) + "</p></body></html>"
    strategy, calls = make_strategy({URL: FakeResponse(content=html.encode("utf-8"))})

    text = await strategy.attempt(URL)

    assert calls == [URL]
    assert len(text) <= 8000
    assert text.startswith("あああ")


@pytest.mark.asyncio
async def test_http_strategy_decodes_shift_jis_pages():
    html = "<html><body><h1>空気清浄機の選び方</h1></body></html>"
    response = FakeResponse(
        content=html.encode("shift_jis"),
        headers={"Content-Type": "text/html; charset=Shift_JIS"},
    )
    strategy, _ = make_strategy({URL: response})

    assert await strategy.attempt(URL) == "空気清浄機の選び方"


@pytest.mark.asyncio
async def test_http_strategy_reports_forbidden():
    strategy, _ = make_strategy({URL: FakeResponse(status_code=403)})

    with pytest.raises(HttpStatusError) as excinfo:
        await strategy.attempt(URL)

    assert excinfo.value.status_code == 403
    assert str(excinfo.value) == FORBIDDEN_MESSAGE


@pytest.mark.asyncio
async def test_http_strategy_reports_other_status_codes():
    strategy, _ = make_strategy({URL: FakeResponse(status_code=503)})

    with pytest.raises(HttpStatusError, match="HTTP 503"):
        await strategy.attempt(URL)


@pytest.mark.asyncio
async def test_http_strategy_fails_on_empty_body():
    strategy, _ = make_strategy({URL: FakeResponse(content=b"<html><body>   </body></html>")})

    with pytest.raises(EmptyContentError, match=EMPTY_CONTENT_MESSAGE):
        await strategy.attempt(URL)


@pytest.mark.asyncio
async def test_http_strategy_wraps_network_errors():
    strategy, _ = make_strategy({URL: requests.ConnectionError("connection reset by peer")})

    with pytest.raises(FetchStrategyError, match="connection reset"):
        await strategy.attempt(URL)


def test_retry_session_is_limited_to_transient_failures():
    session = build_retry_session(retries=2)
    retry = session.get_adapter("https://example.com").max_retries

    assert retry.total == 2
    assert set(retry.status_forcelist) == set(RETRY_STATUS_CODES)
    assert "GET" in retry.allowed_methods
    assert retry.respect_retry_after_header is False
    assert session.headers["User-Agent"].startswith("Mozilla/5.0")
    session.close()


class FakePage:
    def __init__(self, text="", goto_error=None, selector_error=None):
        self.text = text
        self.goto_error = goto_error
        self.selector_error = selector_error
        self.goto_calls = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append((url, wait_until, timeout))
        if self.goto_error:
            raise self.goto_error

    async def wait_for_selector(self, selector, timeout=None):
        if self.selector_error:
            raise self.selector_error

    async def eval_on_selector(self, selector, expression):
        return self.text

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page, close_error=None):
        self.page = page
        self.close_error = close_error
        self.closed = False

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True
        if self.close_error:
            raise self.close_error


class FakeChromium:
    def __init__(self, browser):
        self.browser = browser
        self.launches = []

    async def launch(self, **kwargs):
        self.launches.append(kwargs)
        return self.browser


class FakePlaywright:
    def __init__(self, browser):
        self.chromium = FakeChromium(browser)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


def install_browser(monkeypatch, page, close_error=None):
    browser = FakeBrowser(page, close_error=close_error)
    playwright = FakePlaywright(browser)
    monkeypatch.setattr(fetch_strategies, "async_playwright", lambda: playwright)
    return browser, playwright


@pytest.mark.asyncio
async def test_browser_strategy_reads_body_text_and_closes(monkeypatch):
    page = FakePage(text="  空気清浄機の\n\n選び方  " + "あ" * 20000)
    browser, playwright = install_browser(monkeypatch, page)

    text = await BrowserFetchStrategy(nav_timeout_ms=30000).attempt(URL)

    assert text.startswith("空気清浄機の 選び方 ")
    assert len(text) == 8000
    assert page.goto_calls == [(URL, "networkidle", 30000)]
    assert playwright.chromium.launches == [{"headless": True}]
    assert page.closed and browser.closed


@pytest.mark.asyncio
async def test_browser_strategy_closes_after_navigation_timeout(monkeypatch):
    page = FakePage(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded"))
    browser, _ = install_browser(monkeypatch, page)

    with pytest.raises(PlaywrightTimeoutError, match="30000ms"):
        await BrowserFetchStrategy().attempt(URL)

    assert page.closed and browser.closed


@pytest.mark.asyncio
async def test_browser_strategy_closes_when_body_never_appears(monkeypatch):
    page = FakePage(selector_error=PlaywrightTimeoutError("Timeout 10000ms exceeded"))
    browser, _ = install_browser(monkeypatch, page)

    with pytest.raises(PlaywrightTimeoutError, match="10000ms"):
        await BrowserFetchStrategy().attempt(URL)

    assert page.closed and browser.closed


@pytest.mark.asyncio
async def test_browser_strategy_fails_on_blank_page(monkeypatch):
    page = FakePage(text=" \n\t ")
    browser, _ = install_browser(monkeypatch, page)

    with pytest.raises(EmptyContentError, match=EMPTY_CONTENT_MESSAGE):
        await BrowserFetchStrategy().attempt(URL)

    assert browser.closed


@pytest.mark.asyncio
async def test_browser_close_failure_does_not_mask_navigation_error(monkeypatch):
    page = FakePage(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded"))
    browser, _ = install_browser(monkeypatch, page, close_error=RuntimeError("browser already gone"))

    with pytest.raises(PlaywrightTimeoutError, match="30000ms"):
        await BrowserFetchStrategy().attempt(URL)

    assert browser.closed


STATUS_ROUTES = {
    "/forbidden": (403, {}),
    "/missing": (404, {}),
    "/busy": (503, {"Retry-After": "30"}),
}


@pytest.fixture
def status_server():
    hits = Counter()

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            hits[self.path] += 1
            status, headers = STATUS_ROUTES[self.path]
            self.send_response(status)
            for name, value in headers.items():
                self.send_header(name, value)
            self.send_header("Content-Length", "0")
            self.end_headers()

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}", hits
    server.shutdown()
    server.server_close()


def local_session(**kwargs):
    session = build_retry_session(retries=2, **kwargs)
    session.trust_env = False
    return session


@pytest.mark.asyncio
async def test_retry_session_retries_forbidden_but_not_missing(status_server):
    base_url, hits = status_server
    strategy = HttpFetchStrategy(session_factory=lambda: local_session(backoff_factor=0))

    with pytest.raises(HttpStatusError) as forbidden:
        await strategy.attempt(base_url + "/forbidden")
    with pytest.raises(HttpStatusError) as missing:
        await strategy.attempt(base_url + "/missing")

    assert forbidden.value.status_code == 403
    assert missing.value.status_code == 404
    assert hits["/forbidden"] == 3
    assert hits["/missing"] == 1


@pytest.mark.asyncio
async def test_retry_session_ignores_long_retry_after(status_server):
    base_url, hits = status_server
    strategy = HttpFetchStrategy(session_factory=local_session)

    started = time.monotonic()
    with pytest.raises(HttpStatusError, match="HTTP 503"):
        await strategy.attempt(base_url + "/busy")

    assert time.monotonic() - started < 10
    assert hits["/busy"] == 3
