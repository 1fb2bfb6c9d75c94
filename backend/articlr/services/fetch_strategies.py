"""
Fetch strategies for competitor articles.

Each strategy exposes ``name`` and ``async attempt(url) -> str`` and raises on
failure. Returned text is whitespace-collapsed and truncated to the configured
maximum so downstream prompts stay bounded.
"""
import asyncio
import logging
import re
from typing import Callable, Optional

import requests
from bs4 import BeautifulSoup
from playwright.async_api import async_playwright
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from articlr.config import (
    BROWSER_BODY_TIMEOUT_MS,
    BROWSER_NAV_TIMEOUT_MS,
    HTTP_FETCH_RETRIES,
    HTTP_FETCH_TIMEOUT,
    MAX_SOURCE_CHARS,
)
from articlr.errors import EmptyContentError, FetchStrategyError, HttpStatusError
from articlr.services.encoding import decode_html

logger = logging.getLogger(__name__)

EMPTY_CONTENT_MESSAGE = "本文を取得できませんでした。"
FORBIDDEN_MESSAGE = "アクセスが拒否されました（403 Forbidden）"

RETRY_STATUS_CODES = (403, 408, 425, 429, 500, 502, 503, 504)

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "ja,en-US;q=0.9,en;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
}

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str, max_chars: int = MAX_SOURCE_CHARS) -> str:
    """Collapse whitespace runs to single spaces, trim and truncate."""
    collapsed = _WHITESPACE_RE.sub(" ", text or "").strip()
    return collapsed[:max_chars]


def extract_body_text(html: str) -> str:
    """Return the text content of the document body."""
    soup = BeautifulSoup(html, "lxml")

    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()

    body = soup.body or soup
    return body.get_text(separator=" ")


class BrowserFetchStrategy:
    """Render the page in headless Chromium and read the body's innerText."""

    name = "browser"

    def __init__(
        self,
        nav_timeout_ms: int = BROWSER_NAV_TIMEOUT_MS,
        body_timeout_ms: int = BROWSER_BODY_TIMEOUT_MS,
        max_chars: int = MAX_SOURCE_CHARS,
    ):
        self.nav_timeout_ms = nav_timeout_ms
        self.body_timeout_ms = body_timeout_ms
        self.max_chars = max_chars

    async def attempt(self, url: str) -> str:
        logger.info("[browser] Start scrape: %s", url)
        # Fresh browser per fetch, never shared across URLs
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True)
            page = None
            try:
                page = await browser.new_page()
                await page.goto(url, wait_until="networkidle", timeout=self.nav_timeout_ms)
                await page.wait_for_selector("body", timeout=self.body_timeout_ms)
                raw_text = await page.eval_on_selector("body", "el => el.innerText || ''")
            finally:
                if page is not None:
                    try:
                        await page.close()
                    except Exception as exc:
                        logger.debug("Ignoring page close error for %s: %s", url, exc)
                try:
                    await browser.close()
                except Exception as exc:
                    logger.debug("Ignoring browser close error for %s: %s", url, exc)
                logger.debug("Closed browser instance for %s", url)

        text = normalize_text(raw_text, self.max_chars)
        if not text:
            raise EmptyContentError(EMPTY_CONTENT_MESSAGE)

        logger.info("[browser] Scraped %d characters from %s", len(text), url)
        return text


def build_retry_session(retries: int = HTTP_FETCH_RETRIES, backoff_factor: float = 0.5) -> requests.Session:
    """Session that retries transient statuses and network errors on GET.

    Retry-After is ignored: a server asking for a long pause would otherwise
    stall the request well past the per-try timeout.
    """
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=frozenset(["GET"]),
        backoff_factor=backoff_factor,
        respect_retry_after_header=False,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update(BROWSER_HEADERS)
    return session


class HttpFetchStrategy:
    """Plain GET with browser-like headers, charset recovery and retries."""

    name = "http"

    def __init__(
        self,
        timeout: float = HTTP_FETCH_TIMEOUT,
        max_chars: int = MAX_SOURCE_CHARS,
        session_factory: Optional[Callable[[], requests.Session]] = None,
    ):
        self.timeout = timeout
        self.max_chars = max_chars
        self.session_factory = session_factory or build_retry_session

    async def attempt(self, url: str) -> str:
        return await asyncio.to_thread(self._fetch_sync, url)

    def _fetch_sync(self, url: str) -> str:
        logger.info("[http] Fetching via HTTP client: %s", url)
        try:
            with self.session_factory() as session:
                response = session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchStrategyError(str(exc)) from exc

        if response.status_code == 403:
            raise HttpStatusError(403, FORBIDDEN_MESSAGE)
        if response.status_code >= 400:
            raise HttpStatusError(response.status_code, f"HTTP {response.status_code} エラー")

        html = decode_html(response.content, response.headers)
        text = normalize_text(extract_body_text(html), self.max_chars)
        if not text:
            raise EmptyContentError(EMPTY_CONTENT_MESSAGE)

        logger.info("[http] Extracted %d characters from %s", len(text), url)
        return text
