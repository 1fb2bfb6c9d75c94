"""
Content fetcher service for competitor articles.
Tries each fetch strategy in order (headless browser first, plain HTTP as
fallback) and fans out over all candidate URLs without letting one failure
affect the others.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from articlr.config import BROWSER_ENABLED
from articlr.errors import AcquisitionError, NoSourcesAvailable
from articlr.services.fetch_strategies import BrowserFetchStrategy, HttpFetchStrategy

logger = logging.getLogger(__name__)

ALL_SOURCES_FAILED_MESSAGE = "競合記事の取得に失敗しました。"


@dataclass(frozen=True)
class AcquisitionWarning:
    url: str
    message: str

    def to_dict(self) -> dict:
        return {"url": self.url, "message": self.message}


@dataclass(frozen=True)
class AcquisitionResult:
    """Outcome for one URL: exactly one of ``text`` or ``warning`` is set."""

    url: str
    text: Optional[str] = None
    warning: Optional[AcquisitionWarning] = None

    def __post_init__(self):
        if (self.text is None) == (self.warning is None):
            raise ValueError("AcquisitionResult needs exactly one of text or warning")

    @property
    def ok(self) -> bool:
        return self.text is not None


def default_strategies() -> list:
    strategies = []
    if BROWSER_ENABLED:
        strategies.append(BrowserFetchStrategy())
    strategies.append(HttpFetchStrategy())
    return strategies


class ContentFetcherService:
    """Service for acquiring article text from competitor URLs"""

    def __init__(self, strategies: Optional[Sequence] = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        if not self.strategies:
            raise ValueError("At least one fetch strategy is required")

    async def fetch_content(self, url: str) -> str:
        """
        Fetch article text for a single URL.

        Each strategy is attempted exactly once, in order. When all of them
        fail, the last strategy's error message is reported.

        Raises:
            AcquisitionError: every strategy failed
        """
        last_message = ""
        for index, strategy in enumerate(self.strategies):
            try:
                text = await strategy.attempt(url)
            except Exception as exc:
                last_message = str(exc) or exc.__class__.__name__
                logger.warning("[%s] Scraping failed for %s: %s", strategy.name, url, last_message)
                if index + 1 < len(self.strategies):
                    logger.info("Attempting %s fallback for %s", self.strategies[index + 1].name, url)
                continue

            if index > 0:
                logger.info("Fallback succeeded for %s", url)
            return text

        raise AcquisitionError(url, last_message)

    async def _acquire_one(self, url: str) -> AcquisitionResult:
        try:
            text = await self.fetch_content(url)
        except AcquisitionError as exc:
            logger.error("Failed to scrape %s: %s", url, exc.message)
            return AcquisitionResult(url=url, warning=AcquisitionWarning(url, exc.message))
        return AcquisitionResult(url=url, text=text)

    async def acquire_all(self, urls: Sequence[str]) -> List[AcquisitionResult]:
        """Fetch every URL concurrently; results are returned in input order."""
        return list(await asyncio.gather(*(self._acquire_one(url) for url in urls)))

    async def acquire_sources(self, urls: Sequence[str]) -> List[AcquisitionResult]:
        """
        Like ``acquire_all`` but fails when nothing usable came back.

        Raises:
            NoSourcesAvailable: ``urls`` is empty or every fetch failed
        """
        if not urls:
            raise NoSourcesAvailable(ALL_SOURCES_FAILED_MESSAGE, warnings=[])

        results = await self.acquire_all(urls)
        if not any(result.ok for result in results):
            logger.error("Scraping failed for all %d URLs", len(results))
            raise NoSourcesAvailable(
                ALL_SOURCES_FAILED_MESSAGE,
                warnings=[result.warning.to_dict() for result in results],
            )

        logger.info(
            "Successfully scraped %d of %d sources",
            sum(1 for result in results if result.ok),
            len(results),
        )
        return results


# Global service instance
_content_fetcher_service: Optional[ContentFetcherService] = None


def get_content_fetcher_service() -> ContentFetcherService:
    """Get or initialize the global content fetcher service instance"""
    global _content_fetcher_service
    if _content_fetcher_service is None:
        _content_fetcher_service = ContentFetcherService()
    return _content_fetcher_service
