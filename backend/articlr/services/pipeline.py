"""
Article pipeline: Validate -> Acquire -> Outline -> Article -> Respond.

Each phase either hands its artifact to the next one or stops the run with an
error that still carries what was produced so far (warnings, outline).
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from articlr.errors import ArticleGenerationError, InputValidationError, OutlineGenerationError
from articlr.schemas.requests import GenerateArticleRequest
from articlr.schemas.responses import Article, GenerateArticleResponse, Heading, Outline
from articlr.services.article_service import ArticleService, get_article_service
from articlr.services.content_fetcher_service import ContentFetcherService, get_content_fetcher_service
from articlr.services.outline_service import OutlineService, get_outline_service

logger = logging.getLogger(__name__)

MISSING_KEYWORD_MESSAGE = "キーワードを入力してください。"
MISSING_URLS_MESSAGE = "URLを少なくとも1つ入力してください。"


@dataclass
class PipelineResult:
    outline: Outline
    article: Article
    headings: List[Heading] = field(default_factory=list)
    warnings: List[Dict[str, str]] = field(default_factory=list)

    def to_response(self) -> GenerateArticleResponse:
        return GenerateArticleResponse(
            title=self.article.h1,
            introduction=self.article.introduction,
            summary=self.article.summary,
            outline=self.outline,
            article=self.article,
            headings=self.headings,
            warnings=self.warnings,
        )


def flatten_headings(article: Article) -> List[Heading]:
    """Walk sections in document order: each h2, then its h3 children."""
    headings = []
    for section in article.sections:
        if section.h2:
            headings.append(Heading(level="h2", text=section.h2, body=section.content))
        for sub in section.subsections:
            if sub.h3:
                headings.append(Heading(level="h3", text=sub.h3, body=sub.content))
    return headings


class ArticlePipeline:
    """Runs one request end to end. Collaborators are injected and shared read-only."""

    def __init__(
        self,
        fetcher: Optional[ContentFetcherService] = None,
        outline_service: Optional[OutlineService] = None,
        article_service: Optional[ArticleService] = None,
    ):
        self.fetcher = fetcher or get_content_fetcher_service()
        self.outline_service = outline_service or get_outline_service()
        self.article_service = article_service or get_article_service()

    @staticmethod
    def validate(request: GenerateArticleRequest) -> tuple:
        keyword = (request.keyword or "").strip()
        if not keyword:
            logger.warning("keyword is missing in request body")
            raise InputValidationError(MISSING_KEYWORD_MESSAGE)

        urls = request.candidate_urls()
        if not urls:
            logger.warning("No URLs provided")
            raise InputValidationError(MISSING_URLS_MESSAGE)

        return keyword, urls

    async def run(self, request: GenerateArticleRequest) -> PipelineResult:
        """
        Raises:
            InputValidationError: blank keyword or no URLs (no network call made)
            NoSourcesAvailable: every URL failed
            OutlineGenerationError: carries warnings
            ArticleGenerationError: carries warnings and the outline
        """
        started = time.monotonic()
        keyword, urls = self.validate(request)
        logger.info("Generating article for %r from %d URLs: %s", keyword, len(urls), urls)

        results = await self.fetcher.acquire_sources(urls)
        warnings = [result.warning.to_dict() for result in results if not result.ok]
        sources = [(result.url, result.text) for result in results if result.ok]
        logger.info("Acquire finished in %dms", (time.monotonic() - started) * 1000)

        try:
            outline = await self.outline_service.generate_outline(keyword, sources)
        except OutlineGenerationError as exc:
            raise OutlineGenerationError(exc.message, warnings=warnings) from exc

        try:
            article = await self.article_service.generate_article(keyword, outline)
        except ArticleGenerationError as exc:
            raise ArticleGenerationError(
                exc.message,
                warnings=warnings,
                outline=outline.model_dump(),
            ) from exc

        result = PipelineResult(
            outline=outline,
            article=article,
            headings=flatten_headings(article),
            warnings=warnings,
        )
        logger.info("Article pipeline succeeded with %d warnings", len(warnings))
        return result
