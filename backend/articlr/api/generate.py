"""
Article generation API endpoints
"""
import logging
import time

from fastapi import APIRouter, Depends

from articlr.schemas.requests import GenerateArticleRequest
from articlr.schemas.responses import ErrorResponse, GenerateArticleResponse
from articlr.services.pipeline import ArticlePipeline

logger = logging.getLogger(__name__)

router = APIRouter()

_pipeline = None


def get_pipeline() -> ArticlePipeline:
    """Pipeline shared across requests; it keeps no per-request state."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ArticlePipeline()
    return _pipeline


@router.post(
    "/generate",
    response_model=GenerateArticleResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def generate_article(
    request: GenerateArticleRequest,
    pipeline: ArticlePipeline = Depends(get_pipeline),
):
    """
    Scrape competitor articles, generate an outline, then the full article.
    Pipeline errors are rendered by the ArticlrError handler in main.py.
    """
    started = time.monotonic()
    logger.info("POST /api/generate called with keyword=%r", request.keyword)
    try:
        result = await pipeline.run(request)
    finally:
        logger.info("Finished /api/generate in %dms", (time.monotonic() - started) * 1000)
    return result.to_response()
