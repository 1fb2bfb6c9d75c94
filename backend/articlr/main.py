"""
Main FastAPI application for Articlr
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from articlr.api import generate
from articlr.config import ALLOWED_ORIGINS
from articlr.errors import ArticlrError
from articlr.services.logger import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

MALFORMED_REQUEST_MESSAGE = "リクエストの形式が正しくありません。"

app = FastAPI(
    title="Articlr API",
    description="SEO article generator: competitor scraping, outline, full article",
    version="1.0.0"
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(ArticlrError)
async def articlr_error_handler(request: Request, exc: ArticlrError):
    """Render pipeline errors as {error, warnings?, outline?} with their status"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same 400 {error} shape as other input errors"""
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": MALFORMED_REQUEST_MESSAGE})


# Include routers
app.include_router(generate.router, prefix="/api", tags=["generate"])


@app.get("/health")
def health_check():
    """Health check endpoint - synchronous for faster response"""
    return {"status": "healthy", "service": "Articlr API"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Articlr API",
        "version": "1.0.0",
        "docs": "/docs"
    }
