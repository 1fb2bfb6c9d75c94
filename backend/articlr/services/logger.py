"""Logging setup shared by the API and the scraping/generation services."""
import logging

from articlr.config import LOG_LEVEL, NOISY_LOG_LEVEL

APP_LOG_LEVEL = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
_NOISY_LEVEL = getattr(logging, NOISY_LOG_LEVEL.upper(), logging.WARNING)

_configured = False


def configure_logging() -> None:
    """Configure root logging once per process."""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=APP_LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Reduce noise from framework/network libraries unless explicitly overridden.
    for logger_name in (
        "uvicorn.access",
        "urllib3",
        "httpx",
        "httpcore",
        "anthropic._base_client",
        "asyncio",
    ):
        logging.getLogger(logger_name).setLevel(_NOISY_LEVEL)

    _configured = True
