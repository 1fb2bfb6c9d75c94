"""
Error taxonomy for Articlr.

Pipeline errors carry the HTTP status and the partial artifacts that were
produced before the failing phase, so the API layer can render them without
knowing which phase failed.
"""
from typing import Any, Dict, List, Optional


class ArticlrError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class InputValidationError(ArticlrError):
    """Missing keyword or no usable URL. Raised before any network call."""

    status_code = 400


class UpstreamError(ArticlrError):
    """A phase failed after acquisition started; carries partial artifacts."""

    status_code = 502

    def __init__(
        self,
        message: str,
        warnings: Optional[List[Dict[str, str]]] = None,
        outline: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.warnings = warnings
        self.outline = outline

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.warnings is not None:
            payload["warnings"] = self.warnings
        if self.outline is not None:
            payload["outline"] = self.outline
        return payload


class NoSourcesAvailable(UpstreamError):
    """Every candidate URL failed to produce text."""


class GenerationError(UpstreamError):
    """The generative service failed or returned unusable content."""


class OutlineGenerationError(GenerationError):
    pass


class ArticleGenerationError(GenerationError):
    pass


class AcquisitionError(Exception):
    """Both fetch strategies failed for one URL. Recovered as a warning."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url
        self.message = message


class FetchStrategyError(Exception):
    """A single fetch strategy failed for a URL."""


class EmptyContentError(FetchStrategyError):
    pass


class HttpStatusError(FetchStrategyError):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class LLMError(Exception):
    """Transport or response-shape failure talking to the generative service."""


class LLMConfigurationError(LLMError):
    """No usable provider/API key is configured."""
