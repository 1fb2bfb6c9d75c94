"""
Response schemas for Articlr API
"""
from pydantic import BaseModel, Field, ValidationInfo, field_validator
from typing import Any, Dict, List, Literal, Optional


def _dicts_only(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return value


class GeneratedModel(BaseModel):
    """Shape of a generative-service reply: null fields fall back to their defaults"""

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class OutlineSection(GeneratedModel):
    """One H2 of the outline with its H3 titles"""
    h2: str = ""
    subsections: List[str] = []

    @field_validator("subsections", mode="before")
    @classmethod
    def _coerce_subsections(cls, value: Any) -> Any:
        # Models sometimes answer with [{"h3": "..."}] instead of plain strings
        if isinstance(value, list):
            titles = [item.get("h3") or "" if isinstance(item, dict) else item for item in value]
            return [title for title in titles if isinstance(title, str)]
        return value


class Outline(GeneratedModel):
    """Heading-only structure generated before the article body"""
    h1: str = ""
    sections: List[OutlineSection] = []

    @field_validator("sections", mode="before")
    @classmethod
    def _sections_dicts_only(cls, value: Any) -> Any:
        return _dicts_only(value)


class ArticleSubsection(GeneratedModel):
    h3: str = ""
    content: str = ""


class ArticleSection(GeneratedModel):
    h2: str = ""
    content: str = ""
    subsections: List[ArticleSubsection] = []

    @field_validator("subsections", mode="before")
    @classmethod
    def _subsections_dicts_only(cls, value: Any) -> Any:
        return _dicts_only(value)


class Article(GeneratedModel):
    """Full article mirroring the outline with body text at every level"""
    h1: str = ""
    introduction: str = ""
    sections: List[ArticleSection] = []
    summary: str = ""

    @field_validator("sections", mode="before")
    @classmethod
    def _sections_dicts_only(cls, value: Any) -> Any:
        return _dicts_only(value)


class Heading(BaseModel):
    """Flattened heading entry in document order"""
    level: Literal["h2", "h3"]
    text: str
    body: str = ""


class WarningItem(BaseModel):
    """Per-URL acquisition failure"""
    url: str
    message: str


class GenerateArticleResponse(BaseModel):
    """Successful article generation"""
    title: str = Field(..., description="Article H1")
    introduction: str = ""
    summary: str = ""
    outline: Outline
    article: Article
    headings: List[Heading] = []
    warnings: List[WarningItem] = []


class ErrorResponse(BaseModel):
    """Error body; warnings/outline are present when they were produced"""
    error: str
    warnings: Optional[List[WarningItem]] = None
    outline: Optional[Dict[str, Any]] = None
