"""
Request schemas for Articlr API
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class GenerateArticleRequest(BaseModel):
    """Request to generate an article from competitor URLs"""
    model_config = ConfigDict(populate_by_name=True)

    # Presence is checked by the pipeline (400), not by pydantic (422)
    keyword: Optional[str] = Field(None, description="Target keyword")
    urls: Optional[List[Optional[str]]] = Field(default_factory=list, description="Competitor article URLs")
    competitor_url_1: Optional[str] = Field(None, alias="competitorUrl1")
    competitor_url_2: Optional[str] = Field(None, alias="competitorUrl2")
    competitor_url_3: Optional[str] = Field(None, alias="competitorUrl3")

    def candidate_urls(self) -> List[str]:
        """Merge the list and the three discrete fields; trimmed, non-empty, de-duplicated."""
        merged = list(self.urls or []) + [self.competitor_url_1, self.competitor_url_2, self.competitor_url_3]
        seen = set()
        candidates = []
        for url in merged:
            cleaned = (url or "").strip()
            if cleaned and cleaned not in seen:
                seen.add(cleaned)
                candidates.append(cleaned)
        return candidates
