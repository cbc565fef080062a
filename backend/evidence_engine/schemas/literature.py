"""
Literature Search Schemas

Pydantic models for the generic search query accepted by every adapter and
for the request/response bodies of the literature API.
"""
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .publication import Publication

SourceName = Literal["pubmed", "cochrane", "guidelines", "clinical-trials", "all"]


class LiteratureQuery(BaseModel):
    """
    Generic search query.

    Each adapter maps the subset of filters it understands onto its own
    parameter names and ignores the rest. Keyword emptiness is checked by the
    adapters themselves so that a caller error surfaces from ``search``.
    """
    keywords: List[str]

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    max_results: Optional[int] = Field(default=None, ge=1, le=100)

    # Article database
    publication_types: List[str] = Field(default_factory=list)

    # Review repository
    review_type: Optional[Literal["systematic-review", "meta-analysis", "protocol"]] = None
    page: Optional[int] = Field(default=None, ge=1)

    # Trial registry
    conditions: List[str] = Field(default_factory=list)
    interventions: List[str] = Field(default_factory=list)
    phases: List[str] = Field(default_factory=list)
    statuses: List[str] = Field(default_factory=list)
    study_type: Optional[Literal["INTERVENTIONAL", "OBSERVATIONAL"]] = None
    results_available: bool = False

    # Guideline publishers
    organization: Optional[str] = None
    specialty: Optional[str] = None
    condition: Optional[str] = None

    @field_validator("keywords")
    @classmethod
    def _strip_keywords(cls, value: List[str]) -> List[str]:
        return [k.strip() for k in value if k and k.strip()]

    @property
    def has_keywords(self) -> bool:
        return bool(self.keywords)


class LiteratureSearchRequest(BaseModel):
    """Request body for a multi-source literature search."""
    keywords: List[str] = Field(min_length=1, description="At least one keyword is required")
    sources: List[SourceName] = Field(default_factory=lambda: ["all"])
    max_results: int = Field(default=20, ge=1, le=100)
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @field_validator("keywords")
    @classmethod
    def _require_non_blank(cls, value: List[str]) -> List[str]:
        cleaned = [k.strip() for k in value if k and k.strip()]
        if not cleaned:
            raise ValueError("At least one keyword is required")
        return cleaned

    def to_query(self) -> LiteratureQuery:
        return LiteratureQuery(
            keywords=self.keywords,
            date_from=self.date_from,
            date_to=self.date_to,
            max_results=self.max_results,
        )


class LiteratureSearchResponse(BaseModel):
    """Ranked, deduplicated results of a multi-source search."""
    success: bool = True
    results: List[Publication]
    total_results: int
    sources: List[str] = Field(description="Display names of the sources that answered")
    search_time_ms: int
