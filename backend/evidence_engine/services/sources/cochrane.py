"""
Cochrane Library data source.

Cochrane reviews are the highest tier of synthesized evidence, so this
adapter uses a stricter inclusion threshold than the others.
"""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from evidence_engine.core.config import settings
from evidence_engine.core.logging import get_logger
from evidence_engine.schemas.literature import LiteratureQuery
from evidence_engine.schemas.publication import EvidenceQuality, Publication, SourceType
from evidence_engine.services.evidence.quality import ReviewQualityModel
from evidence_engine.services.evidence.recency import parse_date
from evidence_engine.services.evidence.records import ReviewRecord
from evidence_engine.services.evidence.relevance import ReviewRelevanceScorer

from .base import BaseSource, extract_records

logger = get_logger(__name__)

DEFAULT_LIMIT = 20
JOURNAL_NAME = "Cochrane Database of Systematic Reviews"

_NON_WORD = re.compile(r"\W+")


def build_search_params(query: LiteratureQuery) -> Dict[str, Any]:
    params: Dict[str, Any] = {}

    if query.keywords:
        params["query"] = " OR ".join(query.keywords)
    if query.review_type:
        params["type"] = query.review_type
    if query.date_from:
        params["dateFrom"] = query.date_from.isoformat()
    if query.date_to:
        params["dateTo"] = query.date_to.isoformat()

    params["limit"] = query.max_results or DEFAULT_LIMIT

    if query.page:
        params["page"] = query.page
    return params


def review_keywords(record: ReviewRecord) -> List[str]:
    """First five long title words plus outcome names."""
    title_words = [w for w in _NON_WORD.split(record.title.lower()) if len(w) > 3]
    keywords = title_words[:5]
    keywords.extend(o.outcome.lower() for o in record.outcomes if o.outcome)
    return list(dict.fromkeys(keywords))


class CochraneSource(BaseSource):
    """Review repository adapter."""

    source_type = SourceType.COCHRANE
    entity_field = "reviews"
    inclusion_threshold = 0.4
    DEFAULT_COOLDOWN_SECONDS = 2.0

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("cooldown_seconds", settings.cochrane_cooldown_seconds)
        super().__init__(ReviewQualityModel(), ReviewRelevanceScorer(), **kwargs)
        self.base_url = (base_url or settings.cochrane_base_url).rstrip("/")

    @property
    def name(self) -> str:
        return "Cochrane"

    async def _fetch_records(self, query: LiteratureQuery) -> List[Any]:
        payload = await self._get_json(self.base_url, build_search_params(query))
        return extract_records(payload, self.entity_field)

    def _normalize(self, raw: Any) -> ReviewRecord:
        return ReviewRecord.model_validate(raw)

    def _to_publication(
        self, record: ReviewRecord, quality: EvidenceQuality, relevance: float, now: datetime
    ) -> Publication:
        return Publication(
            source=self.source_type,
            source_id=record.source_id,
            title=record.title,
            abstract=record.abstract or record.main_results,
            authors=record.authors,
            journal=JOURNAL_NAME,
            publication_date=parse_date(record.dated) or now,
            doi=record.doi,
            url=f"https://doi.org/{record.doi}" if record.doi else None,
            keywords=review_keywords(record),
            evidence_quality=quality,
            relevance_score=relevance,
            processed_at=now,
        )

    async def get_review_details(self, identifier: str) -> Optional[Publication]:
        """
        Fetch one review by Cochrane id or DOI.

        Returns:
            Publication, or None when the review is missing or Cochrane is unavailable
        """
        return await self._lookup(f"{self.base_url}/{quote(identifier, safe='')}")
