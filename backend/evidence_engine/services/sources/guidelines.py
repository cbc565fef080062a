"""
Clinical practice guideline publishers.

One adapter fronts several publishers (NICE, AHA, CDC), each with its own
endpoint. A search visits every selected publisher through the adapter's
single RateLimiter; a publisher that fails is skipped and the others still
contribute. The same guideline can be syndicated by more than one
publisher, so the merged list is deduplicated before ranking.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from evidence_engine.core.config import settings
from evidence_engine.core.exceptions import SourceError, UnknownPublisherError
from evidence_engine.core.logging import get_logger
from evidence_engine.schemas.literature import LiteratureQuery
from evidence_engine.schemas.publication import EvidenceQuality, Publication, SourceType
from evidence_engine.services.evidence.quality import PUBLISHER_ORGANIZATIONS, GuidelineQualityModel
from evidence_engine.services.evidence.ranking import deduplicate_publications, rank_by_relevance
from evidence_engine.services.evidence.recency import parse_date
from evidence_engine.services.evidence.records import GuidelineRecord
from evidence_engine.services.evidence.relevance import GuidelineRelevanceScorer

from .base import BaseSource, extract_records

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 20
ABSTRACT_FALLBACK_CHARS = 500


class GuidelinesSource(BaseSource):
    """Guideline publishers adapter."""

    source_type = SourceType.GUIDELINES
    entity_field = "guidelines"
    inclusion_threshold = 0.3
    DEFAULT_COOLDOWN_SECONDS = 1.5

    def __init__(self, publisher_urls: Optional[Dict[str, str]] = None, **kwargs):
        kwargs.setdefault("cooldown_seconds", settings.guidelines_cooldown_seconds)
        super().__init__(GuidelineQualityModel(), GuidelineRelevanceScorer(), **kwargs)
        urls = publisher_urls if publisher_urls is not None else settings.GUIDELINE_PUBLISHER_URLS
        self.publisher_urls = {key.upper(): url.rstrip("/") for key, url in urls.items()}

    @property
    def name(self) -> str:
        return "Guidelines"

    @property
    def publishers(self) -> List[str]:
        return list(self.publisher_urls)

    def select_publishers(self, organization: Optional[str]) -> List[str]:
        """Publishers to query; None or "all" selects every configured one."""
        if not organization or organization.lower() == "all":
            return self.publishers
        key = organization.upper()
        return [key] if key in self.publisher_urls else []

    def _build_params(self, query: LiteratureQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {"q": " ".join(query.keywords)}
        if query.specialty:
            params["specialty"] = query.specialty
        if query.condition:
            params["condition"] = query.condition
        if query.date_from:
            params["dateFrom"] = query.date_from.isoformat()
        if query.date_to:
            params["dateTo"] = query.date_to.isoformat()
        return params

    def _tag(self, raw: Any, publisher: str) -> Any:
        if not isinstance(raw, dict):
            return raw
        tagged = dict(raw)
        tagged["publisher"] = publisher
        if not (tagged.get("organization") or tagged.get("Organization")):
            tagged["organization"] = PUBLISHER_ORGANIZATIONS.get(publisher, publisher)
        return tagged

    async def _fetch_records(self, query: LiteratureQuery) -> List[Any]:
        selected = self.select_publishers(query.organization)
        if not selected:
            logger.warning(f"Guidelines: no configured publisher matches {query.organization!r}")
            return []

        params = self._build_params(query)
        records = []

        for publisher in selected:
            try:
                payload = await self._get_json(self.publisher_urls[publisher], params)
            except SourceError as e:
                logger.warning(f"Guidelines: {publisher} failed, skipping: {e}")
                continue
            records.extend(self._tag(raw, publisher) for raw in extract_records(payload, self.entity_field))

        return records

    def _normalize(self, raw: Any) -> GuidelineRecord:
        return GuidelineRecord.model_validate(raw)

    def _to_publication(
        self, record: GuidelineRecord, quality: EvidenceQuality, relevance: float, now: datetime
    ) -> Publication:
        organization = PUBLISHER_ORGANIZATIONS.get(record.publisher) or record.organization or record.publisher
        abstract = record.summary or (record.full_text[:ABSTRACT_FALLBACK_CHARS] if record.full_text else None)
        url = record.url
        if not url and record.id and record.publisher in self.publisher_urls:
            url = f"{self.publisher_urls[record.publisher]}/{quote(record.id, safe='')}"

        return Publication(
            source=self.source_type,
            source_id=record.source_id,
            title=record.title,
            abstract=abstract,
            authors=[organization] if organization else [],
            journal=f"{organization} Clinical Guidelines" if organization else "Clinical Guidelines",
            publication_date=parse_date(record.publication_date) or parse_date(record.last_updated) or now,
            doi=record.doi,
            url=url,
            keywords=record.keywords or [c for c in [record.condition] if c],
            evidence_quality=quality,
            relevance_score=relevance,
            processed_at=now,
        )

    def _finalize(self, publications: List[Publication], query: LiteratureQuery) -> List[Publication]:
        return rank_by_relevance(
            deduplicate_publications(publications),
            limit=query.max_results or DEFAULT_MAX_RESULTS,
        )

    async def get_guideline_details(self, organization: str, guideline_id: str) -> Optional[Publication]:
        """
        Fetch one guideline from a specific publisher.

        Raises:
            UnknownPublisherError: organization is not a configured publisher

        Returns:
            Publication, or None when the guideline is missing or the publisher is unavailable
        """
        publisher = (organization or "").upper()
        if publisher not in self.publisher_urls:
            raise UnknownPublisherError(organization)

        url = f"{self.publisher_urls[publisher]}/{quote(guideline_id, safe='')}"
        try:
            payload = await self._get_json(url)
        except SourceError as e:
            logger.warning(f"Guidelines: could not fetch {publisher}/{guideline_id}: {e}")
            return None

        records = extract_records(payload, self.entity_field)
        if not records and isinstance(payload, dict) and payload:
            records = [payload]

        tagged = [self._tag(raw, publisher) for raw in records[:1]]
        processed = self._process(tagged, [], apply_threshold=False)
        return processed[0] if processed else None
