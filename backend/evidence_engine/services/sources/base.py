"""
Base types and interfaces for evidence sources.

Every source adapter follows the same flow: build source-specific
parameters, wait for its own RateLimiter, issue a GET, pull the record list
out of whichever response envelope came back, then normalize, grade, score
and threshold-filter each record. Upstream failures degrade the source to
an empty result; they never escape ``search``.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx

from evidence_engine.core.config import settings
from evidence_engine.core.exceptions import (
    EmptyQueryError,
    RecordProcessingError,
    SourceError,
    SourceHTTPError,
    SourceParseError,
    SourceRateLimitError,
    SourceTimeoutError,
)
from evidence_engine.core.logging import get_logger
from evidence_engine.schemas.literature import LiteratureQuery
from evidence_engine.schemas.publication import EvidenceQuality, Publication, SourceType
from evidence_engine.services.evidence.quality import QualityModel
from evidence_engine.services.evidence.recency import utc_now
from evidence_engine.services.evidence.relevance import RelevanceScorer

from .rate_limiter import RateLimiter

logger = get_logger(__name__)


def extract_records(payload: Any, entity_field: str) -> List[Any]:
    """
    Pull the record list out of a response body.

    Tries, in order: ``{"results": [...]}``, ``{<entity_field>: [...]}``,
    a bare list, ``{"data": [...]}``. Returns [] when nothing matches.
    """
    if isinstance(payload, dict):
        for field in ("results", entity_field):
            if isinstance(payload.get(field), list):
                return payload[field]
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    return []


def _record_id(raw: Any) -> str:
    if isinstance(raw, dict):
        for key in ("nctId", "NCTId", "id", "pmid", "doi"):
            if raw.get(key):
                return str(raw[key])
    return ""


class BaseSource(ABC):
    """
    Abstract base class for all evidence sources.

    To add a new source:
    1. Subclass BaseSource and set source_type, entity_field, inclusion_threshold
    2. Provide a quality model and a relevance scorer
    3. Implement name, _fetch_records, _normalize and _to_publication
    4. Register it in build_default_sources()
    """

    source_type: SourceType
    entity_field: str = "results"
    inclusion_threshold: float = 0.3
    DEFAULT_COOLDOWN_SECONDS: float = 1.0

    def __init__(
        self,
        quality_model: QualityModel,
        relevance_scorer: RelevanceScorer,
        cooldown_seconds: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rate_limiter: Optional[RateLimiter] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.quality_model = quality_model
        self.relevance_scorer = relevance_scorer
        cooldown = self.DEFAULT_COOLDOWN_SECONDS if cooldown_seconds is None else cooldown_seconds
        self.rate_limiter = rate_limiter or RateLimiter(cooldown, name=self.name)
        self._timeout = timeout or settings.http_timeout_seconds
        self._transport = transport
        self._now = now

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the data source."""

    @property
    def cooldown_seconds(self) -> float:
        return self.rate_limiter.min_interval

    async def search(self, query: LiteratureQuery) -> List[Publication]:
        """
        Search this source for publications matching the query.

        Raises:
            EmptyQueryError: before any request when the query has no keyword

        Returns:
            Publications that passed this source's relevance threshold
        """
        if not query.has_keywords:
            raise EmptyQueryError()

        logger.info(f"Searching {self.name}: {', '.join(query.keywords)}")

        try:
            raw_records = await self._fetch_records(query)
        except SourceError as e:
            logger.warning(f"{self.name} unavailable, contributing no results: {e}")
            return []

        publications = self._finalize(self._process(raw_records, query.keywords), query)
        logger.info(f"{self.name}: {len(publications)} of {len(raw_records)} records kept")
        return publications

    @abstractmethod
    async def _fetch_records(self, query: LiteratureQuery) -> List[Any]:
        """Issue the outbound request(s) and return raw records."""

    @abstractmethod
    def _normalize(self, raw: Any) -> Any:
        """Map one raw record onto this source's canonical intermediate record."""

    @abstractmethod
    def _to_publication(self, record: Any, quality: EvidenceQuality, relevance: float, now: datetime) -> Publication:
        """Build the canonical Publication from a graded record."""

    def _finalize(self, publications: List[Publication], query: LiteratureQuery) -> List[Publication]:
        return publications

    def _process(self, raw_records: List[Any], keywords: List[str], apply_threshold: bool = True) -> List[Publication]:
        now = self._now()
        publications = []

        for raw in raw_records:
            try:
                publication = self._process_record(raw, keywords, now, apply_threshold)
            except RecordProcessingError as e:
                logger.warning(str(e))
                continue
            if publication is not None:
                publications.append(publication)

        return publications

    def _process_record(
        self, raw: Any, keywords: List[str], now: datetime, apply_threshold: bool
    ) -> Optional[Publication]:
        try:
            record = self._normalize(raw)
            quality = self.quality_model.assess(record, now)
            relevance = self.relevance_scorer.score(record, keywords, now)
            if apply_threshold and relevance < self.inclusion_threshold:
                return None
            return self._to_publication(record, quality, relevance, now)
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            raise RecordProcessingError(self.name, _record_id(raw), str(e)) from e

    def _headers(self, accept: str = "application/json") -> Dict[str, str]:
        return {"Accept": accept, "User-Agent": settings.USER_AGENT}

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None, accept: str = "application/json") -> httpx.Response:
        """Rate-limited GET; any non-200 outcome becomes a SourceError."""
        await self.rate_limiter.wait()

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url, params=params, headers=self._headers(accept))
        except httpx.TimeoutException as e:
            raise SourceTimeoutError(self.name, self._timeout) from e
        except httpx.HTTPError as e:
            raise SourceError(self.name, f"Transport failure: {e}") from e

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise SourceRateLimitError(self.name, int(retry_after) if retry_after and retry_after.isdigit() else None)
        if response.status_code != 200:
            raise SourceHTTPError(self.name, response.status_code, response.reason_phrase)

        return response

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._get(url, params)
        try:
            return response.json()
        except ValueError as e:
            raise SourceParseError(self.name, str(e)) from e

    async def _lookup(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Publication]:
        """Fetch one record by identifier; no keyword threshold applies."""
        try:
            payload = await self._get_json(url, params)
        except SourceError as e:
            logger.warning(f"{self.name}: could not fetch {url}: {e}")
            return None

        records = extract_records(payload, self.entity_field)
        if not records and isinstance(payload, dict) and payload:
            records = [payload]

        processed = self._process(records[:1], [], apply_threshold=False)
        return processed[0] if processed else None
