"""
PubMed data source.

PubMed provides access to 36M+ biomedical literature citations through
NCBI's E-utilities:
- esearch (JSON) resolves the query to a list of PMIDs
- efetch (XML) returns the article records
- 3 requests/second without an API key, 10 with one

Both calls go through the adapter's RateLimiter.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from evidence_engine.core.config import settings
from evidence_engine.core.exceptions import SourceError
from evidence_engine.core.logging import get_logger
from evidence_engine.schemas.literature import LiteratureQuery
from evidence_engine.schemas.publication import EvidenceQuality, Publication, SourceType
from evidence_engine.services.evidence.quality import ArticleQualityModel
from evidence_engine.services.evidence.recency import parse_date
from evidence_engine.services.evidence.records import ArticleRecord
from evidence_engine.services.evidence.relevance import ArticleRelevanceScorer

from .base import BaseSource, extract_records
from .pubmed_xml import parse_articles

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 50


def build_search_term(query: LiteratureQuery) -> str:
    """
    Build the esearch term from the generic query.

    Keywords are OR-ed over Title/Abstract; date range and publication types
    are AND-ed on.
    """
    parts = []

    if query.keywords:
        keyword_query = " OR ".join(f'"{k}"[Title/Abstract]' for k in query.keywords)
        parts.append(f"({keyword_query})")

    if query.date_from or query.date_to:
        start = query.date_from.isoformat() if query.date_from else "1800"
        end = query.date_to.isoformat() if query.date_to else "3000"
        parts.append(f'"{start}"[Date - Publication] : "{end}"[Date - Publication]')

    if query.publication_types:
        type_query = " OR ".join(f'"{t}"[Publication Type]' for t in query.publication_types)
        parts.append(f"({type_query})")

    return " AND ".join(parts)


class PubMedSource(BaseSource):
    """Article database adapter."""

    source_type = SourceType.PUBMED
    entity_field = "idlist"
    inclusion_threshold = 0.3
    DEFAULT_COOLDOWN_SECONDS = 1.0

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("cooldown_seconds", settings.pubmed_cooldown_seconds)
        super().__init__(ArticleQualityModel(), ArticleRelevanceScorer(), **kwargs)
        self.api_key = api_key if api_key is not None else settings.PUBMED_API_KEY
        self.base_url = (base_url or settings.pubmed_base_url).rstrip("/")

    @property
    def name(self) -> str:
        return "PubMed"

    def _params(self, **params: Any) -> Dict[str, Any]:
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    async def _fetch_records(self, query: LiteratureQuery) -> List[Any]:
        pmids = await self._search_ids(build_search_term(query), query.max_results or DEFAULT_MAX_RESULTS)
        if not pmids:
            logger.info("PubMed: no matching PMIDs")
            return []
        return await self._fetch_articles(pmids)

    async def _search_ids(self, term: str, max_results: int) -> List[str]:
        payload = await self._get_json(
            f"{self.base_url}/esearch.fcgi",
            self._params(db="pubmed", term=term, retmax=max_results, retmode="json"),
        )
        esearch = payload.get("esearchresult") if isinstance(payload, dict) else None
        ids = extract_records(esearch if esearch is not None else payload, self.entity_field)
        return [str(pmid) for pmid in ids if pmid]

    async def _fetch_articles(self, pmids: List[str]) -> List[Dict]:
        response = await self._get(
            f"{self.base_url}/efetch.fcgi",
            self._params(db="pubmed", id=",".join(pmids), retmode="xml"),
            accept="application/xml",
        )
        return parse_articles(response.text)

    def _normalize(self, raw: Any) -> ArticleRecord:
        return ArticleRecord.model_validate(raw)

    def _to_publication(
        self, record: ArticleRecord, quality: EvidenceQuality, relevance: float, now: datetime
    ) -> Publication:
        return Publication(
            source=self.source_type,
            source_id=record.pmid,
            title=record.title,
            abstract=record.abstract,
            authors=record.authors,
            journal=record.journal,
            publication_date=parse_date(record.publication_date) or now,
            doi=record.doi,
            url=f"https://pubmed.ncbi.nlm.nih.gov/{record.pmid}/",
            keywords=record.keywords,
            mesh_terms=record.mesh_terms,
            evidence_quality=quality,
            relevance_score=relevance,
            processed_at=now,
        )

    async def get_article_details(self, pmid: str) -> Optional[Publication]:
        """
        Fetch a single article by PMID.

        Returns:
            Publication, or None when PubMed has no such article or is unavailable
        """
        try:
            articles = await self._fetch_articles([pmid])
        except SourceError as e:
            logger.warning(f"PubMed: could not fetch {pmid}: {e}")
            return None

        processed = self._process(articles[:1], [], apply_threshold=False)
        return processed[0] if processed else None
