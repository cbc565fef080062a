"""
ClinicalTrials.gov data source.

ClinicalTrials.gov is the registry of clinical studies run around the world:
- API v2 (https://clinicaltrials.gov/api/v2/studies), no key required
- Studies come back either flat (camelCase / PascalCase field names) or in
  the nested ``protocolSection`` layout; TrialRecord accepts both
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from evidence_engine.core.config import settings
from evidence_engine.core.logging import get_logger
from evidence_engine.schemas.literature import LiteratureQuery
from evidence_engine.schemas.publication import EvidenceQuality, Publication, SourceType
from evidence_engine.services.evidence.quality import TrialQualityModel
from evidence_engine.services.evidence.recency import parse_date
from evidence_engine.services.evidence.records import TrialRecord
from evidence_engine.services.evidence.relevance import TrialRelevanceScorer

from .base import BaseSource, extract_records

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 50
REGISTRY_NAME = "ClinicalTrials.gov"

STUDY_FIELDS = ",".join([
    "NCTId", "BriefTitle", "OfficialTitle", "BriefSummary", "DetailedDescription",
    "OverallStatus", "Phase", "StudyType", "PrimaryPurpose", "Condition", "InterventionName",
    "PrimaryOutcomeMeasure", "SecondaryOutcomeMeasure", "StartDate", "CompletionDate",
    "EnrollmentCount", "HasResults", "Sponsor", "LocationFacility", "LocationCity", "LocationCountry",
])


def build_search_params(query: LiteratureQuery) -> Dict[str, Any]:
    params: Dict[str, Any] = {}

    if query.keywords:
        params["query.term"] = " OR ".join(f'"{k}"' for k in query.keywords)
    if query.conditions:
        params["query.cond"] = ",".join(query.conditions)
    if query.interventions:
        params["query.intr"] = ",".join(query.interventions)
    if query.phases:
        params["filter.phase"] = ",".join(query.phases)
    if query.statuses:
        params["filter.overallStatus"] = ",".join(query.statuses)
    if query.study_type:
        params["filter.studyType"] = query.study_type
    if query.results_available:
        params["filter.results"] = "WITH_RESULTS"
    if query.date_from:
        params["filter.studyFirstPostDateFrom"] = query.date_from.isoformat()
    if query.date_to:
        params["filter.studyFirstPostDateTo"] = query.date_to.isoformat()

    params["pageSize"] = query.max_results or DEFAULT_PAGE_SIZE
    params["format"] = "json"
    params["fields"] = STUDY_FIELDS
    return params


def trial_abstract(record: TrialRecord) -> str:
    """Readable abstract assembled from summary, design details and primary outcomes."""
    parts = []

    if record.brief_summary:
        parts.append(record.brief_summary)

    details = []
    if record.overall_status:
        details.append(f"Status: {record.overall_status}")
    if record.study_type:
        details.append(f"Study Type: {record.study_type}")
    if record.phases:
        details.append(f"Phase: {', '.join(record.phases)}")
    if record.enrollment:
        details.append(f"Enrollment: {record.enrollment} participants")
    if details:
        parts.append(f"Study Details: {'; '.join(details)}.")

    if record.primary_outcomes:
        parts.append(f"Primary Outcomes: {'; '.join(record.primary_outcomes[:3])}.")

    return " ".join(parts) or "Clinical trial information available."


def trial_sponsors(record: TrialRecord) -> List[str]:
    names = [s.name for s in record.sponsors if s.name]
    return names[:5] or [REGISTRY_NAME]


def trial_keywords(record: TrialRecord) -> List[str]:
    keywords = list(record.conditions[:5])
    keywords.extend(record.interventions[:3])
    if record.study_type:
        keywords.append(record.study_type.lower())
    keywords.extend(p.lower() for p in record.phases)
    return list(dict.fromkeys(k for k in keywords if k))


class ClinicalTrialsSource(BaseSource):
    """Trial registry adapter."""

    source_type = SourceType.CLINICAL_TRIALS
    entity_field = "studies"
    inclusion_threshold = 0.3
    DEFAULT_COOLDOWN_SECONDS = 1.0

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("cooldown_seconds", settings.clinical_trials_cooldown_seconds)
        super().__init__(TrialQualityModel(), TrialRelevanceScorer(), **kwargs)
        self.base_url = (base_url or settings.clinical_trials_base_url).rstrip("/")

    @property
    def name(self) -> str:
        return REGISTRY_NAME

    async def _fetch_records(self, query: LiteratureQuery) -> List[Any]:
        payload = await self._get_json(self.base_url, build_search_params(query))
        return extract_records(payload, self.entity_field)

    def _normalize(self, raw: Any) -> TrialRecord:
        return TrialRecord.model_validate(raw)

    def _to_publication(
        self, record: TrialRecord, quality: EvidenceQuality, relevance: float, now: datetime
    ) -> Publication:
        source_id = record.source_id
        return Publication(
            source=self.source_type,
            source_id=source_id,
            title=record.title,
            abstract=trial_abstract(record),
            authors=trial_sponsors(record),
            journal=REGISTRY_NAME,
            publication_date=parse_date(record.start_date) or now,
            url=f"https://clinicaltrials.gov/study/{source_id}",
            keywords=trial_keywords(record),
            evidence_quality=quality,
            relevance_score=relevance,
            processed_at=now,
        )

    async def get_trial_details(self, nct_id: str) -> Optional[Publication]:
        """
        Fetch one study by NCT identifier.

        Returns:
            Publication, or None when the registry has no such study or is unavailable
        """
        return await self._lookup(f"{self.base_url}/{nct_id}", {"format": "json", "fields": STUDY_FIELDS})
