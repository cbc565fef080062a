"""
Canonical intermediate records.

Each source returns records in several spellings (camelCase, PascalCase,
ClinicalTrials.gov v2 nested modules, hand-built dicts). The models below
are the single normalization pre-pass: they accept every known spelling and
expose one set of snake_case fields to the quality and relevance models.
"""
import hashlib
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def stable_id(prefix: str, *parts: Optional[str]) -> str:
    """Deterministic fallback identifier for records that lack one."""
    digest = hashlib.sha1("|".join(p or "" for p in parts).encode("utf-8")).hexdigest()
    return f"{prefix}-{digest[:12]}"


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _names(value: Any, *keys: str) -> List[str]:
    """Flatten a list of strings or dicts into strings using the first key present."""
    names = []
    for item in _as_list(value):
        if isinstance(item, dict):
            for key in keys:
                if item.get(key):
                    names.append(str(item[key]))
                    break
        elif item:
            names.append(str(item))
    return names


class _Record(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True
    )


# === Trial registry ===

class TrialSponsor(_Record):
    name: str = ""
    sponsor_class: Optional[str] = Field(default=None, validation_alias=AliasChoices("class", "sponsor_class"))


class TrialRecord(_Record):
    nct_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("nctId", "NCTId", "nct_id"))
    brief_title: Optional[str] = Field(default=None, validation_alias=AliasChoices("briefTitle", "BriefTitle", "brief_title"))
    official_title: Optional[str] = Field(default=None, validation_alias=AliasChoices("officialTitle", "OfficialTitle", "official_title"))
    brief_summary: Optional[str] = Field(default=None, validation_alias=AliasChoices("briefSummary", "BriefSummary", "brief_summary"))
    detailed_description: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("detailedDescription", "DetailedDescription", "detailed_description")
    )
    overall_status: Optional[str] = Field(default=None, validation_alias=AliasChoices("overallStatus", "OverallStatus", "overall_status"))
    phases: List[str] = Field(default_factory=list, validation_alias=AliasChoices("phase", "Phase", "phases"))
    study_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("studyType", "StudyType", "study_type"))
    masking: Optional[str] = None
    enrollment: Optional[int] = Field(default=None, validation_alias=AliasChoices("enrollment", "EnrollmentCount"))
    conditions: List[str] = Field(default_factory=list, validation_alias=AliasChoices("conditions", "Condition"))
    interventions: List[str] = Field(default_factory=list, validation_alias=AliasChoices("interventions", "InterventionName"))
    primary_outcomes: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("primaryOutcomes", "PrimaryOutcomeMeasure", "primary_outcomes")
    )
    start_date: Optional[str] = Field(default=None, validation_alias=AliasChoices("startDate", "StartDate", "start_date"))
    results_available: bool = Field(
        default=False, validation_alias=AliasChoices("resultsAvailable", "HasResults", "hasResults", "results_available")
    )
    sponsors: List[TrialSponsor] = Field(default_factory=list, validation_alias=AliasChoices("sponsors", "Sponsor"))

    @model_validator(mode="before")
    @classmethod
    def _flatten_protocol_section(cls, data: Any) -> Any:
        """Flatten the ClinicalTrials.gov v2 ``protocolSection`` layout."""
        if not isinstance(data, dict) or "protocolSection" not in data:
            return data

        protocol = data.get("protocolSection") or {}
        ident = protocol.get("identificationModule") or {}
        status = protocol.get("statusModule") or {}
        design = protocol.get("designModule") or {}
        description = protocol.get("descriptionModule") or {}
        sponsor_module = protocol.get("sponsorCollaboratorsModule") or {}

        sponsors = []
        if sponsor_module.get("leadSponsor"):
            sponsors.append(sponsor_module["leadSponsor"])
        sponsors.extend(sponsor_module.get("collaborators") or [])

        masking_info = (design.get("designInfo") or {}).get("maskingInfo") or {}

        return {
            "nctId": ident.get("nctId"),
            "briefTitle": ident.get("briefTitle"),
            "officialTitle": ident.get("officialTitle"),
            "briefSummary": description.get("briefSummary"),
            "detailedDescription": description.get("detailedDescription"),
            "overallStatus": status.get("overallStatus"),
            "phases": design.get("phases") or [],
            "studyType": design.get("studyType"),
            "masking": masking_info.get("masking"),
            "enrollment": (design.get("enrollmentInfo") or {}).get("count"),
            "conditions": (protocol.get("conditionsModule") or {}).get("conditions") or [],
            "interventions": (protocol.get("armsInterventionsModule") or {}).get("interventions") or [],
            "primaryOutcomes": (protocol.get("outcomesModule") or {}).get("primaryOutcomes") or [],
            "startDate": (status.get("startDateStruct") or {}).get("date"),
            "resultsAvailable": bool(data.get("hasResults", False)),
            "sponsors": sponsors,
        }

    @field_validator("phases", "conditions", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> List[str]:
        return _names(value)

    @field_validator("interventions", mode="before")
    @classmethod
    def _intervention_names(cls, value: Any) -> List[str]:
        return _names(value, "name")

    @field_validator("primary_outcomes", mode="before")
    @classmethod
    def _outcome_measures(cls, value: Any) -> List[str]:
        return _names(value, "measure")

    @field_validator("masking", mode="before")
    @classmethod
    def _masking_level(cls, value: Any) -> Optional[str]:
        if isinstance(value, dict):
            value = value.get("masking")
        return str(value).upper() if value else None

    @field_validator("enrollment", mode="before")
    @classmethod
    def _enrollment_count(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("count")
        return value

    @field_validator("overall_status", "study_type", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Optional[str]:
        return str(value).upper() if value else None

    @field_validator("sponsors", mode="before")
    @classmethod
    def _sponsor_dicts(cls, value: Any) -> List[Any]:
        return [item if isinstance(item, dict) else {"name": str(item)} for item in _as_list(value) if item]

    @model_validator(mode="after")
    def _require_title(self) -> "TrialRecord":
        if not (self.brief_title or self.official_title):
            raise ValueError("trial has no title")
        return self

    @property
    def title(self) -> str:
        return self.brief_title or self.official_title or ""

    @property
    def source_id(self) -> str:
        return self.nct_id or stable_id("ct", self.title)

    @property
    def phases_upper(self) -> List[str]:
        return [p.upper() for p in self.phases]


# === Review repository ===

class ReviewOutcome(_Record):
    outcome: str = ""
    effect: Optional[str] = None
    certainty: Optional[str] = None


class ReviewRecord(_Record):
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "reviewId", "ID"))
    doi: Optional[str] = Field(default=None, validation_alias=AliasChoices("doi", "DOI"))
    title: str = Field(validation_alias=AliasChoices("title", "Title"))
    abstract: Optional[str] = Field(default=None, validation_alias=AliasChoices("abstract", "Abstract"))
    authors: List[str] = Field(default_factory=list, validation_alias=AliasChoices("authors", "Authors"))
    publication_date: Optional[str] = Field(default=None, validation_alias=AliasChoices("publicationDate", "PublicationDate", "publication_date"))
    last_modified: Optional[str] = Field(default=None, validation_alias=AliasChoices("lastModified", "LastModified", "last_modified"))
    review_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("reviewType", "ReviewType", "review_type"))
    studies_included: Optional[int] = Field(default=None, validation_alias=AliasChoices("studiesIncluded", "StudiesIncluded", "studies_included"))
    participants_included: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("participantsIncluded", "ParticipantsIncluded", "participants_included")
    )
    main_results: Optional[str] = Field(default=None, validation_alias=AliasChoices("mainResults", "MainResults", "main_results"))
    authors_conclusions: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("authorsConclusions", "AuthorsConclusions", "authors_conclusions")
    )
    quality_of_evidence: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("qualityOfEvidence", "QualityOfEvidence", "quality_of_evidence")
    )
    outcomes: List[ReviewOutcome] = Field(default_factory=list, validation_alias=AliasChoices("outcomes", "Outcomes"))

    @field_validator("authors", mode="before")
    @classmethod
    def _author_names(cls, value: Any) -> List[str]:
        return _names(value, "name")

    @field_validator("outcomes", mode="before")
    @classmethod
    def _outcome_dicts(cls, value: Any) -> List[Any]:
        return [item if isinstance(item, dict) else {"outcome": str(item)} for item in _as_list(value) if item]

    @field_validator("review_type", "quality_of_evidence", mode="before")
    @classmethod
    def _slug(cls, value: Any) -> Optional[str]:
        return str(value).strip().lower().replace(" ", "-") if value else None

    @property
    def source_id(self) -> str:
        return self.id or self.doi or stable_id("cochrane", self.title)

    @property
    def dated(self) -> Optional[str]:
        return self.publication_date or self.last_modified


# === Guideline publishers ===

class GuidelineRecommendation(_Record):
    recommendation: str = ""
    strength: Optional[str] = None
    evidence_level: Optional[str] = Field(default=None, validation_alias=AliasChoices("evidenceLevel", "evidence_level"))
    population: Optional[str] = None

    @field_validator("strength", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Optional[str]:
        return str(value).lower() if value else None

    @field_validator("evidence_level", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Optional[str]:
        return str(value).upper() if value else None


class GuidelineRecord(_Record):
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "guidelineId", "ID"))
    title: str = Field(validation_alias=AliasChoices("title", "Title"))
    publisher: str = ""
    organization: str = Field(default="", validation_alias=AliasChoices("organization", "Organization"))
    summary: Optional[str] = Field(default=None, validation_alias=AliasChoices("summary", "Summary"))
    full_text: Optional[str] = Field(default=None, validation_alias=AliasChoices("fullText", "FullText", "full_text"))
    publication_date: Optional[str] = Field(default=None, validation_alias=AliasChoices("publicationDate", "PublicationDate", "publication_date"))
    last_updated: Optional[str] = Field(default=None, validation_alias=AliasChoices("lastUpdated", "LastUpdated", "last_updated"))
    version: Optional[str] = None
    doi: Optional[str] = Field(default=None, validation_alias=AliasChoices("doi", "DOI"))
    url: Optional[str] = Field(default=None, validation_alias=AliasChoices("url", "URL"))
    specialty: Optional[str] = None
    condition: Optional[str] = None
    recommendations: List[GuidelineRecommendation] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    methodology: Optional[str] = None

    @field_validator("recommendations", mode="before")
    @classmethod
    def _recommendation_dicts(cls, value: Any) -> List[Any]:
        return [item if isinstance(item, dict) else {"recommendation": str(item)} for item in _as_list(value) if item]

    @field_validator("keywords", mode="before")
    @classmethod
    def _keyword_list(cls, value: Any) -> List[str]:
        return _names(value)

    @property
    def source_id(self) -> str:
        return self.id or stable_id(self.publisher.lower() or "guideline", self.title)


# === Article database ===

class ArticleRecord(_Record):
    pmid: str = Field(validation_alias=AliasChoices("pmid", "PMID"))
    title: str = Field(validation_alias=AliasChoices("title", "ArticleTitle"))
    abstract: Optional[str] = Field(default=None, validation_alias=AliasChoices("abstract", "AbstractText"))
    authors: List[str] = Field(default_factory=list)
    journal: str = ""
    volume: Optional[str] = None
    issue: Optional[str] = None
    pages: Optional[str] = None
    publication_date: Optional[str] = Field(default=None, validation_alias=AliasChoices("publicationDate", "publication_date"))
    doi: Optional[str] = None
    mesh_terms: List[str] = Field(default_factory=list, validation_alias=AliasChoices("meshTerms", "mesh_terms"))
    keywords: List[str] = Field(default_factory=list)
    publication_types: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("publicationType", "publicationTypes", "publication_types")
    )

    @field_validator("authors", mode="before")
    @classmethod
    def _author_names(cls, value: Any) -> List[str]:
        return _names(value, "name")

    @field_validator("journal", mode="before")
    @classmethod
    def _journal_title(cls, value: Any) -> str:
        if isinstance(value, dict):
            return value.get("title") or ""
        return value or ""

    @field_validator("mesh_terms", "keywords", "publication_types", mode="before")
    @classmethod
    def _string_list(cls, value: Any) -> List[str]:
        return _names(value)
