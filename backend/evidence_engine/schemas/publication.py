"""
Publication Schemas

The canonical evidence record produced by every source adapter, plus the
evidence-quality structure attached to it.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceType(str, Enum):
    """Evidence sources known to the engine."""
    PUBMED = "pubmed"
    COCHRANE = "cochrane"
    CLINICAL_TRIALS = "clinical-trials"
    GUIDELINES = "guidelines"


class EvidenceGrade(str, Enum):
    """Letter grade summarizing methodological trustworthiness."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class QualityFactors(BaseModel):
    """Human-readable description of the inputs that drove a quality score."""
    model_config = ConfigDict(frozen=True)

    study_design: str
    sample_size: str
    methodology: str
    bias: str


class EvidenceQuality(BaseModel):
    """Graded evidence quality of a single publication."""
    model_config = ConfigDict(frozen=True)

    grade: EvidenceGrade
    score: int = Field(ge=0, le=100)
    factors: QualityFactors


class Publication(BaseModel):
    """
    Canonical normalized evidence record.

    Built once per search call and never mutated afterwards; the model is
    frozen so downstream collaborators cannot alter a shared instance.
    """
    model_config = ConfigDict(frozen=True)

    source: SourceType
    source_id: str = Field(description="Identifier native to the source (PMID, NCT id, review id...)")
    title: str
    abstract: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    journal: str = ""
    publication_date: datetime
    doi: Optional[str] = None
    url: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    mesh_terms: List[str] = Field(default_factory=list)
    evidence_quality: EvidenceQuality
    relevance_score: float = Field(ge=0.0, le=1.0)
    # Populated by the care-plan matching collaborator, never by this engine
    care_plan_matches: List[str] = Field(default_factory=list)
    processed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def first_author(self) -> str:
        return self.authors[0] if self.authors else ""
