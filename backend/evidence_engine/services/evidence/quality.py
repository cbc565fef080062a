"""
Evidence quality models.

One QualityModel per source type. Each model starts from a base score,
applies additive adjustments, clamps to [0, 100] and derives the letter
grade from its own thresholds. The grade is always computed from the final
score, so score and grade can never disagree.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from evidence_engine.schemas.publication import EvidenceGrade, EvidenceQuality, QualityFactors

from .recency import months_since, parse_date, utc_now, years_since
from .records import ArticleRecord, GuidelineRecord, ReviewRecord, TrialRecord

GradeThresholds = Tuple[Tuple[int, EvidenceGrade], ...]

MIN_SCORE = 0
MAX_SCORE = 100

PUBLISHER_ORGANIZATIONS: Dict[str, str] = {
    "NICE": "National Institute for Health and Care Excellence",
    "AHA": "American Heart Association",
    "CDC": "Centers for Disease Control and Prevention",
}


class QualityModel(ABC):
    """Base class for per-source evidence quality heuristics."""

    BASE_SCORE: int = 50
    GRADE_THRESHOLDS: GradeThresholds = (
        (80, EvidenceGrade.A),
        (60, EvidenceGrade.B),
        (40, EvidenceGrade.C),
    )

    @abstractmethod
    def assess(self, record: Any, now: Optional[datetime] = None) -> EvidenceQuality:
        """Grade one normalized record."""

    def grade_for(self, score: int) -> EvidenceGrade:
        for threshold, grade in self.GRADE_THRESHOLDS:
            if score >= threshold:
                return grade
        return EvidenceGrade.D

    def _result(self, score: int, factors: QualityFactors) -> EvidenceQuality:
        clamped = max(MIN_SCORE, min(MAX_SCORE, score))
        return EvidenceQuality(grade=self.grade_for(clamped), score=clamped, factors=factors)


class TrialQualityModel(QualityModel):
    """Trial registry: phase, design, status, size, blinding, funding, recency."""

    BASE_SCORE = 60
    GRADE_THRESHOLDS = (
        (85, EvidenceGrade.A),
        (70, EvidenceGrade.B),
        (50, EvidenceGrade.C),
    )

    LATE_PHASES = ("PHASE3", "PHASE4")
    EARLY_PHASES = ("PHASE1", "EARLY_PHASE1")
    LATE_PHASE_BONUS = 20
    PHASE2_BONUS = 10
    EARLY_PHASE_BONUS = 5

    INTERVENTIONAL_BONUS = 15
    OBSERVATIONAL_BONUS = 5

    COMPLETED_BONUS = 15
    RESULTS_BONUS = 10
    ACTIVE_NOT_RECRUITING_BONUS = 5
    # Terminated, suspended, withdrawn and any unrecognized status
    HALTED_PENALTY = -15

    LARGE_ENROLLMENT = 1000
    LARGE_ENROLLMENT_BONUS = 10
    MEDIUM_ENROLLMENT = 100
    MEDIUM_ENROLLMENT_BONUS = 5
    SMALL_ENROLLMENT = 20
    SMALL_ENROLLMENT_PENALTY = -10

    MULTI_BLIND_MASKING = ("DOUBLE", "TRIPLE", "QUADRUPLE")
    MULTI_BLIND_BONUS = 10
    SINGLE_BLIND_BONUS = 5

    NIH_BONUS = 5
    INDUSTRY_ONLY_PENALTY = -5

    RECENT_YEARS = 2
    RECENT_BONUS = 5
    STALE_YEARS = 10
    STALE_PENALTY = -10

    def assess(self, record: TrialRecord, now: Optional[datetime] = None) -> EvidenceQuality:
        now = now or utc_now()
        score = self.BASE_SCORE
        phases = record.phases_upper

        if any(p in self.LATE_PHASES for p in phases):
            score += self.LATE_PHASE_BONUS
        elif "PHASE2" in phases:
            score += self.PHASE2_BONUS
        elif any(p in self.EARLY_PHASES for p in phases):
            score += self.EARLY_PHASE_BONUS

        if record.study_type == "INTERVENTIONAL":
            score += self.INTERVENTIONAL_BONUS
        elif record.study_type == "OBSERVATIONAL":
            score += self.OBSERVATIONAL_BONUS

        status = record.overall_status
        if status == "COMPLETED":
            score += self.COMPLETED_BONUS
            if record.results_available:
                score += self.RESULTS_BONUS
        elif status == "ACTIVE_NOT_RECRUITING":
            score += self.ACTIVE_NOT_RECRUITING_BONUS
        elif status != "RECRUITING":
            score += self.HALTED_PENALTY

        enrollment = record.enrollment
        if enrollment:
            if enrollment >= self.LARGE_ENROLLMENT:
                score += self.LARGE_ENROLLMENT_BONUS
            elif enrollment >= self.MEDIUM_ENROLLMENT:
                score += self.MEDIUM_ENROLLMENT_BONUS
            elif enrollment < self.SMALL_ENROLLMENT:
                score += self.SMALL_ENROLLMENT_PENALTY

        if record.masking in self.MULTI_BLIND_MASKING:
            score += self.MULTI_BLIND_BONUS
        elif record.masking == "SINGLE":
            score += self.SINGLE_BLIND_BONUS

        has_nih = any(
            (s.sponsor_class or "").upper() == "NIH" or "NIH" in s.name
            for s in record.sponsors
        )
        has_industry = any((s.sponsor_class or "").upper() == "INDUSTRY" for s in record.sponsors)
        if has_nih:
            score += self.NIH_BONUS
        if has_industry and not has_nih:
            score += self.INDUSTRY_ONLY_PENALTY

        # A trial without a start date is treated as old
        age = years_since(parse_date(record.start_date), now)
        if age is not None and age <= self.RECENT_YEARS:
            score += self.RECENT_BONUS
        elif age is None or age > self.STALE_YEARS:
            score += self.STALE_PENALTY

        if has_nih:
            bias = "Low risk - NIH funded"
        elif has_industry:
            bias = "Moderate risk - Industry funded"
        else:
            bias = "Unknown funding"

        factors = QualityFactors(
            study_design=f"{record.study_type or 'Clinical Trial'} - {', '.join(record.phases) or 'Phase not specified'}",
            sample_size=f"{enrollment} participants" if enrollment else "Sample size not specified",
            methodology=f"{record.masking} masking" if record.masking else "Masking not specified",
            bias=bias,
        )
        return self._result(score, factors)


class ReviewQualityModel(QualityModel):
    """Review repository: review type, included studies, participants, certainty."""

    BASE_SCORE = 85
    GRADE_THRESHOLDS = (
        (90, EvidenceGrade.A),
        (75, EvidenceGrade.B),
        (60, EvidenceGrade.C),
    )

    REVIEW_TYPE_SCORES: Dict[str, int] = {
        "meta-analysis": 95,
        "systematic-review": 90,
        "protocol": 70,
    }

    MANY_STUDIES = 10
    MANY_STUDIES_BONUS = 5
    FEW_STUDIES = 3
    FEW_STUDIES_PENALTY = -10

    LARGE_POPULATION = 1000
    LARGE_POPULATION_BONUS = 5
    SMALL_POPULATION = 100
    SMALL_POPULATION_PENALTY = -5

    CERTAINTY_ADJUSTMENTS: Dict[str, int] = {
        "high": 5,
        "moderate": 0,
        "low": -10,
        "very-low": -20,
    }

    def assess(self, record: ReviewRecord, now: Optional[datetime] = None) -> EvidenceQuality:
        score = self.REVIEW_TYPE_SCORES.get(record.review_type or "", self.BASE_SCORE)

        studies = record.studies_included
        if studies:
            if studies >= self.MANY_STUDIES:
                score += self.MANY_STUDIES_BONUS
            elif studies < self.FEW_STUDIES:
                score += self.FEW_STUDIES_PENALTY

        participants = record.participants_included
        if participants:
            if participants >= self.LARGE_POPULATION:
                score += self.LARGE_POPULATION_BONUS
            elif participants < self.SMALL_POPULATION:
                score += self.SMALL_POPULATION_PENALTY

        if record.quality_of_evidence:
            score += self.CERTAINTY_ADJUSTMENTS.get(record.quality_of_evidence, 0)

        factors = QualityFactors(
            study_design=record.review_type or "Systematic review",
            sample_size=f"{participants} participants" if participants else "Sample size not specified",
            methodology="Cochrane systematic review methodology",
            bias="Low risk - Cochrane quality standards",
        )
        return self._result(score, factors)


class GuidelineQualityModel(QualityModel):
    """Guideline publishers: issuing body, currency, methodology, recommendation strength."""

    BASE_SCORE = 80
    GRADE_THRESHOLDS = (
        (90, EvidenceGrade.A),
        (75, EvidenceGrade.B),
        (60, EvidenceGrade.C),
    )

    PUBLISHER_SCORES: Dict[str, int] = {
        "NICE": 95,
        "AHA": 90,
        "CDC": 88,
    }

    CURRENT_MONTHS = 12
    CURRENT_BONUS = 5
    OUTDATED_MONTHS = 60
    OUTDATED_PENALTY = -10

    SYSTEMATIC_METHOD_BONUS = 5
    STRONG_LEVEL_A_BONUS = 3

    def assess(self, record: GuidelineRecord, now: Optional[datetime] = None) -> EvidenceQuality:
        now = now or utc_now()
        score = self.PUBLISHER_SCORES.get(record.publisher.upper(), self.BASE_SCORE)

        updated = parse_date(record.last_updated) or parse_date(record.publication_date)
        age = months_since(updated, now)
        if age is not None:
            if age <= self.CURRENT_MONTHS:
                score += self.CURRENT_BONUS
            elif age > self.OUTDATED_MONTHS:
                score += self.OUTDATED_PENALTY

        if "systematic" in (record.methodology or "").lower():
            score += self.SYSTEMATIC_METHOD_BONUS

        if any(r.strength == "strong" and r.evidence_level == "A" for r in record.recommendations):
            score += self.STRONG_LEVEL_A_BONUS

        organization = (
            PUBLISHER_ORGANIZATIONS.get(record.publisher.upper())
            or record.organization
            or record.publisher
            or "issuing organization"
        )
        factors = QualityFactors(
            study_design="Clinical practice guideline",
            sample_size="Population-based recommendations",
            methodology=record.methodology or "Expert consensus with evidence review",
            bias=f"Low risk - {organization} standards",
        )
        return self._result(score, factors)


class ArticleQualityModel(QualityModel):
    """Article database: publication type and venue."""

    BASE_SCORE = 50
    GRADE_THRESHOLDS = (
        (80, EvidenceGrade.A),
        (60, EvidenceGrade.B),
        (40, EvidenceGrade.C),
    )

    SYNTHESIS_TERMS = ("systematic", "meta-analysis")
    SYNTHESIS_BONUS = 30
    TRIAL_TERMS = ("randomized", "clinical trial")
    TRIAL_BONUS = 20

    HIGH_IMPACT_JOURNALS = (
        "new england journal of medicine",
        "the lancet",
        "jama",
        "bmj",
        "annals of internal medicine",
    )
    HIGH_IMPACT_BONUS = 10

    def assess(self, record: ArticleRecord, now: Optional[datetime] = None) -> EvidenceQuality:
        score = self.BASE_SCORE
        types = [t.lower() for t in record.publication_types]

        if any(term in t for t in types for term in self.SYNTHESIS_TERMS):
            score += self.SYNTHESIS_BONUS
        if any(term in t for t in types for term in self.TRIAL_TERMS):
            score += self.TRIAL_BONUS

        journal = record.journal.lower()
        high_impact = any(name in journal for name in self.HIGH_IMPACT_JOURNALS)
        if high_impact:
            score += self.HIGH_IMPACT_BONUS

        factors = QualityFactors(
            study_design=", ".join(record.publication_types) or "Automated assessment",
            sample_size="Not assessed",
            methodology="Not assessed",
            bias="High-impact journal" if high_impact else "Not assessed",
        )
        return self._result(score, factors)
