"""
Keyword relevance scorers.

Every keyword is matched case-insensitively as a substring against each
candidate field; each matching field adds a fixed weight. Contributions are
summed over all keywords (no normalization by keyword count), source bonuses
are added, and the total is clamped to [0, 1].
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable, List, Optional

from .recency import parse_date, utc_now, years_since
from .records import ArticleRecord, GuidelineRecord, ReviewRecord, TrialRecord


def _contains(text: Optional[str], keyword: str) -> bool:
    return bool(text) and keyword in text.lower()


def _any_contains(values: Iterable[str], keyword: str) -> bool:
    return any(_contains(v, keyword) for v in values)


class RelevanceScorer(ABC):
    """Base class for per-source keyword relevance heuristics."""

    def score(self, record: Any, keywords: List[str], now: Optional[datetime] = None) -> float:
        raw = self.raw_score(record, [k.lower() for k in keywords if k], now or utc_now())
        return round(max(0.0, min(raw, 1.0)), 4)

    @abstractmethod
    def raw_score(self, record: Any, keywords: List[str], now: datetime) -> float:
        """Unclamped score; keywords arrive lowercased."""


class TrialRelevanceScorer(RelevanceScorer):
    TITLE_WEIGHT = 0.6
    CONDITION_WEIGHT = 0.5
    INTERVENTION_WEIGHT = 0.5
    SUMMARY_WEIGHT = 0.3
    OUTCOME_WEIGHT = 0.4

    RESULTS_BONUS = 0.2
    LATE_PHASE_BONUS = 0.15
    PHASE2_BONUS = 0.1

    def raw_score(self, record: TrialRecord, keywords: List[str], now: datetime) -> float:
        score = 0.0
        conditions = " ".join(record.conditions)
        interventions = " ".join(record.interventions)

        for keyword in keywords:
            if _contains(record.title, keyword):
                score += self.TITLE_WEIGHT
            if _contains(conditions, keyword):
                score += self.CONDITION_WEIGHT
            if _contains(interventions, keyword):
                score += self.INTERVENTION_WEIGHT
            if _contains(record.brief_summary, keyword):
                score += self.SUMMARY_WEIGHT
            if _any_contains(record.primary_outcomes, keyword):
                score += self.OUTCOME_WEIGHT

        if record.overall_status == "COMPLETED" and record.results_available:
            score += self.RESULTS_BONUS

        phases = record.phases_upper
        if "PHASE3" in phases or "PHASE4" in phases:
            score += self.LATE_PHASE_BONUS
        elif "PHASE2" in phases:
            score += self.PHASE2_BONUS

        return score


class ReviewRelevanceScorer(RelevanceScorer):
    TITLE_WEIGHT = 0.5
    TEXT_WEIGHT = 0.3
    CONCLUSIONS_WEIGHT = 0.3
    OUTCOME_WEIGHT = 0.4

    VERY_RECENT_YEARS = 2
    VERY_RECENT_BONUS = 0.2
    RECENT_YEARS = 5
    RECENT_BONUS = 0.1
    STALE_YEARS = 10
    STALE_PENALTY = -0.1

    def raw_score(self, record: ReviewRecord, keywords: List[str], now: datetime) -> float:
        score = 0.0
        search_text = f"{record.title} {record.abstract or ''} {record.main_results or ''}"
        outcomes = [o.outcome for o in record.outcomes]

        for keyword in keywords:
            if _contains(record.title, keyword):
                score += self.TITLE_WEIGHT
            if _contains(search_text, keyword):
                score += self.TEXT_WEIGHT
            if _contains(record.authors_conclusions, keyword):
                score += self.CONCLUSIONS_WEIGHT
            if _any_contains(outcomes, keyword):
                score += self.OUTCOME_WEIGHT

        # An undated review is treated as old
        age = years_since(parse_date(record.dated), now)
        if age is None or age > self.STALE_YEARS:
            score += self.STALE_PENALTY
        elif age <= self.VERY_RECENT_YEARS:
            score += self.VERY_RECENT_BONUS
        elif age <= self.RECENT_YEARS:
            score += self.RECENT_BONUS

        return score


class GuidelineRelevanceScorer(RelevanceScorer):
    TITLE_WEIGHT = 0.6
    CONDITION_WEIGHT = 0.5
    TEXT_WEIGHT = 0.3
    SPECIALTY_WEIGHT = 0.2
    KEYWORD_WEIGHT = 0.4
    RECOMMENDATION_WEIGHT = 0.4

    def raw_score(self, record: GuidelineRecord, keywords: List[str], now: datetime) -> float:
        score = 0.0
        search_text = f"{record.title} {record.summary or ''} {record.condition or ''}"
        recommendations = [r.recommendation for r in record.recommendations]

        for keyword in keywords:
            if _contains(record.title, keyword):
                score += self.TITLE_WEIGHT
            if _contains(record.condition, keyword):
                score += self.CONDITION_WEIGHT
            if _contains(search_text, keyword):
                score += self.TEXT_WEIGHT
            if _contains(record.specialty, keyword):
                score += self.SPECIALTY_WEIGHT
            if _any_contains(record.keywords, keyword):
                score += self.KEYWORD_WEIGHT
            if _any_contains(recommendations, keyword):
                score += self.RECOMMENDATION_WEIGHT

        return score


class ArticleRelevanceScorer(RelevanceScorer):
    TITLE_WEIGHT = 0.4
    ABSTRACT_WEIGHT = 0.2
    MESH_WEIGHT = 0.3

    def raw_score(self, record: ArticleRecord, keywords: List[str], now: datetime) -> float:
        score = 0.0
        for keyword in keywords:
            if _contains(record.title, keyword):
                score += self.TITLE_WEIGHT
            if _contains(record.abstract, keyword):
                score += self.ABSTRACT_WEIGHT
            if _any_contains(record.mesh_terms, keyword):
                score += self.MESH_WEIGHT
        return score
