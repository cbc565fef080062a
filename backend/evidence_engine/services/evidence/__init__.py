"""
Per-record evidence processing.

Package Structure:
- records.py: Canonical intermediate records (tolerant field-name normalization)
- quality.py: Per-source evidence quality models
- relevance.py: Per-source keyword relevance scorers
- ranking.py: Deduplication and relevance ranking of publications
- recency.py: Date parsing and age helpers
"""
from .records import ArticleRecord, GuidelineRecord, ReviewRecord, TrialRecord
from .quality import (
    QualityModel,
    TrialQualityModel,
    ReviewQualityModel,
    GuidelineQualityModel,
    ArticleQualityModel,
)
from .relevance import (
    RelevanceScorer,
    TrialRelevanceScorer,
    ReviewRelevanceScorer,
    GuidelineRelevanceScorer,
    ArticleRelevanceScorer,
)
from .ranking import dedup_key, deduplicate_publications, rank_by_relevance

__all__ = [
    # Records
    "ArticleRecord",
    "GuidelineRecord",
    "ReviewRecord",
    "TrialRecord",

    # Quality
    "QualityModel",
    "TrialQualityModel",
    "ReviewQualityModel",
    "GuidelineQualityModel",
    "ArticleQualityModel",

    # Relevance
    "RelevanceScorer",
    "TrialRelevanceScorer",
    "ReviewRelevanceScorer",
    "GuidelineRelevanceScorer",
    "ArticleRelevanceScorer",

    # Ranking
    "dedup_key",
    "deduplicate_publications",
    "rank_by_relevance",
]
