"""
Multi-source evidence retrieval.

Package Structure:
- aggregator.py: Concurrent fan-out, deduplication and ranking across sources
"""
from .aggregator import ALL_SOURCES, EvidenceAggregator

__all__ = [
    "ALL_SOURCES",
    "EvidenceAggregator",
]
