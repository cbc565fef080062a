"""
Publication deduplication and ranking.

Deduplication is needed because the same guideline or review can be
returned by more than one publisher or source. Identity is the collapsed,
lowercased title plus the first author (or issuing organization).
"""
import re
from typing import Iterable, List, Optional

from evidence_engine.schemas.publication import Publication

_WHITESPACE = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "").strip().lower()


def dedup_key(publication: Publication) -> str:
    return f"{_collapse(publication.title)}-{_collapse(publication.first_author)}"


def deduplicate_publications(publications: Iterable[Publication]) -> List[Publication]:
    """
    Remove duplicates by dedup key; the first occurrence wins.

    Args:
        publications: Publications in encounter order

    Returns:
        Unique publications, encounter order preserved
    """
    seen = set()
    unique = []

    for publication in publications:
        key = dedup_key(publication)
        if key in seen:
            continue
        seen.add(key)
        unique.append(publication)

    return unique


def rank_by_relevance(publications: Iterable[Publication], limit: Optional[int] = None) -> List[Publication]:
    """
    Sort by relevance score, highest first, and optionally truncate.

    The sort is stable: equal scores keep their encounter order.
    """
    ranked = sorted(publications, key=lambda p: p.relevance_score, reverse=True)
    if limit is not None:
        return ranked[:limit]
    return ranked
