"""
Multi-source evidence aggregation.

Fans a query out to the requested source adapters concurrently, then merges
their publications:
1. Source resolution ("all" expands to every registered source)
2. Concurrent adapter searches (a failing adapter is logged and skipped)
3. Deduplication (first occurrence wins)
4. Relevance ranking and truncation
"""
import asyncio
import math
import time
from typing import Dict, List, Optional, Sequence, Tuple

from evidence_engine.core.exceptions import EmptyQueryError, NoSourcesAvailableError, NoSourcesRequestedError
from evidence_engine.core.logging import get_logger
from evidence_engine.schemas.literature import LiteratureQuery, LiteratureSearchResponse
from evidence_engine.schemas.publication import Publication
from evidence_engine.services.evidence.ranking import deduplicate_publications, rank_by_relevance
from evidence_engine.services.sources.base import BaseSource

logger = get_logger(__name__)

ALL_SOURCES = "all"
DEFAULT_MAX_RESULTS = 20


class EvidenceAggregator:
    """Runs source adapters concurrently and merges their results."""

    def __init__(self, sources: Dict[str, BaseSource], default_max_results: int = DEFAULT_MAX_RESULTS):
        self.sources = dict(sources)
        self.default_max_results = default_max_results

    @property
    def source_names(self) -> List[str]:
        return list(self.sources)

    def get_source(self, name: str) -> Optional[BaseSource]:
        return self.sources.get(name)

    def resolve(self, names: Sequence[str]) -> List[Tuple[str, BaseSource]]:
        """
        Map requested names onto registered adapters, in request order.

        Raises:
            NoSourcesRequestedError: names is empty
            NoSourcesAvailableError: none of the names resolve to an adapter
        """
        if not names:
            raise NoSourcesRequestedError()

        expanded = []
        for name in names:
            if name == ALL_SOURCES:
                expanded.extend(self.sources)
            else:
                expanded.append(name)

        resolved = []
        for name in dict.fromkeys(expanded):
            source = self.sources.get(name)
            if source is None:
                logger.warning(f"Unknown source '{name}' requested, skipping")
                continue
            resolved.append((name, source))

        if not resolved:
            raise NoSourcesAvailableError(list(names))
        return resolved

    async def search_all(self, query: LiteratureQuery, sources: Sequence[str] = (ALL_SOURCES,)) -> List[Publication]:
        """
        Search every requested source and return the merged ranking.

        Raises:
            CallerError: no keyword, or no source requested
            NoSourcesAvailableError: none of the requested sources is registered

        Returns:
            Deduplicated publications, highest relevance first, at most
            query.max_results (or the default) long
        """
        if not query.has_keywords:
            raise EmptyQueryError()
        resolved = self.resolve(sources)

        publications, _ = await self._collect(query, resolved)
        return self._merge(publications, query.max_results or self.default_max_results)

    async def search_literature(
        self, query: LiteratureQuery, sources: Sequence[str] = (ALL_SOURCES,)
    ) -> LiteratureSearchResponse:
        """
        Search with an even per-source share of the result budget.

        Each adapter is asked for ceil(max_results / number_of_sources)
        records; the merged list is truncated to max_results.
        """
        start = time.perf_counter()

        if not query.has_keywords:
            raise EmptyQueryError()
        resolved = self.resolve(sources)

        max_results = query.max_results or self.default_max_results
        per_source = math.ceil(max_results / len(resolved))
        per_source_query = query.model_copy(update={"max_results": per_source})

        publications, answered = await self._collect(per_source_query, resolved)
        results = self._merge(publications, max_results)

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"Literature search returned {len(results)} results from {', '.join(answered) or 'no sources'} in {elapsed_ms}ms")

        return LiteratureSearchResponse(
            success=True,
            results=results,
            total_results=len(results),
            sources=answered,
            search_time_ms=elapsed_ms,
        )

    async def _collect(
        self, query: LiteratureQuery, resolved: List[Tuple[str, BaseSource]]
    ) -> Tuple[List[Publication], List[str]]:
        """Run adapters concurrently; results are concatenated in request order."""
        outcomes = await asyncio.gather(
            *(source.search(query) for _, source in resolved),
            return_exceptions=True,
        )

        publications: List[Publication] = []
        answered: List[str] = []

        for (_, source), outcome in zip(resolved, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"{source.name} search failed, skipping: {outcome}")
                continue
            if isinstance(outcome, BaseException):
                # CancelledError and friends
                raise outcome
            publications.extend(outcome)
            answered.append(source.name)

        return publications, answered

    def _merge(self, publications: List[Publication], limit: int) -> List[Publication]:
        unique = deduplicate_publications(publications)
        if len(unique) < len(publications):
            logger.info(f"Removed {len(publications) - len(unique)} duplicate publications")
        return rank_by_relevance(unique, limit=limit)
