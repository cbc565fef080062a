"""
FastAPI Dependencies

FastAPI dependency injection for configuration and the evidence aggregator.
"""
from functools import lru_cache

from evidence_engine.core.config import Settings
from evidence_engine.services.retrieval import EvidenceAggregator
from evidence_engine.services.sources import build_default_sources


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings.

    Uses lru_cache to ensure settings are only loaded once.
    Can be overridden in tests using app.dependency_overrides.
    """
    return Settings()


@lru_cache()
def get_aggregator() -> EvidenceAggregator:
    """
    Get the shared evidence aggregator.

    One instance per process, so each source adapter's cooldown is shared
    by every request. Override in tests to inject adapters backed by
    httpx.MockTransport:

        app.dependency_overrides[get_aggregator] = lambda: EvidenceAggregator(sources)
    """
    config = get_settings()
    return EvidenceAggregator(build_default_sources(config), default_max_results=config.default_max_results)
