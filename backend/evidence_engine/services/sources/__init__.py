"""
Evidence source adapters.

Each source is implemented in its own module and owns its RateLimiter.
All searches are async so the aggregator can run them concurrently.

To add a new source:
1. Create a new module with a BaseSource subclass
2. Export it here
3. Register it in build_default_sources()
"""
from typing import Dict, Optional

from evidence_engine.core.config import Settings, settings as default_settings

from .base import BaseSource, extract_records
from .rate_limiter import RateLimiter
from .pubmed import PubMedSource
from .cochrane import CochraneSource
from .clinicaltrials import ClinicalTrialsSource
from .guidelines import GuidelinesSource


def build_default_sources(config: Optional[Settings] = None) -> Dict[str, BaseSource]:
    """One adapter per source name, configured from settings."""
    config = config or default_settings
    return {
        "pubmed": PubMedSource(
            api_key=config.PUBMED_API_KEY,
            base_url=config.pubmed_base_url,
            cooldown_seconds=config.pubmed_cooldown_seconds,
            timeout=config.http_timeout_seconds,
        ),
        "cochrane": CochraneSource(
            base_url=config.cochrane_base_url,
            cooldown_seconds=config.cochrane_cooldown_seconds,
            timeout=config.http_timeout_seconds,
        ),
        "clinical-trials": ClinicalTrialsSource(
            base_url=config.clinical_trials_base_url,
            cooldown_seconds=config.clinical_trials_cooldown_seconds,
            timeout=config.http_timeout_seconds,
        ),
        "guidelines": GuidelinesSource(
            publisher_urls=config.GUIDELINE_PUBLISHER_URLS,
            cooldown_seconds=config.guidelines_cooldown_seconds,
            timeout=config.http_timeout_seconds,
        ),
    }


__all__ = [
    "BaseSource",
    "RateLimiter",
    "extract_records",
    "PubMedSource",
    "CochraneSource",
    "ClinicalTrialsSource",
    "GuidelinesSource",
    "build_default_sources",
]
