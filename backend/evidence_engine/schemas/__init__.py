"""
Schemas Module

Contains all Pydantic models (DTOs) for:
- The canonical Publication record and its evidence quality
- The generic literature query accepted by source adapters
- API request/response validation
"""
from .publication import (
    SourceType,
    EvidenceGrade,
    QualityFactors,
    EvidenceQuality,
    Publication,
)
from .literature import (
    SourceName,
    LiteratureQuery,
    LiteratureSearchRequest,
    LiteratureSearchResponse,
)

__all__ = [
    "SourceType",
    "EvidenceGrade",
    "QualityFactors",
    "EvidenceQuality",
    "Publication",
    "SourceName",
    "LiteratureQuery",
    "LiteratureSearchRequest",
    "LiteratureSearchResponse",
]
