"""
FastAPI Application Entry Point

Clinical Evidence Engine API
"""
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from evidence_engine.api.literature import router as literature_router
from evidence_engine.core.config import settings
from evidence_engine.core.dependencies import get_aggregator
from evidence_engine.core.rate_limit import limiter, rate_limit_exceeded_handler
from evidence_engine.services.retrieval import ALL_SOURCES, EvidenceAggregator

VERSION = "1.0.0"

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Multi-source biomedical evidence search with quality grading and relevance ranking",
    version=VERSION,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.include_router(literature_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def health_check(aggregator: EvidenceAggregator = Depends(get_aggregator)):
    """Liveness plus what this instance can search."""
    return {
        "status": "active",
        "project": settings.PROJECT_NAME,
        "version": VERSION,
        "sources": [ALL_SOURCES] + aggregator.source_names,
        "rate_limiting": {
            "enabled": True,
            "storage": settings.rate_limit_storage_uri.split(":")[0],
            "search": settings.search_rate_limit,
            "detail": settings.detail_rate_limit,
        },
        "endpoints": {
            "search": "/api/literature/search",
            "trial": "/api/literature/trials/{nct_id}",
            "review": "/api/literature/reviews/{identifier}",
            "guideline": "/api/literature/guidelines/{organization}/{guideline_id}",
            "article": "/api/literature/articles/{pmid}",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
