"""
Literature API Routes

FastAPI routes for multi-source evidence search and single-record lookups.
"""
from fastapi import APIRouter, Depends, HTTPException, Request

from evidence_engine.core.dependencies import get_aggregator
from evidence_engine.core.exceptions import CallerError, NoSourcesAvailableError, UnknownPublisherError
from evidence_engine.core.logging import get_logger
from evidence_engine.core.rate_limit import DETAIL_LIMIT, LITERATURE_SEARCH_LIMIT, limiter
from evidence_engine.schemas.literature import LiteratureSearchRequest, LiteratureSearchResponse
from evidence_engine.schemas.publication import Publication
from evidence_engine.services.retrieval import EvidenceAggregator

logger = get_logger(__name__)

router = APIRouter(prefix="/api/literature", tags=["literature"])


def _source(aggregator: EvidenceAggregator, name: str):
    source = aggregator.get_source(name)
    if source is None:
        raise HTTPException(status_code=503, detail=f"Source '{name}' is not configured")
    return source


def _found(publication, what: str) -> Publication:
    if publication is None:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    return publication


@router.post("/search", response_model=LiteratureSearchResponse)
@limiter.limit(LITERATURE_SEARCH_LIMIT)
async def search_literature(
    request: Request,
    body: LiteratureSearchRequest,
    aggregator: EvidenceAggregator = Depends(get_aggregator),
):
    """
    Search the requested sources and return one ranked, deduplicated list.
    A source that is down contributes nothing; the others still answer.
    """
    try:
        return await aggregator.search_literature(body.to_query(), body.sources)
    except CallerError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except NoSourcesAvailableError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/trials/{nct_id}", response_model=Publication)
@limiter.limit(DETAIL_LIMIT)
async def get_trial(request: Request, nct_id: str, aggregator: EvidenceAggregator = Depends(get_aggregator)):
    """Single ClinicalTrials.gov study."""
    publication = await _source(aggregator, "clinical-trials").get_trial_details(nct_id)
    return _found(publication, f"Trial {nct_id}")


@router.get("/reviews/{identifier:path}", response_model=Publication)
@limiter.limit(DETAIL_LIMIT)
async def get_review(request: Request, identifier: str, aggregator: EvidenceAggregator = Depends(get_aggregator)):
    """Single Cochrane review; the identifier may be a DOI containing slashes."""
    publication = await _source(aggregator, "cochrane").get_review_details(identifier)
    return _found(publication, f"Review {identifier}")


@router.get("/guidelines/{organization}/{guideline_id}", response_model=Publication)
@limiter.limit(DETAIL_LIMIT)
async def get_guideline(
    request: Request,
    organization: str,
    guideline_id: str,
    aggregator: EvidenceAggregator = Depends(get_aggregator),
):
    """Single guideline from NICE, AHA or CDC."""
    try:
        publication = await _source(aggregator, "guidelines").get_guideline_details(organization, guideline_id)
    except UnknownPublisherError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _found(publication, f"Guideline {organization}/{guideline_id}")


@router.get("/articles/{pmid}", response_model=Publication)
@limiter.limit(DETAIL_LIMIT)
async def get_article(request: Request, pmid: str, aggregator: EvidenceAggregator = Depends(get_aggregator)):
    """Single PubMed article."""
    publication = await _source(aggregator, "pubmed").get_article_details(pmid)
    return _found(publication, f"Article {pmid}")
