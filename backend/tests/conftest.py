"""
Pytest fixtures and configuration for backend tests.

Provides sample upstream payloads, a fake clock for the rate limiter,
httpx.MockTransport helpers and an API test client wired to mocked sources.
"""
import os
import sys
from datetime import datetime, timezone
from typing import Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

FIXED_NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock whose sleep advances time instead of waiting."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(scope="session", autouse=True)
def set_test_environment():
    """Set environment variables for testing."""
    os.environ["API_CONTACT_EMAIL"] = "tests@example.org"
    yield


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_transport() -> Callable:
    """
    Build an httpx.MockTransport from a handler and record every request.

    Usage:
        transport, calls = make_transport(lambda request: httpx.Response(200, json={...}))
    """
    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        calls: List[httpx.Request] = []

        def _recording(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return handler(request)

        return httpx.MockTransport(_recording), calls

    return _make


@pytest.fixture
def trial_v2_study() -> Dict:
    """ClinicalTrials.gov v2 study in the nested protocolSection layout."""
    return {
        "protocolSection": {
            "identificationModule": {
                "nctId": "NCT01234567",
                "briefTitle": "Intensive Blood Pressure Control in Hypertension",
                "officialTitle": "A Randomized Trial of Intensive versus Standard Blood Pressure Control",
            },
            "statusModule": {
                "overallStatus": "COMPLETED",
                "startDateStruct": {"date": "2024-01"},
            },
            "descriptionModule": {
                "briefSummary": "Compares intensive and standard systolic targets in adults with hypertension.",
            },
            "conditionsModule": {"conditions": ["Hypertension"]},
            "designModule": {
                "studyType": "INTERVENTIONAL",
                "phases": ["PHASE3"],
                "designInfo": {"maskingInfo": {"masking": "DOUBLE"}},
                "enrollmentInfo": {"count": 1500},
            },
            "armsInterventionsModule": {
                "interventions": [{"name": "Lisinopril"}, {"name": "Amlodipine"}],
            },
            "outcomesModule": {
                "primaryOutcomes": [{"measure": "Major cardiovascular events"}],
            },
            "sponsorCollaboratorsModule": {
                "leadSponsor": {"name": "National Heart, Lung, and Blood Institute (NIH)", "class": "NIH"},
            },
        },
        "hasResults": True,
    }


@pytest.fixture
def trial_flat_study() -> Dict:
    """Flat PascalCase study as returned by the legacy field list."""
    return {
        "NCTId": "NCT07654321",
        "BriefTitle": "Metformin for Prediabetes",
        "BriefSummary": "Observational follow-up of metformin users.",
        "OverallStatus": "RECRUITING",
        "Phase": ["PHASE2"],
        "StudyType": "OBSERVATIONAL",
        "Condition": ["Prediabetes"],
        "InterventionName": ["Metformin"],
        "EnrollmentCount": 250,
        "StartDate": "2023-09-15",
        "Sponsor": [{"name": "Acme Pharma", "class": "INDUSTRY"}],
    }


@pytest.fixture
def cochrane_review() -> Dict:
    return {
        "id": "CD000001",
        "doi": "10.1002/14651858.CD000001.pub3",
        "title": "Exercise for hypertension in adults",
        "abstract": "Systematic review of aerobic exercise programmes for lowering blood pressure.",
        "authors": [{"name": "Smith J"}, {"name": "Jones K"}],
        "publicationDate": "2024-03-01",
        "reviewType": "Meta-Analysis",
        "studiesIncluded": 24,
        "participantsIncluded": 3200,
        "mainResults": "Exercise reduced systolic blood pressure.",
        "authorsConclusions": "Exercise is an effective adjunct for hypertension.",
        "qualityOfEvidence": "Moderate",
        "outcomes": [{"outcome": "Systolic blood pressure", "certainty": "moderate"}],
    }


@pytest.fixture
def guideline_record() -> Dict:
    return {
        "id": "ng136",
        "title": "Hypertension in adults: diagnosis and management",
        "summary": "Covers identifying and treating primary hypertension.",
        "publicationDate": "2019-08-28",
        "lastUpdated": "2025-01-15",
        "condition": "Hypertension",
        "specialty": "Cardiology",
        "methodology": "Systematic review of the evidence with GRADE",
        "keywords": ["hypertension", "blood pressure"],
        "recommendations": [
            {"recommendation": "Offer lifestyle advice to adults with hypertension", "strength": "Strong", "evidenceLevel": "a"},
        ],
    }


@pytest.fixture
def pubmed_efetch_xml() -> str:
    return """<?xml version="1.0" ?>
<PubmedArticleSet>
<PubmedArticle>
  <MedlineCitation Status="MEDLINE" Owner="NLM">
    <PMID Version="1">31111111</PMID>
    <Article PubModel="Print">
      <Journal>
        <JournalIssue CitedMedium="Internet">
          <Volume>380</Volume>
          <Issue>9</Issue>
          <PubDate><Year>2021</Year><Month>Mar</Month></PubDate>
        </JournalIssue>
        <Title>The Lancet</Title>
      </Journal>
      <ArticleTitle>Salt reduction and <i>hypertension</i>: a meta-analysis</ArticleTitle>
      <Pagination><MedlinePgn>812-820</MedlinePgn></Pagination>
      <ELocationID EIdType="doi" ValidYN="Y">10.1016/S0140-6736(21)00001-1</ELocationID>
      <Abstract>
        <AbstractText Label="BACKGROUND">Dietary salt raises blood pressure.</AbstractText>
        <AbstractText Label="FINDINGS">Reduction lowered systolic pressure &amp; events.</AbstractText>
      </Abstract>
      <AuthorList CompleteYN="Y">
        <Author ValidYN="Y"><LastName>He</LastName><ForeName>Feng J</ForeName></Author>
        <Author ValidYN="Y"><CollectiveName>Salt Reduction Collaboration</CollectiveName></Author>
      </AuthorList>
      <PublicationTypeList>
        <PublicationType UI="D017418">Meta-Analysis</PublicationType>
        <PublicationType UI="D016428">Journal Article</PublicationType>
      </PublicationTypeList>
    </Article>
    <MeshHeadingList>
      <MeshHeading><DescriptorName UI="D006973">Hypertension</DescriptorName></MeshHeading>
      <MeshHeading><DescriptorName UI="D017673">Sodium Chloride, Dietary</DescriptorName></MeshHeading>
    </MeshHeadingList>
    <KeywordList Owner="NOTNLM">
      <Keyword MajorTopicYN="N">salt</Keyword>
    </KeywordList>
  </MedlineCitation>
</PubmedArticle>
<PubmedArticle>
  <MedlineCitation>
    <PMID Version="1">32222222</PMID>
    <Article>
      <ArticleTitle>Unrelated orthopaedic case report</ArticleTitle>
    </Article>
  </MedlineCitation>
</PubmedArticle>
</PubmedArticleSet>
"""


@pytest.fixture
def test_client():
    """Create a test client for API testing."""
    # Import here to avoid circular imports
    from evidence_engine.core.rate_limit import limiter
    from evidence_engine.main import app

    limiter.reset()
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
