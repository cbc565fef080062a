"""Tests for services/evidence/quality.py - Evidence quality models."""
import pytest


def _trial(**fields):
    from evidence_engine.services.evidence.records import TrialRecord

    return TrialRecord.model_validate({"briefTitle": "Trial", **fields})


class TestTrialQuality:
    """Test the trial registry quality model."""

    def test_phase3_completed_trial_grades_a(self, trial_v2_study, fixed_now):
        """A completed, blinded, NIH-funded phase 3 trial with results should be grade A."""
        from evidence_engine.schemas.publication import EvidenceGrade
        from evidence_engine.services.evidence.quality import TrialQualityModel
        from evidence_engine.services.evidence.records import TrialRecord

        quality = TrialQualityModel().assess(TrialRecord.model_validate(trial_v2_study), fixed_now)

        assert quality.grade == EvidenceGrade.A
        assert quality.score == 100
        assert quality.factors.study_design == "INTERVENTIONAL - PHASE3"
        assert quality.factors.sample_size == "1500 participants"
        assert quality.factors.methodology == "DOUBLE masking"
        assert quality.factors.bias == "Low risk - NIH funded"

    def test_recruiting_industry_trial(self, trial_flat_study, fixed_now):
        """Phase 2 observational recruiting industry trial: 60+10+5+0+5+0-5+5 = 80."""
        from evidence_engine.schemas.publication import EvidenceGrade
        from evidence_engine.services.evidence.quality import TrialQualityModel
        from evidence_engine.services.evidence.records import TrialRecord

        quality = TrialQualityModel().assess(TrialRecord.model_validate(trial_flat_study), fixed_now)

        assert quality.score == 80
        assert quality.grade == EvidenceGrade.B
        assert quality.factors.bias == "Moderate risk - Industry funded"

    def test_missing_start_date_is_penalized(self, fixed_now):
        """No start date counts as an old trial: 60 - 15 (unknown status) - 10 = 35."""
        from evidence_engine.schemas.publication import EvidenceGrade
        from evidence_engine.services.evidence.quality import TrialQualityModel

        quality = TrialQualityModel().assess(_trial(), fixed_now)

        assert quality.score == 35
        assert quality.grade == EvidenceGrade.D
        assert quality.factors.sample_size == "Sample size not specified"
        assert quality.factors.methodology == "Masking not specified"
        assert quality.factors.bias == "Unknown funding"

    def test_small_terminated_trial(self, fixed_now):
        """Terminated small trial: 60 + 5 (phase 1) - 15 - 10 (enrollment) - 10 (old) = 30."""
        from evidence_engine.services.evidence.quality import TrialQualityModel

        trial = _trial(phase=["PHASE1"], overallStatus="TERMINATED", enrollment=10, startDate="2005-01-01")

        assert TrialQualityModel().assess(trial, fixed_now).score == 30

    def test_score_clamped_at_zero(self, fixed_now):
        """Scores below zero should clamp to 0."""
        from evidence_engine.services.evidence.quality import TrialQualityModel

        model = TrialQualityModel()
        model.BASE_SCORE = -100

        quality = model.assess(_trial(), fixed_now)

        assert quality.score == 0


class TestReviewQuality:
    """Test the review repository quality model."""

    def test_meta_analysis_with_many_studies(self, cochrane_review):
        """Meta-analysis 95 + 5 studies + 5 participants + 0 moderate = 100 -> A."""
        from evidence_engine.schemas.publication import EvidenceGrade
        from evidence_engine.services.evidence.quality import ReviewQualityModel
        from evidence_engine.services.evidence.records import ReviewRecord

        quality = ReviewQualityModel().assess(ReviewRecord.model_validate(cochrane_review))

        assert quality.score == 100
        assert quality.grade == EvidenceGrade.A

    def test_protocol_with_low_certainty(self):
        """Protocol 70 - 10 (2 studies) - 5 (50 participants) - 20 (very low) = 35 -> D."""
        from evidence_engine.schemas.publication import EvidenceGrade
        from evidence_engine.services.evidence.quality import ReviewQualityModel
        from evidence_engine.services.evidence.records import ReviewRecord

        record = ReviewRecord.model_validate({
            "title": "Protocol",
            "reviewType": "protocol",
            "studiesIncluded": 2,
            "participantsIncluded": 50,
            "qualityOfEvidence": "very low",
        })
        quality = ReviewQualityModel().assess(record)

        assert quality.score == 35
        assert quality.grade == EvidenceGrade.D

    def test_unknown_type_uses_base(self):
        """An unrecognized review type should start from 85 -> B."""
        from evidence_engine.schemas.publication import EvidenceGrade
        from evidence_engine.services.evidence.quality import ReviewQualityModel
        from evidence_engine.services.evidence.records import ReviewRecord

        quality = ReviewQualityModel().assess(ReviewRecord.model_validate({"title": "Overview"}))

        assert quality.score == 85
        assert quality.grade == EvidenceGrade.B


class TestGuidelineQuality:
    """Test the guideline publisher quality model."""

    def test_current_nice_guideline(self, guideline_record, fixed_now):
        """NICE 95 + 5 current + 5 systematic + 3 strong/A = 108 -> clamped 100."""
        from evidence_engine.services.evidence.quality import GuidelineQualityModel
        from evidence_engine.services.evidence.records import GuidelineRecord

        record = GuidelineRecord.model_validate({**guideline_record, "publisher": "NICE"})
        quality = GuidelineQualityModel().assess(record, fixed_now)

        assert quality.score == 100
        assert quality.grade.value == "A"

    def test_outdated_unknown_publisher(self, fixed_now):
        """Unknown publisher 80 - 10 outdated = 70 -> C."""
        from evidence_engine.services.evidence.quality import GuidelineQualityModel
        from evidence_engine.services.evidence.records import GuidelineRecord

        record = GuidelineRecord.model_validate({"title": "Old", "publisher": "WHO", "publicationDate": "2010-01-01"})
        quality = GuidelineQualityModel().assess(record, fixed_now)

        assert quality.score == 70
        assert quality.grade.value == "C"

    def test_cdc_mid_age(self, fixed_now):
        """CDC 88 with a 3-year-old update and no bonuses -> B."""
        from evidence_engine.services.evidence.quality import GuidelineQualityModel
        from evidence_engine.services.evidence.records import GuidelineRecord

        record = GuidelineRecord.model_validate({"title": "Mid", "publisher": "CDC", "lastUpdated": "2022-06-01"})
        quality = GuidelineQualityModel().assess(record, fixed_now)

        assert quality.score == 88
        assert quality.grade.value == "B"

    def test_bias_names_configured_publisher(self, fixed_now):
        """The bias factor should name the configured publisher, not the payload's organization."""
        from evidence_engine.services.evidence.quality import GuidelineQualityModel
        from evidence_engine.services.evidence.records import GuidelineRecord

        record = GuidelineRecord.model_validate({"title": "G", "publisher": "AHA", "organization": "AHA/ACC Task Force"})

        quality = GuidelineQualityModel().assess(record, fixed_now)

        assert quality.factors.bias == "Low risk - American Heart Association standards"

    def test_bias_falls_back_to_payload_organization(self, fixed_now):
        """An unconfigured publisher should use the record's own organization."""
        from evidence_engine.services.evidence.quality import GuidelineQualityModel
        from evidence_engine.services.evidence.records import GuidelineRecord

        record = GuidelineRecord.model_validate({"title": "G", "publisher": "WHO", "organization": "World Health Organization"})

        quality = GuidelineQualityModel().assess(record, fixed_now)

        assert quality.factors.bias == "Low risk - World Health Organization standards"


class TestArticleQuality:
    """Test the article database quality model."""

    def test_meta_analysis_in_high_impact_journal(self):
        """50 + 30 + 10 = 90 -> A."""
        from evidence_engine.services.evidence.quality import ArticleQualityModel
        from evidence_engine.services.evidence.records import ArticleRecord

        record = ArticleRecord.model_validate({
            "pmid": "1", "title": "T", "journal": "The Lancet", "publicationTypes": ["Meta-Analysis"],
        })
        quality = ArticleQualityModel().assess(record)

        assert quality.score == 90
        assert quality.grade.value == "A"
        assert quality.factors.study_design == "Meta-Analysis"

    def test_randomized_trial(self):
        """50 + 20 = 70 -> B."""
        from evidence_engine.services.evidence.quality import ArticleQualityModel
        from evidence_engine.services.evidence.records import ArticleRecord

        record = ArticleRecord.model_validate({
            "pmid": "2", "title": "T", "journal": "Hypertension", "publicationTypes": ["Randomized Controlled Trial"],
        })

        assert ArticleQualityModel().assess(record).score == 70

    def test_untyped_article(self):
        """No publication type: base 50 -> C with automated design label."""
        from evidence_engine.services.evidence.quality import ArticleQualityModel
        from evidence_engine.services.evidence.records import ArticleRecord

        quality = ArticleQualityModel().assess(ArticleRecord.model_validate({"pmid": "3", "title": "T"}))

        assert quality.score == 50
        assert quality.grade.value == "C"
        assert quality.factors.study_design == "Automated assessment"


class TestGradeThresholds:
    """Test each model's inclusive grade boundaries."""

    @pytest.mark.parametrize("model_name,score,grade", [
        ("TrialQualityModel", 85, "A"), ("TrialQualityModel", 84, "B"),
        ("TrialQualityModel", 70, "B"), ("TrialQualityModel", 69, "C"),
        ("TrialQualityModel", 50, "C"), ("TrialQualityModel", 49, "D"),
        ("ReviewQualityModel", 90, "A"), ("ReviewQualityModel", 89, "B"),
        ("ReviewQualityModel", 75, "B"), ("ReviewQualityModel", 74, "C"),
        ("ReviewQualityModel", 60, "C"), ("ReviewQualityModel", 59, "D"),
        ("GuidelineQualityModel", 90, "A"), ("GuidelineQualityModel", 89, "B"),
        ("GuidelineQualityModel", 75, "B"), ("GuidelineQualityModel", 74, "C"),
        ("GuidelineQualityModel", 60, "C"), ("GuidelineQualityModel", 59, "D"),
        ("ArticleQualityModel", 80, "A"), ("ArticleQualityModel", 79, "B"),
        ("ArticleQualityModel", 60, "B"), ("ArticleQualityModel", 59, "C"),
        ("ArticleQualityModel", 40, "C"), ("ArticleQualityModel", 39, "D"),
    ])
    def test_grade_boundaries(self, model_name, score, grade):
        """Grade boundaries should be inclusive."""
        from evidence_engine.services.evidence import quality

        model = getattr(quality, model_name)()

        assert model.grade_for(score).value == grade
