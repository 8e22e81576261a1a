"""Tests for JD matching, JD feature extraction and description alignment."""

import pytest

from fairhire.analyzer import (
    _match_skill_mentions,
    classify_experience,
    compute_description_alignment,
    estimate_experience_years,
    extract_jd_features,
    jd_text_match_factor,
    match_resume_to_jd,
)
from fairhire.models import ExperienceMatch, ExperienceRange, ExperienceEntry, ParsedResume
from tests.samples import JD_DESCRIPTION


class TestMatchResumeToJD:
    """Rule-based skill and experience matching."""

    def test_matched_missing_and_score(self, parsed_resume, job_description):
        result = match_resume_to_jd(
            parsed_resume, job_description.required_skills, job_description.experience_range
        )
        assert result.matched_skills == ["Python", "Django"]
        assert result.missing_skills == ["Kubernetes"]
        assert result.partial_matches == []
        assert result.experience_years == 5.0
        assert result.experience_match is ExperienceMatch.MEETS
        # 2/3 * 60 + 25 + 10
        assert result.overall_score == 75
        assert result.strength_areas == ["Good skill alignment"]
        assert result.improvement_areas == ["Missing: Kubernetes"]

    def test_accepts_job_description(self, parsed_resume, job_description):
        direct = match_resume_to_jd(parsed_resume, job_description)
        assert direct == match_resume_to_jd(
            parsed_resume, job_description.required_skills, job_description.experience_range
        )

    def test_resume_skills_as_requirements_all_match(self, parsed_resume):
        required = list(parsed_resume.skills)
        result = match_resume_to_jd(parsed_resume, required, ExperienceRange(0, 10))
        assert result.matched_skills == required
        assert result.missing_skills == []
        assert result.partial_matches == []

    def test_overlapping_requirements(self, parsed_resume):
        result = match_resume_to_jd(parsed_resume, ["Python", "AWS", "Kubernetes"], ExperienceRange(0, 10))
        assert result.matched_skills == ["Python", "AWS"]
        assert result.missing_skills == ["Kubernetes"]

    def test_partial_match_from_raw_text(self, parsed_resume):
        result = match_resume_to_jd(parsed_resume, ["Microservices"], ExperienceRange(0, 10))
        assert result.partial_matches == ["Microservices"]
        # 0.5 / 1 * 60 + 25 + 10
        assert result.overall_score == 65

    def test_empty_required_skills_is_neutral(self, parsed_resume):
        result = match_resume_to_jd(parsed_resume, [], ExperienceRange(0, 10))
        assert result.matched_skills == []
        assert result.missing_skills == []
        assert result.overall_score == 50 + 25 + 10

    def test_experience_below_range(self, parsed_resume):
        result = match_resume_to_jd(parsed_resume, ["Python"], ExperienceRange(8, 12))
        assert result.experience_match is ExperienceMatch.BELOW
        assert "Experience below the 8-12 year range" in result.improvement_areas

    def test_experience_exceeds_range(self, parsed_resume):
        result = match_resume_to_jd(parsed_resume, ["Python"], ExperienceRange(0, 2))
        assert result.experience_match is ExperienceMatch.EXCEEDS
        assert "Experience exceeds requirements" in result.strength_areas
        assert result.overall_score == 100

    def test_requires_range_with_plain_skills(self, parsed_resume):
        with pytest.raises(TypeError):
            match_resume_to_jd(parsed_resume, ["Python"])


class TestExperienceEstimate:

    def test_minimum_of_one_year(self):
        resume = ParsedResume(raw_text="no dates here at all", candidate_name="X")
        assert estimate_experience_years(resume) == 1.0

    def test_open_range_uses_latest_mentioned_year(self):
        resume = ParsedResume(
            raw_text="Engineer 2019 - Present. Certified 2022.",
            candidate_name="X",
            experience=[ExperienceEntry(company="Acme", title="Engineer", duration="2019 - Present")],
        )
        assert estimate_experience_years(resume) == 3.0

    def test_years_phrase(self):
        resume = ParsedResume(
            raw_text="x",
            candidate_name="X",
            experience=[
                ExperienceEntry(company="A", title="Developer", duration="4 years"),
                ExperienceEntry(company="B", title="Analyst", duration=""),
            ],
        )
        assert estimate_experience_years(resume) == 4.0

    def test_classification_bounds_are_inclusive(self):
        band = ExperienceRange(2, 5)
        assert classify_experience(2, band) is ExperienceMatch.MEETS
        assert classify_experience(5, band) is ExperienceMatch.MEETS
        assert classify_experience(1.5, band) is ExperienceMatch.BELOW
        assert classify_experience(5.5, band) is ExperienceMatch.EXCEEDS


class TestJDFeatures:
    """spaCy-backed analysis of JD free text."""

    def test_phrase_matcher_resolves_aliases(self):
        assert _match_skill_mentions("We run K8s on Amazon Web Services") == ["Kubernetes", "AWS"]

    def test_extract_features(self):
        features = extract_jd_features(JD_DESCRIPTION, ["Python", "Django", "Kubernetes"])
        assert features.detected_skills[:3] == ["Python", "Django", "Kubernetes"]
        assert {"AWS", "Docker", "REST", "SQL"} <= set(features.detected_skills)
        assert features.domain == "engineering"
        assert features.complexity == "senior"
        assert 0 < len(features.keywords) <= 15
        assert "python" not in features.keywords

    def test_empty_description(self):
        features = extract_jd_features("   ")
        assert features.detected_skills == []
        assert features.domain == "general"
        assert features.complexity == "mid"

    def test_junior_complexity(self):
        features = extract_jd_features("Entry-level marketing coordinator for brand campaigns and content.")
        assert features.complexity == "junior"
        assert features.domain == "marketing"


class TestDescriptionSignals:

    def test_text_factor_range(self, parsed_resume):
        assert jd_text_match_factor(parsed_resume, JD_DESCRIPTION) == pytest.approx(1.15)
        assert jd_text_match_factor(parsed_resume, None) == 1.0
        assert jd_text_match_factor(None, JD_DESCRIPTION) == 1.0
        low = jd_text_match_factor(parsed_resume, "A role about gardening and pottery classes.")
        assert low == pytest.approx(0.9)

    def test_alignment_requires_description_and_resume(self, parsed_resume, job_description):
        assert compute_description_alignment(parsed_resume, job_description) is None
        job_description.description = JD_DESCRIPTION
        assert compute_description_alignment(None, job_description) is None

    def test_alignment(self, parsed_resume, described_job):
        alignment = compute_description_alignment(parsed_resume, described_job)
        assert 0 <= alignment.skill_overlap_percent <= 100
        assert "Kubernetes" in alignment.missing_areas
        assert alignment.responsibilities_match in {"low", "medium", "high"}
        assert alignment.alignment_summary.startswith(("Strong", "Partial", "Limited"))
