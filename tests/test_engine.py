"""Tests for candidate scoring, explanations and dashboard statistics."""

from datetime import timezone

import pytest

from fairhire.analyzer import match_resume_to_jd
from fairhire.engine import (
    INCLUSION_SIGNALS,
    calculate_stats,
    generate_inclusion_adjustment,
    needs_review,
    process_candidate,
)
from fairhire.explain import (
    REVIEW_SUMMARY,
    REVIEW_WARNING_TITLE,
    generate_counterfactuals,
    generate_explanations,
    generate_fairness_summary,
)
from fairhire.models import (
    BiasFactor,
    BiasType,
    CandidateInput,
    CandidateStatus,
    DashboardStats,
    ExplanationType,
    Modality,
    Severity,
)
from tests.samples import CANDIDATE_NAMES as NAMES

ALL_MODALITIES = [Modality.RESUME, Modality.VIDEO, Modality.AUDIO]


def _factor(bias_type, contribution, label=None):
    return BiasFactor(
        type=bias_type,
        label=label or bias_type.value,
        severity=Severity.MEDIUM,
        contribution=contribution,
        explanation="explained",
        jd_context="context",
    )


def _process(name, job, index=0, modalities=ALL_MODALITIES, fixed_time=None, **kwargs):
    candidate_input = CandidateInput(name=name, modalities=list(modalities), **kwargs)
    return process_candidate(candidate_input, job, index, processed_at=fixed_time)


# =============================================================================
# SCORE COMPOSITION
# =============================================================================

class TestProcessCandidate:

    def test_identical_inputs_identical_candidates(self, job_description, fixed_time):
        for name in NAMES:
            first = _process(name, job_description, 1, fixed_time=fixed_time)
            second = _process(name, job_description, 1, fixed_time=fixed_time)
            assert first == second

    def test_score_invariants(self, job_description, fixed_time):
        for index, name in enumerate(NAMES):
            candidate = _process(name, job_description, index, fixed_time=fixed_time)
            assert 55 <= candidate.original_score <= 92
            assert candidate.original_score <= candidate.adjusted_score <= 95
            correction = sum(abs(f.contribution) for f in candidate.bias_factors)
            assert candidate.adjusted_score == min(95, candidate.original_score + correction)
            assert candidate.score_change == candidate.adjusted_score - candidate.original_score

    def test_modality_scores(self, job_description, fixed_time):
        for name in NAMES:
            candidate = _process(name, job_description, fixed_time=fixed_time)
            assert [s.modality for s in candidate.modality_scores] == ALL_MODALITIES
            for score in candidate.modality_scores:
                assert 60 <= score.original_score <= 84
                assert 60 <= score.adjusted_score <= 95
                assert 85 <= score.confidence_score <= 96

    def test_no_audio_means_no_accent_factor(self, job_description, fixed_time):
        for name in NAMES:
            candidate = _process(name, job_description, modalities=["resume", "video"], fixed_time=fixed_time)
            assert all(f.type is not BiasType.ACCENT_PENALTY for f in candidate.bias_factors)

    def test_review_by_index(self, job_description, fixed_time):
        candidate = _process("Sarah Chen", job_description, index=2, fixed_time=fixed_time)
        assert candidate.status is CandidateStatus.REVIEW
        assert candidate.explanations[0].type is ExplanationType.WARNING
        assert candidate.explanations[0].title == REVIEW_WARNING_TITLE
        assert candidate.fairness_summary == REVIEW_SUMMARY.format(role=job_description.role_title)

    def test_review_formula(self, job_description, fixed_time):
        for index, name in enumerate(NAMES):
            candidate = _process(name, job_description, index, fixed_time=fixed_time)
            expected = CandidateStatus.REVIEW if needs_review(name, index) else CandidateStatus.PROCESSED
            assert candidate.status is expected

    def test_identity_fields(self, job_description, fixed_time):
        candidate = _process("Wei Zhang", job_description, fixed_time=fixed_time)
        assert candidate.position == job_description.role_title
        assert candidate.job_description_id == "jd-test"
        assert candidate.processed_at == fixed_time
        assert candidate.id.isalnum()

    def test_name_is_stripped(self, job_description, fixed_time):
        padded = _process("  Tom Becker ", job_description, fixed_time=fixed_time)
        plain = _process("Tom Becker", job_description, fixed_time=fixed_time)
        assert padded == plain
        assert all(f.type is not BiasType.NAME_PROXY for f in padded.bias_factors)

    def test_naive_timestamp_becomes_utc(self, job_description, fixed_time):
        naive = fixed_time.replace(tzinfo=None, microsecond=123456)
        candidate = _process("Wei Zhang", job_description, fixed_time=naive)
        assert candidate.processed_at == fixed_time
        assert candidate.processed_at.tzinfo is timezone.utc

    def test_default_timestamp_truncated(self, job_description):
        candidate = _process("Wei Zhang", job_description)
        assert candidate.processed_at.microsecond == 0
        assert candidate.processed_at.tzinfo is timezone.utc

    def test_with_parsed_resume_and_description(self, described_job, parsed_resume, fixed_time):
        match = match_resume_to_jd(parsed_resume, described_job)
        candidate = _process(
            "Priya Sharma",
            described_job,
            modalities=["resume", "audio"],
            fixed_time=fixed_time,
            parsed_resume=parsed_resume,
            jd_match_result=match,
            resume_file_name="priya.txt",
        )
        assert candidate.bias_factors[0].type is BiasType.NAME_PROXY
        assert candidate.bias_factors[0].contribution == -12
        assert candidate.bias_level in (Severity.MEDIUM, Severity.HIGH)
        assert candidate.jd_description_alignment is not None
        assert candidate.cross_modal_consistency.skill_match_level == "medium"
        titles = [e.title for e in candidate.explanations]
        assert "Resume Parsed Successfully" in titles
        analysis = next(e for e in candidate.explanations if e.title == "JD Skill Match Analysis")
        assert analysis.impact == 6
        assert candidate.resume_file_name == "priya.txt"

    def test_resume_only_has_no_interview_inclusion_signals(self, job_description, fixed_time):
        candidate = _process("Emma Hart", job_description, modalities=["resume"], fixed_time=fixed_time)
        types = {signal.type for signal in candidate.inclusion_adjustment.signals}
        assert types == {"grammar_irregularity", "rural_background"}

    def test_inclusion_does_not_change_adjusted_score(self, job_description, fixed_time):
        for name in NAMES:
            candidate = _process(name, job_description, fixed_time=fixed_time)
            correction = sum(abs(f.contribution) for f in candidate.bias_factors)
            assert candidate.adjusted_score == min(95, candidate.original_score + correction)


class TestInclusionAdjustment:

    def test_total_is_capped(self):
        for name in NAMES:
            adjustment = generate_inclusion_adjustment(name, ALL_MODALITIES)
            detected = sum(1 for s in adjustment.signals if s.detected)
            assert len(adjustment.signals) == len(INCLUSION_SIGNALS)
            assert adjustment.total_adjustment == min(10, 2 * detected)
            assert all(70 <= s.confidence <= 94 for s in adjustment.signals)
            assert bool(adjustment.explanation_text) == bool(detected)

    def test_no_modalities(self):
        adjustment = generate_inclusion_adjustment("Anyone", [])
        assert adjustment.signals == []
        assert adjustment.total_adjustment == 0


# =============================================================================
# EXPLANATIONS
# =============================================================================

class TestExplanations:

    def test_corrections_then_skills_confirmation(self, job_description):
        factors = [_factor(BiasType.NAME_PROXY, -12, "Name-Based Bias")]
        explanations = generate_explanations(factors, job_description)
        assert [e.type for e in explanations] == [ExplanationType.CORRECTION, ExplanationType.INFO]
        assert explanations[0].title == "Name-Based Bias Corrected"
        assert explanations[0].impact == 12
        assert explanations[1].title == "Skills Alignment Confirmed"

    def test_counterfactuals_per_factor(self):
        factors = [
            _factor(BiasType.NAME_PROXY, -12),
            _factor(BiasType.ACCENT_PENALTY, -10),
            _factor(BiasType.INSTITUTION_BIAS, -3),
        ]
        scenarios = generate_counterfactuals(70, factors)
        assert [s.intervention for s in scenarios] == [
            "Name changed to gender-neutral variant",
            "Accent normalized to native speaker",
            "Institution anonymized",
        ]
        assert [s.counterfactual_outcome for s in scenarios] == [82, 80, 73]
        assert [s.bias_detected for s in scenarios] == [True, True, False]

    def test_default_counterfactual(self):
        (scenario,) = generate_counterfactuals(70, [])
        assert scenario.intervention == "All demographic markers anonymized"
        assert scenario.counterfactual_outcome == 72
        assert scenario.bias_detected is False

    def test_summary_names_largest_factor(self, job_description):
        factors = [
            _factor(BiasType.APPEARANCE_BIAS, -5, "Appearance-Related Bias"),
            _factor(BiasType.NAME_PROXY, -12, "Name-Based Bias"),
        ]
        summary = generate_fairness_summary("Tom Becker", factors, 70, 87, job_description, False)
        assert "Name-Based Bias" in summary
        assert "+17" in summary
        assert "2 " in summary
        assert factors[0].type is BiasType.APPEARANCE_BIAS

    def test_summary_without_factors(self, job_description):
        summary = generate_fairness_summary("Tom Becker", [], 70, 70, job_description, False)
        assert job_description.role_title in summary


# =============================================================================
# DASHBOARD STATS
# =============================================================================

class TestCalculateStats:

    def test_empty(self):
        assert calculate_stats([]) == DashboardStats()

    def test_aggregates(self, job_description, fixed_time):
        candidates = [
            _process(name, job_description, index, fixed_time=fixed_time) for index, name in enumerate(NAMES[:6])
        ]
        stats = calculate_stats(candidates)
        avg = sum(c.adjusted_score - c.original_score for c in candidates) / len(candidates)
        assert stats.candidates_analyzed == 6
        assert stats.bias_corrections == sum(len(c.bias_factors) for c in candidates)
        assert stats.avg_score_change == pytest.approx(round(avg, 1), abs=0.051)
        assert stats.fairness_score == pytest.approx(min(100, 70 + avg * 2), abs=0.051)
        assert stats.fairness_score <= 100
        boosts = [c.inclusion_adjustment.total_adjustment for c in candidates]
        assert stats.avg_inclusion_boost == pytest.approx(sum(boosts) / 6, abs=0.051)
