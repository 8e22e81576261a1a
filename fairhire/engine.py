"""Candidate score composition and dashboard aggregation.

``process_candidate`` is the single entry point that turns a candidate's
inputs into a fully populated ``Candidate``. It is pure: identical inputs,
including ``index`` and ``processed_at``, always yield an identical record.
Callers own the collection of candidates and the per-job cap.
"""

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from .analyzer import compute_description_alignment, jd_text_match_factor
from .bias_rules import (
    DEFAULT_RULES,
    BiasRule,
    RuleContext,
    bias_level_for,
    detect_bias_factors,
    total_correction,
)
from .consistency import AUDIO_BIAS_TYPES, TEXT_BIAS_TYPES, VIDEO_BIAS_TYPES, analyze_consistency
from .explain import generate_counterfactuals, generate_explanations, generate_fairness_summary
from .hashing import stable_hash, to_base36
from .models import (
    BiasFactor,
    Candidate,
    CandidateInput,
    CandidateStatus,
    DashboardStats,
    InclusionAdjustment,
    InclusionSignal,
    JDMatchResult,
    JobDescription,
    Modality,
    ModalityScore,
)
from .numeric import clamp, round_half_up, round_to_int

logger = logging.getLogger(__name__)

MAX_ADJUSTED_SCORE = 95
ORIGINAL_SCORE_FLOOR = 55
ORIGINAL_SCORE_CEILING = 92
MATCH_BASE_FLOOR = 60
MATCH_BASE_CEILING = 90

MODALITY_BIAS_TYPES = {
    Modality.RESUME: TEXT_BIAS_TYPES,
    Modality.VIDEO: VIDEO_BIAS_TYPES,
    Modality.AUDIO: AUDIO_BIAS_TYPES,
}

# (signal type, modality it is observed in, adaptation applied)
INCLUSION_SIGNALS = (
    ("speech_disfluency", Modality.AUDIO, "Fluency penalties removed; content scored on substance."),
    ("slow_speech_rate", Modality.AUDIO, "Speaking pace excluded from communication scoring."),
    ("accent_deviation", Modality.AUDIO, "Accent markers excluded from language assessment."),
    ("response_delay", Modality.AUDIO, "Response timing normalised before scoring."),
    ("low_eye_contact", Modality.VIDEO, "Eye-contact heuristics disabled for this evaluation."),
    ("flat_affect", Modality.VIDEO, "Facial expression signals excluded from engagement score."),
    ("nervousness", Modality.VIDEO, "Nervousness indicators excluded from confidence scoring."),
    ("grammar_irregularity", Modality.RESUME, "Grammar structure separated from skill evidence."),
    ("rural_background", Modality.RESUME, "Location and background markers anonymized."),
)
INCLUSION_POINTS_PER_SIGNAL = 2
MAX_INCLUSION_ADJUSTMENT = 10


def needs_review(candidate_name: str, index: int) -> bool:
    """Roughly one in five candidates goes to human review, deterministically."""
    return index % 5 == 2 or stable_hash(candidate_name + "review") % 7 == 0


def compute_original_score(
    candidate_name: str,
    job_description: JobDescription,
    jd_match_result: Optional[JDMatchResult],
    text_factor: float = 1.0,
) -> int:
    if jd_match_result is not None:
        base = clamp(
            jd_match_result.overall_score - 5 + stable_hash(candidate_name) % 10,
            MATCH_BASE_FLOOR,
            MATCH_BASE_CEILING,
        )
    else:
        base = 60 + stable_hash(candidate_name + job_description.id) % 31

    return clamp(round_to_int(base * text_factor), ORIGINAL_SCORE_FLOOR, ORIGINAL_SCORE_CEILING)


def generate_modality_scores(
    candidate_name: str,
    modalities: Sequence[Modality],
    job_description: JobDescription,
    bias_factors: Sequence[BiasFactor],
) -> List[ModalityScore]:
    scores: List[ModalityScore] = []
    for modality in modalities:
        seed = stable_hash(candidate_name + modality.value + job_description.id)
        base_score = 60 + seed % 25
        relevant = [f for f in bias_factors if f.type in MODALITY_BIAS_TYPES[modality]]
        penalty = sum(f.contribution for f in relevant)
        scores.append(
            ModalityScore(
                modality=modality,
                original_score=base_score,
                adjusted_score=clamp(base_score - penalty, 60, 95),
                bias_factors=relevant,
                confidence_score=85 + seed % 12,
            )
        )
    return scores


def generate_inclusion_adjustment(
    candidate_name: str,
    modalities: Iterable[Modality],
) -> InclusionAdjustment:
    present = set(modalities)
    signals: List[InclusionSignal] = []
    for signal_type, modality, adaptation in INCLUSION_SIGNALS:
        if modality not in present:
            continue
        seed = stable_hash(candidate_name + signal_type)
        signals.append(
            InclusionSignal(
                type=signal_type,
                detected=seed % 4 == 0,
                confidence=70 + seed % 25,
                adaptation=adaptation,
            )
        )

    detected = [signal for signal in signals if signal.detected]
    total = min(MAX_INCLUSION_ADJUSTMENT, len(detected) * INCLUSION_POINTS_PER_SIGNAL)
    if detected:
        explanation = (
            f"{len(detected)} inclusion signal(s) were neutralised so that communication style, "
            "presentation and background do not affect the evaluation. No medical diagnosis is made."
        )
    else:
        explanation = ""
    return InclusionAdjustment(signals=signals, total_adjustment=total, explanation_text=explanation)


def _candidate_id(candidate_name: str, job_description: JobDescription, index: int) -> str:
    return to_base36(stable_hash(f"{candidate_name}{job_description.id}{index}"))


def utc_timestamp(value: Optional[datetime] = None) -> datetime:
    """Aware UTC timestamp truncated to the second.

    Naive values are taken to be UTC and ``None`` means now.
    """
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def process_candidate(
    candidate_input: CandidateInput,
    job_description: JobDescription,
    index: int,
    processed_at: Optional[datetime] = None,
    rules: Sequence[BiasRule] = DEFAULT_RULES,
) -> Candidate:
    """Score one candidate against a job description.

    ``index`` is the candidate's position among those already processed for
    this job; it only varies the review decision. The caller enforces the
    per-job candidate limit before calling.
    """
    name = candidate_input.name.strip()
    modalities = [Modality(m) for m in candidate_input.modalities]
    parsed_resume = candidate_input.parsed_resume
    jd_match_result = candidate_input.jd_match_result
    interview_video = candidate_input.interview_video
    if interview_video is not None:
        interview_video = dataclasses.replace(
            interview_video, uploaded_at=utc_timestamp(interview_video.uploaded_at)
        )

    text_factor = jd_text_match_factor(parsed_resume, job_description.description)
    original_score = compute_original_score(name, job_description, jd_match_result, text_factor)

    context = RuleContext.build(name, job_description, modalities, parsed_resume)
    bias_factors = detect_bias_factors(context, rules)
    correction = total_correction(bias_factors)
    adjusted_score = min(MAX_ADJUSTED_SCORE, original_score + correction)
    review = needs_review(name, index)

    candidate = Candidate(
        id=_candidate_id(name, job_description, index),
        name=name,
        position=job_description.role_title,
        original_score=original_score,
        adjusted_score=adjusted_score,
        bias_level=bias_level_for(correction),
        modalities=modalities,
        status=CandidateStatus.REVIEW if review else CandidateStatus.PROCESSED,
        job_description_id=job_description.id,
        modality_scores=generate_modality_scores(name, modalities, job_description, bias_factors),
        bias_factors=bias_factors,
        explanations=generate_explanations(
            bias_factors, job_description, review, parsed_resume, jd_match_result
        ),
        counterfactuals=generate_counterfactuals(original_score, bias_factors),
        fairness_summary=generate_fairness_summary(
            name, bias_factors, original_score, adjusted_score, job_description, review
        ),
        processed_at=utc_timestamp(processed_at),
        parsed_resume=parsed_resume,
        jd_match_result=jd_match_result,
        jd_description_alignment=compute_description_alignment(parsed_resume, job_description),
        resume_file_name=candidate_input.resume_file_name,
        interview_video=interview_video,
        cross_modal_consistency=analyze_consistency(
            name, modalities, bias_factors, job_description, jd_match_result
        ),
        inclusion_adjustment=generate_inclusion_adjustment(name, modalities),
    )

    logger.info(
        "Processed %s for %s: %s -> %s (%s bias factors, status %s)",
        name,
        job_description.role_title,
        original_score,
        adjusted_score,
        len(bias_factors),
        candidate.status.value,
    )
    return candidate


def calculate_stats(candidates: Sequence[Candidate]) -> DashboardStats:
    if not candidates:
        return DashboardStats()

    count = len(candidates)
    total_factors = sum(len(c.bias_factors) for c in candidates)
    avg_change = sum(c.score_change for c in candidates) / count
    fairness = min(100.0, 70 + avg_change * 2)

    inclusion = [c.inclusion_adjustment for c in candidates if c.inclusion_adjustment is not None]
    inclusion_corrections = sum(
        sum(1 for signal in adjustment.signals if signal.detected) for adjustment in inclusion
    )
    avg_inclusion = sum(adjustment.total_adjustment for adjustment in inclusion) / count

    return DashboardStats(
        candidates_analyzed=count,
        fairness_score=round_half_up(fairness, 1),
        bias_corrections=total_factors,
        avg_score_change=round_half_up(avg_change, 1),
        inclusion_corrections=inclusion_corrections,
        avg_inclusion_boost=round_half_up(avg_inclusion, 1),
    )
