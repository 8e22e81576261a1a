from typing import Iterable, List, Optional, Sequence

from .hashing import stable_hash
from .models import (
    BiasFactor,
    BiasSource,
    BiasType,
    CrossModalConsistency,
    JDMatchResult,
    JobDescription,
    Modality,
)
from .numeric import clamp

VIDEO_BIAS_TYPES = frozenset({BiasType.APPEARANCE_BIAS, BiasType.BACKGROUND_ENVIRONMENT})
AUDIO_BIAS_TYPES = frozenset({BiasType.ACCENT_PENALTY, BiasType.LANGUAGE_FLUENCY})
TEXT_BIAS_TYPES = frozenset({BiasType.NAME_PROXY, BiasType.GENDER_LANGUAGE, BiasType.INSTITUTION_BIAS})


def bias_source_for(factors: Sequence[BiasFactor]) -> BiasSource:
    """Majority vote over the factor buckets; any video+audio mix is "multiple"."""
    video = sum(1 for factor in factors if factor.type in VIDEO_BIAS_TYPES)
    audio = sum(1 for factor in factors if factor.type in AUDIO_BIAS_TYPES)
    text = sum(1 for factor in factors if factor.type in TEXT_BIAS_TYPES)

    if video and audio:
        return BiasSource.MULTIPLE
    if video > audio and video > text:
        return BiasSource.VIDEO
    if audio > text:
        return BiasSource.AUDIO
    return BiasSource.TEXT


def skill_match_level(jd_match_result: Optional[JDMatchResult], seed: int) -> str:
    if jd_match_result is not None:
        considered = len(jd_match_result.matched_skills) + len(jd_match_result.missing_skills)
        if considered:
            match_percent = len(jd_match_result.matched_skills) / considered * 100
            if match_percent >= 70:
                return "high"
            if match_percent >= 40:
                return "medium"
            return "low"
        return "medium"
    return ("high", "medium", "low")[seed % 3]


def analyze_consistency(
    candidate_name: str,
    modalities: Iterable[Modality],
    bias_factors: Sequence[BiasFactor],
    job_description: JobDescription,
    jd_match_result: Optional[JDMatchResult] = None,
) -> CrossModalConsistency:
    present = {Modality(m) for m in modalities}
    has_video = Modality.VIDEO in present
    has_audio = Modality.AUDIO in present
    seed = stable_hash(candidate_name + job_description.id)

    accent_detected = any(f.type is BiasType.ACCENT_PENALTY for f in bias_factors)
    fluency_detected = any(f.type is BiasType.LANGUAGE_FLUENCY for f in bias_factors)
    visual_detected = any(f.type in VIDEO_BIAS_TYPES for f in bias_factors)

    match_level = skill_match_level(jd_match_result, seed)

    # Nothing to be inconsistent with when only a resume was supplied.
    if has_video or has_audio:
        resume_vs_interview = 65 + seed % 30
    else:
        resume_vs_interview = 80 + seed % 15

    consistency_score = clamp(85 - len(bias_factors) * 8 + seed % 10, 40, 95)

    flags: List[str] = []
    if accent_detected and not has_audio:
        flags.append("Accent penalty without audio modality")
    if visual_detected and not has_video:
        flags.append("Visual bias without video modality")
    if resume_vs_interview < 70:
        flags.append("Resume-Interview score disparity")
    if match_level == "low" and len(bias_factors) > 2:
        flags.append("Low skill match with multiple bias signals")

    return CrossModalConsistency(
        resume_vs_interview_score=resume_vs_interview,
        skill_match_level=match_level,
        accent_penalty_detected=accent_detected,
        fluency_bias_detected=fluency_detected,
        visual_bias_detected=visual_detected,
        bias_source=bias_source_for(bias_factors),
        consistency_score=consistency_score,
        flags=flags,
    )
