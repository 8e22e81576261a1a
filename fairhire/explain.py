"""Human-readable explanations, counterfactual scenarios and fairness summaries."""

from typing import List, Optional, Sequence

from .hashing import stable_hash
from .models import (
    BiasFactor,
    BiasType,
    CandidateExplanation,
    CounterfactualScenario,
    ExplanationType,
    JDMatchResult,
    JobDescription,
    ParsedResume,
)

REVIEW_WARNING_TITLE = "Low Confidence — Human Review Required"
DEFAULT_COUNTERFACTUAL_BOOST = 2

COUNTERFACTUAL_INTERVENTIONS = (
    (BiasType.NAME_PROXY, "Name changed to gender-neutral variant"),
    (BiasType.ACCENT_PENALTY, "Accent normalized to native speaker"),
    (BiasType.INSTITUTION_BIAS, "Institution anonymized"),
)

NO_BIAS_TEMPLATES = (
    "Candidate evaluation for {role} shows minimal bias indicators. Original assessment appears fair.",
    "No significant bias signals were found while evaluating this candidate for {role}. "
    "The original score stands on skills and experience.",
    "Evaluation for {role} completed without material bias corrections. Scoring reflects JD-relevant evidence.",
)

CORRECTED_TEMPLATES = (
    "Fairness analysis for {role} identified {count} bias factor(s). Primary correction: {label} "
    "({change} points). Adjusted score reflects skill-based evaluation aligned with JD requirements.",
    "{count} bias factor(s) corrected for {role}, led by {label} ({change} points). "
    "The adjusted score isolates job-relevant skills and experience.",
    "After removing {count} non-skill factor(s) for {role}, the largest being {label} ({change} points), "
    "the adjusted score reflects JD-aligned competency.",
)

REVIEW_SUMMARY = (
    "Low confidence assessment for {role}. Conflicting bias signals detected across modalities. "
    "Human review recommended before proceeding."
)


def generate_explanations(
    bias_factors: Sequence[BiasFactor],
    job_description: JobDescription,
    needs_review: bool = False,
    parsed_resume: Optional[ParsedResume] = None,
    jd_match_result: Optional[JDMatchResult] = None,
) -> List[CandidateExplanation]:
    explanations: List[CandidateExplanation] = []

    if needs_review:
        explanations.append(
            CandidateExplanation(
                type=ExplanationType.WARNING,
                title=REVIEW_WARNING_TITLE,
                description=(
                    "Conflicting or ambiguous bias signals detected. System confidence is below "
                    "threshold for automated correction."
                ),
                impact=0,
            )
        )

    for factor in bias_factors:
        explanations.append(
            CandidateExplanation(
                type=ExplanationType.CORRECTION,
                title=f"{factor.label} Corrected",
                description=factor.explanation,
                impact=abs(factor.contribution),
            )
        )

    explanations.append(
        CandidateExplanation(
            type=ExplanationType.INFO,
            title="Skills Alignment Confirmed",
            description=(
                "Technical skills and experience remain the primary contributors to the adjusted "
                f"score for {job_description.role_title}."
            ),
            impact=0,
        )
    )

    if parsed_resume is not None and jd_match_result is not None:
        explanations.append(
            CandidateExplanation(
                type=ExplanationType.INFO,
                title="Resume Parsed Successfully",
                description=(
                    f"Extracted {len(parsed_resume.skills)} skills, {len(parsed_resume.experience)} "
                    f"experience entries, and {len(parsed_resume.education)} education credentials "
                    "from uploaded resume."
                ),
                impact=0,
            )
        )

        matched = jd_match_result.matched_skills
        if matched:
            if jd_match_result.missing_skills:
                gap_text = f"Missing: {', '.join(jd_match_result.missing_skills[:3])}"
            else:
                gap_text = "All required skills present."
            explanations.append(
                CandidateExplanation(
                    type=ExplanationType.DETECTION,
                    title="JD Skill Match Analysis",
                    description=(
                        f"{len(matched)} of {len(job_description.required_skills)} required skills "
                        f"matched. {gap_text}"
                    ),
                    impact=len(matched) * 3,
                )
            )

    return explanations


def generate_counterfactuals(
    original_score: int,
    bias_factors: Sequence[BiasFactor],
) -> List[CounterfactualScenario]:
    scenarios: List[CounterfactualScenario] = []

    for bias_type, intervention in COUNTERFACTUAL_INTERVENTIONS:
        factor = next((f for f in bias_factors if f.type is bias_type), None)
        if factor is None:
            continue
        magnitude = abs(factor.contribution)
        if bias_type is BiasType.INSTITUTION_BIAS:
            detected = magnitude > 3
        else:
            detected = True
        scenarios.append(
            CounterfactualScenario(
                intervention=intervention,
                original_outcome=original_score,
                counterfactual_outcome=original_score + magnitude,
                bias_detected=detected,
            )
        )

    if not scenarios:
        scenarios.append(
            CounterfactualScenario(
                intervention="All demographic markers anonymized",
                original_outcome=original_score,
                counterfactual_outcome=original_score + DEFAULT_COUNTERFACTUAL_BOOST,
                bias_detected=False,
            )
        )

    return scenarios


def generate_fairness_summary(
    candidate_name: str,
    bias_factors: Sequence[BiasFactor],
    original_score: int,
    adjusted_score: int,
    job_description: JobDescription,
    needs_review: bool,
) -> str:
    role = job_description.role_title
    if needs_review:
        return REVIEW_SUMMARY.format(role=role)

    seed = stable_hash(candidate_name)
    if not bias_factors:
        return NO_BIAS_TEMPLATES[seed % len(NO_BIAS_TEMPLATES)].format(role=role)

    change = adjusted_score - original_score
    # First factor wins ties.
    top_factor = max(bias_factors, key=lambda f: abs(f.contribution))
    template = CORRECTED_TEMPLATES[seed % len(CORRECTED_TEMPLATES)]
    return template.format(
        role=role,
        count=len(bias_factors),
        label=top_factor.label,
        change=f"+{change}" if change > 0 else str(change),
    )
