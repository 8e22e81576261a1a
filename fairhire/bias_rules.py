"""Deterministic bias detection rules.

Each rule inspects the candidate's name, the job description, the supplied
modalities and (optionally) the parsed resume, and returns at most one
``BiasFactor``. Applicability is decided with ``stable_hash`` seeded by the
candidate name plus a rule-specific suffix, so the same candidate always
triggers the same rules for a given role.

These are demo heuristics, not real bias signals.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Sequence

from .hashing import stable_hash
from .models import BiasFactor, BiasType, JobDescription, Modality, ParsedResume, Severity
from .skills import ELITE_INSTITUTION_REGEX, GENDER_CODED_WORDS, NAME_BIAS_PATTERNS

HIGH_BIAS_THRESHOLD = 15
MEDIUM_BIAS_THRESHOLD = 8

NAME_CONTRIBUTIONS = {"high": -12, "medium": -8, "low": -4}


@dataclass(frozen=True)
class RuleContext:
    candidate_name: str
    job_description: JobDescription
    modalities: FrozenSet[Modality]
    parsed_resume: Optional[ParsedResume] = None

    @classmethod
    def build(
        cls,
        candidate_name: str,
        job_description: JobDescription,
        modalities: Iterable,
        parsed_resume: Optional[ParsedResume] = None,
    ) -> "RuleContext":
        return cls(
            candidate_name=candidate_name,
            job_description=job_description,
            modalities=frozenset(Modality(m) for m in modalities),
            parsed_resume=parsed_resume,
        )

    @property
    def has_resume(self) -> bool:
        return Modality.RESUME in self.modalities

    @property
    def has_video(self) -> bool:
        return Modality.VIDEO in self.modalities

    @property
    def has_audio(self) -> bool:
        return Modality.AUDIO in self.modalities

    @property
    def role_title(self) -> str:
        return self.job_description.role_title


class BiasRule:
    """A single detection rule. Subclasses implement ``detect``."""

    bias_type: BiasType
    label: str
    seed_suffix: str = ""

    def detect(self, context: RuleContext) -> Optional[BiasFactor]:
        raise NotImplementedError

    def hash_for(self, context: RuleContext) -> int:
        return stable_hash(context.candidate_name + self.seed_suffix)

    def factor(
        self,
        severity: Severity,
        contribution: int,
        explanation: str,
        jd_context: str,
    ) -> BiasFactor:
        return BiasFactor(
            type=self.bias_type,
            label=self.label,
            severity=severity,
            contribution=contribution,
            explanation=explanation,
            jd_context=jd_context,
        )


class NameProxyRule(BiasRule):
    bias_type = BiasType.NAME_PROXY
    label = "Name-Based Bias"

    def detect(self, context: RuleContext) -> Optional[BiasFactor]:
        first_name = context.candidate_name.strip().split(" ")[0].lower()
        if not first_name:
            return None

        for tier in ("high", "medium", "low"):
            for pattern in NAME_BIAS_PATTERNS[tier]:
                pattern = pattern.lower()
                if pattern in first_name or first_name in pattern:
                    return self.factor(
                        Severity(tier),
                        NAME_CONTRIBUTIONS[tier],
                        "Statistical analysis suggests the candidate's name may have triggered "
                        "unconscious bias in ATS scoring algorithms.",
                        "Name pattern detected that historically correlates with scoring penalties "
                        f"unrelated to {context.role_title} requirements.",
                    )
        return None


class AccentPenaltyRule(BiasRule):
    bias_type = BiasType.ACCENT_PENALTY
    label = "Accent-Based Penalty"
    seed_suffix = "accent"

    def detect(self, context: RuleContext) -> Optional[BiasFactor]:
        if not context.has_audio or self.hash_for(context) % 3 != 0:
            return None

        requires_english = any(
            "english" in language.lower() for language in context.job_description.language_requirements
        )
        if requires_english:
            severity, contribution = Severity.MEDIUM, -10
            jd_context = (
                f"While {context.role_title} requires English proficiency, accent is not a valid "
                "competency indicator."
            )
        else:
            severity, contribution = Severity.HIGH, -18
            jd_context = "JD language requirements do not justify accent-based scoring penalties."

        return self.factor(
            severity,
            contribution,
            "Non-native accent pattern detected in audio analysis. This was identified as a "
            "non-skill factor and corrected.",
            jd_context,
        )


class AppearanceBiasRule(BiasRule):
    bias_type = BiasType.APPEARANCE_BIAS
    label = "Appearance-Related Bias"
    seed_suffix = "appearance"

    def detect(self, context: RuleContext) -> Optional[BiasFactor]:
        if not context.has_video or self.hash_for(context) % 4 != 0:
            return None
        return self.factor(
            Severity.LOW,
            -5,
            "Video analysis detected appearance-correlated scoring factors unrelated to job competency.",
            f"{context.role_title} role does not require specific appearance attributes.",
        )


class BackgroundEnvironmentRule(BiasRule):
    bias_type = BiasType.BACKGROUND_ENVIRONMENT
    label = "Background Environment Bias"
    seed_suffix = "background"

    def detect(self, context: RuleContext) -> Optional[BiasFactor]:
        if not context.has_video or self.hash_for(context) % 5 != 0:
            return None
        return self.factor(
            Severity.LOW,
            -4,
            "Interview background and lighting conditions influenced initial scoring unfairly.",
            f"Remote interview environment variance is not relevant to {context.role_title} performance.",
        )


class GenderCodedLanguageRule(BiasRule):
    bias_type = BiasType.GENDER_LANGUAGE
    label = "Gender-Coded Language"
    seed_suffix = "gender"

    def detect(self, context: RuleContext) -> Optional[BiasFactor]:
        if not context.has_resume:
            return None

        hash_triggered = self.hash_for(context) % 4 == 1
        found_pattern = False
        if context.parsed_resume is not None:
            raw_lower = context.parsed_resume.raw_text.lower()
            found_pattern = any(word in raw_lower for word in GENDER_CODED_WORDS)

        if not (hash_triggered or found_pattern):
            return None

        if context.parsed_resume is not None:
            explanation = (
                "Resume phrasing contains language patterns historically associated with gender "
                "bias in ATS systems."
            )
        else:
            explanation = (
                "Resume contains language patterns historically associated with gender bias in "
                "ATS systems."
            )
        return self.factor(
            Severity.MEDIUM if found_pattern else Severity.LOW,
            -8 if found_pattern else -5,
            explanation,
            f"{context.role_title} evaluation should focus on skills, not gendered language patterns.",
        )


class InstitutionBiasRule(BiasRule):
    bias_type = BiasType.INSTITUTION_BIAS
    label = "Institution Proxy Bias"
    seed_suffix = "institution"

    def detect(self, context: RuleContext) -> Optional[BiasFactor]:
        if not context.has_resume or self.hash_for(context) % 6 != 0:
            return None

        jd_context = (
            f"{context.role_title} requirements focus on skills and experience, not institutional prestige."
        )
        resume = context.parsed_resume
        if resume is not None and resume.education:
            education = resume.education[0]
            if not ELITE_INSTITUTION_REGEX.search(education.institution):
                return self.factor(
                    Severity.MEDIUM,
                    -7,
                    f'Educational institution "{education.institution}" may have influenced scoring '
                    f"beyond skill relevance. Credential verified: {education.degree}.",
                    jd_context,
                )

        return self.factor(
            Severity.LOW,
            -5,
            "Educational institution name may have influenced scoring beyond skill relevance.",
            jd_context,
        )


class ResumeLanguageStructureRule(BiasRule):
    bias_type = BiasType.LANGUAGE_FLUENCY
    label = "Resume Language Structure Bias"

    confidence_threshold = 70

    def detect(self, context: RuleContext) -> Optional[BiasFactor]:
        resume = context.parsed_resume
        if resume is None:
            return None

        non_standard_structure = resume.parse_confidence < self.confidence_threshold
        non_english = any(language != "English" for language in resume.languages)
        if not (non_standard_structure or non_english):
            return None

        return self.factor(
            Severity.MEDIUM,
            -9,
            "Resume language structure or formatting differs from standard Western templates. "
            "This may indicate ESL background or international education, neither of which "
            "affects job competency.",
            f"{context.role_title} role should evaluate candidates on skill merit, not resume "
            "formatting conventions.",
        )


# Evaluation order is part of the output contract.
DEFAULT_RULES: Sequence[BiasRule] = (
    NameProxyRule(),
    AccentPenaltyRule(),
    AppearanceBiasRule(),
    BackgroundEnvironmentRule(),
    GenderCodedLanguageRule(),
    InstitutionBiasRule(),
    ResumeLanguageStructureRule(),
)


def detect_bias_factors(
    context: RuleContext,
    rules: Sequence[BiasRule] = DEFAULT_RULES,
) -> List[BiasFactor]:
    factors: List[BiasFactor] = []
    for rule in rules:
        factor = rule.detect(context)
        if factor is not None:
            factors.append(factor)
    return factors


def total_correction(factors: Iterable[BiasFactor]) -> int:
    return sum(abs(factor.contribution) for factor in factors)


def bias_level_for(correction: int) -> Severity:
    if correction >= HIGH_BIAS_THRESHOLD:
        return Severity.HIGH
    if correction >= MEDIUM_BIAS_THRESHOLD:
        return Severity.MEDIUM
    return Severity.LOW
