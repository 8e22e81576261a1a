"""Record types shared by the parser, analyzer and scoring engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Modality(str, Enum):
    RESUME = "resume"
    VIDEO = "video"
    AUDIO = "audio"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BiasType(str, Enum):
    NAME_PROXY = "name_proxy"
    ACCENT_PENALTY = "accent_penalty"
    LANGUAGE_FLUENCY = "language_fluency"
    APPEARANCE_BIAS = "appearance_bias"
    BACKGROUND_ENVIRONMENT = "background_environment"
    GENDER_LANGUAGE = "gender_language"
    INSTITUTION_BIAS = "institution_bias"
    AGE_PROXY = "age_proxy"


class BiasSource(str, Enum):
    TEXT = "text"
    AUDIO = "audio"
    VIDEO = "video"
    MULTIPLE = "multiple"


class ExperienceMatch(str, Enum):
    BELOW = "below"
    MEETS = "meets"
    EXCEEDS = "exceeds"


class CandidateStatus(str, Enum):
    PROCESSED = "processed"
    REVIEW = "review"
    PENDING = "pending"


class ExplanationType(str, Enum):
    CORRECTION = "correction"
    DETECTION = "detection"
    INFO = "info"
    WARNING = "warning"


class RoleType(str, Enum):
    SOFTWARE_ENGINEER = "software_engineer"
    DATA_SCIENTIST = "data_scientist"
    PRODUCT_MANAGER = "product_manager"
    DESIGNER = "designer"
    MARKETING = "marketing"
    OPERATIONS = "operations"


# --- Job descriptions -----------------------------------------------------------

@dataclass(frozen=True)
class ExperienceRange:
    min: int
    max: int


@dataclass
class JDFeatures:
    detected_skills: List[str] = field(default_factory=list)
    domain: str = "general"
    complexity: str = "mid"
    keywords: List[str] = field(default_factory=list)


@dataclass
class JobDescription:
    id: str
    role_title: str
    required_skills: List[str]
    experience_range: ExperienceRange
    language_requirements: List[str]
    skills_weight: int
    created_at: datetime
    role_type: Optional[RoleType] = None
    description: Optional[str] = None
    parsed_features: Optional[JDFeatures] = None

    @property
    def experience_weight(self) -> int:
        return 100 - self.skills_weight


# --- Parsed resumes -------------------------------------------------------------

@dataclass
class EducationEntry:
    institution: str
    degree: str
    field: str = ""
    year: str = ""


@dataclass
class ExperienceEntry:
    company: str
    title: str
    duration: str = ""
    description: str = ""


@dataclass
class ProjectEntry:
    name: str
    description: str = ""
    technologies: List[str] = field(default_factory=list)


@dataclass
class ParsedResume:
    raw_text: str
    candidate_name: str
    email: str = ""
    phone: str = ""
    education: List[EducationEntry] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    experience: List[ExperienceEntry] = field(default_factory=list)
    projects: List[ProjectEntry] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    summary: str = ""
    parse_confidence: int = 0


@dataclass
class JDMatchResult:
    overall_score: int
    matched_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    partial_matches: List[str] = field(default_factory=list)
    experience_match: ExperienceMatch = ExperienceMatch.MEETS
    experience_years: float = 1.0
    strength_areas: List[str] = field(default_factory=list)
    improvement_areas: List[str] = field(default_factory=list)


@dataclass
class JDDescriptionAlignment:
    skill_overlap_percent: int
    responsibilities_match: str
    missing_areas: List[str] = field(default_factory=list)
    alignment_summary: str = ""


# --- Bias analysis --------------------------------------------------------------

@dataclass(frozen=True)
class BiasFactor:
    type: BiasType
    label: str
    severity: Severity
    contribution: int
    explanation: str
    jd_context: str


@dataclass
class ModalityScore:
    modality: Modality
    original_score: int
    adjusted_score: int
    bias_factors: List[BiasFactor] = field(default_factory=list)
    confidence_score: int = 0


@dataclass
class CandidateExplanation:
    type: ExplanationType
    title: str
    description: str
    impact: int = 0


@dataclass
class CounterfactualScenario:
    intervention: str
    original_outcome: int
    counterfactual_outcome: int
    bias_detected: bool


@dataclass
class CrossModalConsistency:
    resume_vs_interview_score: int
    skill_match_level: str
    accent_penalty_detected: bool
    fluency_bias_detected: bool
    visual_bias_detected: bool
    bias_source: BiasSource
    consistency_score: int
    flags: List[str] = field(default_factory=list)


@dataclass
class InclusionSignal:
    type: str
    detected: bool
    confidence: int
    adaptation: str


@dataclass
class InclusionAdjustment:
    signals: List[InclusionSignal] = field(default_factory=list)
    total_adjustment: int = 0
    explanation_text: str = ""


@dataclass
class InterviewVideo:
    file_name: str
    file_size: int
    uploaded_at: datetime
    format: str
    duration: Optional[float] = None


# --- Candidates -----------------------------------------------------------------

@dataclass
class CandidateInput:
    name: str
    modalities: List[Modality]
    position: str = ""
    parsed_resume: Optional[ParsedResume] = None
    jd_match_result: Optional[JDMatchResult] = None
    resume_file_name: Optional[str] = None
    interview_video: Optional[InterviewVideo] = None


@dataclass
class Candidate:
    id: str
    name: str
    position: str
    original_score: int
    adjusted_score: int
    bias_level: Severity
    modalities: List[Modality]
    status: CandidateStatus
    job_description_id: str
    modality_scores: List[ModalityScore]
    bias_factors: List[BiasFactor]
    explanations: List[CandidateExplanation]
    counterfactuals: List[CounterfactualScenario]
    fairness_summary: str
    processed_at: datetime
    parsed_resume: Optional[ParsedResume] = None
    jd_match_result: Optional[JDMatchResult] = None
    jd_description_alignment: Optional[JDDescriptionAlignment] = None
    resume_file_name: Optional[str] = None
    interview_video: Optional[InterviewVideo] = None
    cross_modal_consistency: Optional[CrossModalConsistency] = None
    inclusion_adjustment: Optional[InclusionAdjustment] = None

    @property
    def score_change(self) -> int:
        return self.adjusted_score - self.original_score


@dataclass
class DashboardStats:
    candidates_analyzed: int = 0
    fairness_score: float = 0.0
    bias_corrections: int = 0
    avg_score_change: float = 0.0
    inclusion_corrections: int = 0
    avg_inclusion_boost: float = 0.0
