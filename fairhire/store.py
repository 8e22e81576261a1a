"""In-process job board: job descriptions, their candidates, and JSON persistence."""

import json
import logging
import threading
import uuid
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from . import config
from .analyzer import extract_jd_features
from .engine import calculate_stats, process_candidate, utc_timestamp
from .errors import CandidateLimitError, JobDescriptionError, UnknownJobError
from .models import (
    BiasFactor,
    BiasSource,
    BiasType,
    Candidate,
    CandidateExplanation,
    CandidateInput,
    CandidateStatus,
    CounterfactualScenario,
    CrossModalConsistency,
    DashboardStats,
    EducationEntry,
    ExperienceEntry,
    ExperienceMatch,
    ExperienceRange,
    ExplanationType,
    InclusionAdjustment,
    InclusionSignal,
    InterviewVideo,
    JDDescriptionAlignment,
    JDFeatures,
    JDMatchResult,
    JobDescription,
    Modality,
    ModalityScore,
    ParsedResume,
    ProjectEntry,
    RoleType,
    Severity,
)
from .skills import SAMPLE_CANDIDATES

logger = logging.getLogger(__name__)

MIN_SKILLS_WEIGHT = 20
MAX_SKILLS_WEIGHT = 80
MIN_DESCRIPTION_WORDS = 50
MAX_DESCRIPTION_WORDS = 300
STATE_VERSION = 1


# --- Serialisation ----------------------------------------------------------------

def _format_timestamp(value: datetime) -> str:
    return utc_timestamp(value).isoformat()


def _parse_timestamp(value: str) -> datetime:
    return utc_timestamp(datetime.fromisoformat(value))


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return _format_timestamp(value)
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def to_dict(record: Any) -> Dict[str, Any]:
    """Plain JSON-ready dict for any model dataclass."""
    if not is_dataclass(record):
        raise TypeError(f"Expected a dataclass instance, got {type(record).__name__}")
    return _jsonable(asdict(record))


def _optional(data: Dict[str, Any], key: str, builder):
    value = data.get(key)
    return builder(value) if value is not None else None


def job_description_from_dict(data: Dict[str, Any]) -> JobDescription:
    return JobDescription(
        id=data["id"],
        role_title=data["role_title"],
        required_skills=list(data["required_skills"]),
        experience_range=ExperienceRange(**data["experience_range"]),
        language_requirements=list(data.get("language_requirements", [])),
        skills_weight=int(data["skills_weight"]),
        created_at=_parse_timestamp(data["created_at"]),
        role_type=_optional(data, "role_type", RoleType),
        description=data.get("description"),
        parsed_features=_optional(data, "parsed_features", lambda d: JDFeatures(**d)),
    )


def parsed_resume_from_dict(data: Dict[str, Any]) -> ParsedResume:
    return ParsedResume(
        raw_text=data["raw_text"],
        candidate_name=data["candidate_name"],
        email=data.get("email", ""),
        phone=data.get("phone", ""),
        education=[EducationEntry(**entry) for entry in data.get("education", [])],
        skills=list(data.get("skills", [])),
        experience=[ExperienceEntry(**entry) for entry in data.get("experience", [])],
        projects=[ProjectEntry(**entry) for entry in data.get("projects", [])],
        languages=list(data.get("languages", [])),
        summary=data.get("summary", ""),
        parse_confidence=int(data.get("parse_confidence", 0)),
    )


def jd_match_result_from_dict(data: Dict[str, Any]) -> JDMatchResult:
    fields = dict(data)
    fields["experience_match"] = ExperienceMatch(fields.get("experience_match", "meets"))
    return JDMatchResult(**fields)


def _bias_factor_from_dict(data: Dict[str, Any]) -> BiasFactor:
    return BiasFactor(
        type=BiasType(data["type"]),
        label=data["label"],
        severity=Severity(data["severity"]),
        contribution=int(data["contribution"]),
        explanation=data["explanation"],
        jd_context=data["jd_context"],
    )


def _consistency_from_dict(data: Dict[str, Any]) -> CrossModalConsistency:
    fields = dict(data)
    fields["bias_source"] = BiasSource(fields["bias_source"])
    return CrossModalConsistency(**fields)


def _inclusion_from_dict(data: Dict[str, Any]) -> InclusionAdjustment:
    return InclusionAdjustment(
        signals=[InclusionSignal(**signal) for signal in data.get("signals", [])],
        total_adjustment=int(data.get("total_adjustment", 0)),
        explanation_text=data.get("explanation_text", ""),
    )


def _interview_video_from_dict(data: Dict[str, Any]) -> InterviewVideo:
    fields = dict(data)
    fields["uploaded_at"] = _parse_timestamp(fields["uploaded_at"])
    return InterviewVideo(**fields)


def candidate_from_dict(data: Dict[str, Any]) -> Candidate:
    return Candidate(
        id=data["id"],
        name=data["name"],
        position=data["position"],
        original_score=int(data["original_score"]),
        adjusted_score=int(data["adjusted_score"]),
        bias_level=Severity(data["bias_level"]),
        modalities=[Modality(m) for m in data["modalities"]],
        status=CandidateStatus(data["status"]),
        job_description_id=data["job_description_id"],
        modality_scores=[
            ModalityScore(
                modality=Modality(score["modality"]),
                original_score=int(score["original_score"]),
                adjusted_score=int(score["adjusted_score"]),
                bias_factors=[_bias_factor_from_dict(f) for f in score.get("bias_factors", [])],
                confidence_score=int(score.get("confidence_score", 0)),
            )
            for score in data.get("modality_scores", [])
        ],
        bias_factors=[_bias_factor_from_dict(f) for f in data.get("bias_factors", [])],
        explanations=[
            CandidateExplanation(
                type=ExplanationType(item["type"]),
                title=item["title"],
                description=item["description"],
                impact=int(item.get("impact", 0)),
            )
            for item in data.get("explanations", [])
        ],
        counterfactuals=[CounterfactualScenario(**item) for item in data.get("counterfactuals", [])],
        fairness_summary=data.get("fairness_summary", ""),
        processed_at=_parse_timestamp(data["processed_at"]),
        parsed_resume=_optional(data, "parsed_resume", parsed_resume_from_dict),
        jd_match_result=_optional(data, "jd_match_result", jd_match_result_from_dict),
        jd_description_alignment=_optional(
            data, "jd_description_alignment", lambda d: JDDescriptionAlignment(**d)
        ),
        resume_file_name=data.get("resume_file_name"),
        interview_video=_optional(data, "interview_video", _interview_video_from_dict),
        cross_modal_consistency=_optional(data, "cross_modal_consistency", _consistency_from_dict),
        inclusion_adjustment=_optional(data, "inclusion_adjustment", _inclusion_from_dict),
    )


# --- Job board --------------------------------------------------------------------

class JobBoard:
    """Owns job descriptions and their candidates.

    Enforces the per-job candidate limit. All mutations take the board lock
    so the limit holds when requests arrive concurrently.
    """

    def __init__(self, max_candidates_per_job: Optional[int] = None) -> None:
        self.max_candidates_per_job = (
            max_candidates_per_job if max_candidates_per_job is not None else config.MAX_CANDIDATES_PER_JOB
        )
        self._jobs: Dict[str, JobDescription] = {}
        self._candidates: List[Candidate] = []
        self._lock = threading.Lock()

    # -- job descriptions --

    def create_job_description(
        self,
        role_title: str,
        required_skills: Iterable[str],
        experience_range: ExperienceRange,
        language_requirements: Iterable[str] = (),
        skills_weight: int = 60,
        role_type: Optional[RoleType] = None,
        description: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> JobDescription:
        title = (role_title or "").strip()
        if not title:
            raise JobDescriptionError("Role title is required.")

        skills = [skill.strip() for skill in required_skills if skill and skill.strip()]
        if not skills:
            raise JobDescriptionError("At least one required skill is needed.")

        if experience_range.min < 0 or experience_range.max < experience_range.min:
            raise JobDescriptionError(
                f"Invalid experience range {experience_range.min}-{experience_range.max}."
            )

        if not MIN_SKILLS_WEIGHT <= skills_weight <= MAX_SKILLS_WEIGHT:
            raise JobDescriptionError(
                f"Skills weight must be between {MIN_SKILLS_WEIGHT} and {MAX_SKILLS_WEIGHT}."
            )

        text = description.strip() if description else None
        parsed_features = None
        if text:
            word_count = len(text.split())
            if not MIN_DESCRIPTION_WORDS <= word_count <= MAX_DESCRIPTION_WORDS:
                raise JobDescriptionError(
                    f"Job description must be {MIN_DESCRIPTION_WORDS}-{MAX_DESCRIPTION_WORDS} words "
                    f"(got {word_count})."
                )
            parsed_features = extract_jd_features(text, skills)

        job = JobDescription(
            id=f"jd-{uuid.uuid4().hex[:12]}",
            role_title=title,
            required_skills=skills,
            experience_range=experience_range,
            language_requirements=[lang.strip() for lang in language_requirements if lang and lang.strip()],
            skills_weight=skills_weight,
            created_at=utc_timestamp(created_at),
            role_type=RoleType(role_type) if role_type else None,
            description=text or None,
            parsed_features=parsed_features,
        )
        with self._lock:
            self._jobs[job.id] = job
        logger.info("Created job description %s (%s)", job.id, job.role_title)
        return job

    @property
    def job_descriptions(self) -> List[JobDescription]:
        with self._lock:
            return list(self._jobs.values())

    def get_job(self, job_id: str) -> JobDescription:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise UnknownJobError(job_id) from None

    # -- candidates --

    def add_candidate(
        self,
        job_id: str,
        candidate_input: CandidateInput,
        processed_at: Optional[datetime] = None,
    ) -> Candidate:
        job = self.get_job(job_id)
        with self._lock:
            existing = sum(1 for c in self._candidates if c.job_description_id == job_id)
            if existing >= self.max_candidates_per_job:
                raise CandidateLimitError(job_id, self.max_candidates_per_job)
            candidate = process_candidate(candidate_input, job, existing, processed_at)
            self._candidates.append(candidate)
        return candidate

    def add_sample_candidates(self, job_id: str) -> List[Candidate]:
        """Add the demo candidates until the job is full."""
        job = self.get_job(job_id)
        added: List[Candidate] = []
        for name, modalities in SAMPLE_CANDIDATES:
            if len(self.candidates_for(job_id)) >= self.max_candidates_per_job:
                break
            candidate_input = CandidateInput(
                name=name,
                modalities=[Modality(m) for m in modalities],
                position=job.role_title,
            )
            added.append(self.add_candidate(job_id, candidate_input))
        logger.info("Added %s sample candidates to %s", len(added), job_id)
        return added

    def candidates_for(self, job_id: str) -> List[Candidate]:
        with self._lock:
            return [c for c in self._candidates if c.job_description_id == job_id]

    @property
    def candidates(self) -> List[Candidate]:
        with self._lock:
            return list(self._candidates)

    def clear_candidates(self, job_id: Optional[str] = None) -> int:
        with self._lock:
            before = len(self._candidates)
            if job_id is None:
                self._candidates = []
            else:
                self._candidates = [c for c in self._candidates if c.job_description_id != job_id]
            removed = before - len(self._candidates)
        logger.info("Cleared %s candidates", removed)
        return removed

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        with self._lock:
            return next((c for c in self._candidates if c.id == candidate_id), None)

    def stats(self, job_id: Optional[str] = None) -> DashboardStats:
        if job_id is None:
            return calculate_stats(self.candidates)
        self.get_job(job_id)
        return calculate_stats(self.candidates_for(job_id))

    # -- persistence --

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "version": STATE_VERSION,
                "job_descriptions": [to_dict(job) for job in self._jobs.values()],
                "candidates": [to_dict(candidate) for candidate in self._candidates],
            }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], max_candidates_per_job: Optional[int] = None) -> "JobBoard":
        board = cls(max_candidates_per_job)
        for item in data.get("job_descriptions", []):
            job = job_description_from_dict(item)
            board._jobs[job.id] = job
        board._candidates = [candidate_from_dict(item) for item in data.get("candidates", [])]
        return board

    def save(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(self.to_dict(), handle, indent=2)
        logger.info("Saved job board state to %s", path)

    @classmethod
    def load(cls, path: str, max_candidates_per_job: Optional[int] = None) -> "JobBoard":
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
        board = cls.from_dict(data, max_candidates_per_job)
        logger.info(
            "Loaded %s job descriptions and %s candidates from %s",
            len(board._jobs),
            len(board._candidates),
            path,
        )
        return board
