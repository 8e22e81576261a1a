"""FairHire360 scoring core: resume parsing, JD matching and bias-corrected scoring."""

from .analyzer import extract_jd_features, match_resume_to_jd
from .engine import calculate_stats, process_candidate
from .errors import (
    CandidateLimitError,
    FairHireError,
    JobDescriptionError,
    ParseError,
    UnknownJobError,
)
from .hashing import stable_hash
from .parser import parse_document, parse_document_async
from .store import JobBoard

__all__ = [
    "CandidateLimitError",
    "FairHireError",
    "JobBoard",
    "JobDescriptionError",
    "ParseError",
    "UnknownJobError",
    "calculate_stats",
    "extract_jd_features",
    "match_resume_to_jd",
    "parse_document",
    "parse_document_async",
    "process_candidate",
    "stable_hash",
]
