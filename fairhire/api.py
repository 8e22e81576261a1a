# api.py (job board HTTP surface)
import logging
import os
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from . import config
from .analyzer import match_resume_to_jd
from .engine import utc_timestamp
from .errors import CandidateLimitError, JobDescriptionError, ParseError, UnknownJobError
from .models import CandidateInput, ExperienceRange, InterviewVideo, Modality, RoleType
from .parser import parse_document_async
from .store import JobBoard, to_dict

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(title="FairHire360")
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _initial_board() -> JobBoard:
    if config.STATE_PATH and os.path.exists(config.STATE_PATH):
        return JobBoard.load(config.STATE_PATH)
    return JobBoard()


BOARD = _initial_board()


def get_board() -> JobBoard:
    return BOARD


def _persist(board: JobBoard) -> None:
    if config.STATE_PATH:
        board.save(config.STATE_PATH)


class ExperienceRangeIn(BaseModel):
    min: int = 0
    max: int = 5


class JobDescriptionIn(BaseModel):
    role_title: str
    required_skills: List[str]
    experience_range: ExperienceRangeIn = Field(default_factory=ExperienceRangeIn)
    language_requirements: List[str] = Field(default_factory=list)
    skills_weight: int = 60
    role_type: Optional[RoleType] = None
    description: Optional[str] = None


def _parse_modalities(raw: str) -> List[Modality]:
    modalities: List[Modality] = []
    for item in raw.split(","):
        value = item.strip().lower()
        if not value:
            continue
        try:
            modality = Modality(value)
        except ValueError:
            raise HTTPException(status_code=422, detail=f"Unknown modality '{value}'.") from None
        if modality not in modalities:
            modalities.append(modality)
    return modalities


def _lookup_job(board: JobBoard, job_id: str):
    try:
        return board.get_job(job_id)
    except UnknownJobError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.post("/jobs/", status_code=201)
async def create_job(payload: JobDescriptionIn, board: JobBoard = Depends(get_board)):
    try:
        job = board.create_job_description(
            role_title=payload.role_title,
            required_skills=payload.required_skills,
            experience_range=ExperienceRange(payload.experience_range.min, payload.experience_range.max),
            language_requirements=payload.language_requirements,
            skills_weight=payload.skills_weight,
            role_type=payload.role_type,
            description=payload.description,
        )
    except JobDescriptionError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    _persist(board)
    return to_dict(job)


@app.get("/jobs/")
async def list_jobs(board: JobBoard = Depends(get_board)):
    return [to_dict(job) for job in board.job_descriptions]


@app.get("/jobs/{job_id}")
async def get_job(job_id: str, board: JobBoard = Depends(get_board)):
    return to_dict(_lookup_job(board, job_id))


@app.post("/jobs/{job_id}/candidates/", status_code=201)
async def upload_candidate(
    job_id: str,
    name: str = Form(""),
    modalities: str = Form("resume"),
    resume: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    board: JobBoard = Depends(get_board),
):
    job = _lookup_job(board, job_id)
    selected = _parse_modalities(modalities)

    parsed_resume = None
    jd_match_result = None
    resume_file_name = None
    if resume is not None and resume.filename:
        data = await resume.read()
        try:
            parsed_resume = await parse_document_async(data, filename=resume.filename)
        except ParseError as exc:
            logger.warning("Rejected resume %s: %s", resume.filename, exc)
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        jd_match_result = match_resume_to_jd(parsed_resume, job)
        resume_file_name = resume.filename
        if Modality.RESUME not in selected:
            selected.insert(0, Modality.RESUME)

    interview_video = None
    if video is not None and video.filename:
        content = await video.read()
        extension = os.path.splitext(video.filename)[1].lstrip(".").lower()
        interview_video = InterviewVideo(
            file_name=video.filename,
            file_size=len(content),
            uploaded_at=utc_timestamp(),
            format=extension or (video.content_type or "unknown"),
        )
        if Modality.VIDEO not in selected:
            selected.append(Modality.VIDEO)

    if not selected:
        raise HTTPException(status_code=422, detail="At least one modality is required.")

    candidate_name = name.strip() or (parsed_resume.candidate_name if parsed_resume else "")
    if not candidate_name:
        raise HTTPException(status_code=422, detail="Candidate name is required.")

    candidate_input = CandidateInput(
        name=candidate_name,
        modalities=selected,
        position=job.role_title,
        parsed_resume=parsed_resume,
        jd_match_result=jd_match_result,
        resume_file_name=resume_file_name,
        interview_video=interview_video,
    )
    try:
        candidate = board.add_candidate(job_id, candidate_input)
    except CandidateLimitError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    _persist(board)
    return to_dict(candidate)


@app.post("/jobs/{job_id}/samples/", status_code=201)
async def add_samples(job_id: str, board: JobBoard = Depends(get_board)):
    _lookup_job(board, job_id)
    added = board.add_sample_candidates(job_id)
    _persist(board)
    return [to_dict(candidate) for candidate in added]


@app.get("/jobs/{job_id}/candidates/")
async def list_candidates(job_id: str, board: JobBoard = Depends(get_board)):
    _lookup_job(board, job_id)
    return [to_dict(candidate) for candidate in board.candidates_for(job_id)]


@app.delete("/jobs/{job_id}/candidates/")
async def clear_candidates(job_id: str, board: JobBoard = Depends(get_board)):
    _lookup_job(board, job_id)
    removed = board.clear_candidates(job_id)
    _persist(board)
    return {"removed": removed}


@app.get("/candidates/{candidate_id}")
async def get_candidate(candidate_id: str, board: JobBoard = Depends(get_board)):
    candidate = board.get_candidate(candidate_id)
    if candidate is None:
        raise HTTPException(status_code=404, detail=f"No candidate with id '{candidate_id}'.")
    return to_dict(candidate)


@app.get("/jobs/{job_id}/stats")
async def job_stats(job_id: str, board: JobBoard = Depends(get_board)):
    _lookup_job(board, job_id)
    return to_dict(board.stats(job_id))


@app.get("/stats")
async def overall_stats(board: JobBoard = Depends(get_board)):
    return to_dict(board.stats())
