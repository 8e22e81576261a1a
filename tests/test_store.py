"""Job board validation, candidate cap and JSON persistence tests."""

import json

import pytest

from fairhire.analyzer import match_resume_to_jd
from fairhire.errors import CandidateLimitError, JobDescriptionError, UnknownJobError
from fairhire.models import CandidateInput, ExperienceRange, InterviewVideo, Modality, RoleType
from fairhire.store import JobBoard, candidate_from_dict, job_description_from_dict, to_dict
from tests.samples import FIXED_TIME, JD_DESCRIPTION


def _create_job(board, **overrides):
    fields = dict(
        role_title="Backend Engineer",
        required_skills=["Python", "Django", "Kubernetes"],
        experience_range=ExperienceRange(2, 6),
        language_requirements=["English"],
        skills_weight=60,
    )
    fields.update(overrides)
    return board.create_job_description(**fields)


# =============================================================================
# JOB DESCRIPTION VALIDATION
# =============================================================================

class TestCreateJobDescription:

    def test_creates_and_lists(self, board):
        job = _create_job(board, role_type=RoleType.SOFTWARE_ENGINEER)
        assert job.id.startswith("jd-")
        assert job.experience_weight == 40
        assert job.created_at.microsecond == 0
        assert board.job_descriptions == [job]
        assert board.get_job(job.id) is job

    def test_description_is_analysed(self, board):
        job = _create_job(board, description=JD_DESCRIPTION)
        assert job.parsed_features is not None
        assert job.parsed_features.complexity == "senior"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"role_title": "   "},
            {"required_skills": []},
            {"required_skills": ["  "]},
            {"experience_range": ExperienceRange(5, 2)},
            {"experience_range": ExperienceRange(-1, 2)},
            {"skills_weight": 10},
            {"skills_weight": 85},
            {"description": "Too short to be a real job description."},
            {"description": " ".join(["word"] * 301)},
        ],
    )
    def test_rejects_invalid_input(self, board, overrides):
        with pytest.raises(JobDescriptionError):
            _create_job(board, **overrides)
        assert board.job_descriptions == []

    def test_unknown_job(self, board):
        with pytest.raises(UnknownJobError):
            board.get_job("jd-missing")
        with pytest.raises(KeyError):
            board.stats("jd-missing")
        with pytest.raises(UnknownJobError):
            board.add_candidate("jd-missing", CandidateInput(name="Tom Becker", modalities=["resume"]))
        assert board.candidates_for("jd-missing") == []


# =============================================================================
# CANDIDATES
# =============================================================================

class TestCandidates:

    def test_cap_rejects_seventh_candidate(self, board):
        job = _create_job(board)
        for i in range(6):
            board.add_candidate(job.id, CandidateInput(name=f"Candidate {i}", modalities=[Modality.RESUME]))
        with pytest.raises(CandidateLimitError):
            board.add_candidate(job.id, CandidateInput(name="Seventh", modalities=[Modality.RESUME]))
        assert len(board.candidates_for(job.id)) == 6

    def test_cap_is_per_job(self, board):
        first = _create_job(board)
        second = _create_job(board, role_title="Data Analyst")
        board.add_sample_candidates(first.id)
        candidate = board.add_candidate(second.id, CandidateInput(name="Wei Zhang", modalities=["audio"]))
        assert candidate.job_description_id == second.id

    def test_sample_candidates_fill_to_cap(self, board):
        job = _create_job(board)
        board.add_candidate(job.id, CandidateInput(name="Own Candidate", modalities=[Modality.RESUME]))
        added = board.add_sample_candidates(job.id)
        assert [c.name for c in added] == [
            "Sarah Chen",
            "Marcus Johnson",
            "Priya Sharma",
            "James Wilson",
            "Fatima Al-Hassan",
        ]
        assert board.add_sample_candidates(job.id) == []

    def test_third_candidate_goes_to_review(self, board):
        job = _create_job(board)
        added = board.add_sample_candidates(job.id)
        assert added[2].status.value == "review"

    def test_lookup_clear_and_stats(self, board):
        job = _create_job(board)
        added = board.add_sample_candidates(job.id)
        assert board.get_candidate(added[0].id) == added[0]
        assert board.stats(job.id).candidates_analyzed == 6
        assert board.stats().candidates_analyzed == 6
        assert board.clear_candidates(job.id) == 6
        assert board.candidates_for(job.id) == []
        assert board.stats(job.id).candidates_analyzed == 0
        assert board.get_candidate(added[0].id) is None


# =============================================================================
# PERSISTENCE
# =============================================================================

class TestPersistence:

    def test_round_trip(self, board, tmp_path, parsed_resume):
        job = _create_job(board, description=JD_DESCRIPTION, created_at=FIXED_TIME)
        board.add_sample_candidates(job.id)
        board.clear_candidates(job.id)
        candidate = board.add_candidate(
            job.id,
            CandidateInput(
                name="Priya Sharma",
                modalities=[Modality.RESUME, Modality.VIDEO, Modality.AUDIO],
                parsed_resume=parsed_resume,
                jd_match_result=match_resume_to_jd(parsed_resume, job),
                resume_file_name="priya.txt",
                interview_video=InterviewVideo(
                    file_name="intro.mp4", file_size=2048, uploaded_at=FIXED_TIME, format="mp4"
                ),
            ),
        )

        path = tmp_path / "state.json"
        board.save(str(path))
        restored = JobBoard.load(str(path))

        assert restored.job_descriptions == [job]
        assert restored.candidates_for(job.id) == [candidate]

    def test_timestamps_are_iso_seconds(self, board, tmp_path):
        job = _create_job(board, created_at=FIXED_TIME)
        board.add_candidate(
            job.id, CandidateInput(name="Tom Becker", modalities=["resume"]), processed_at=FIXED_TIME
        )
        path = tmp_path / "state.json"
        board.save(str(path))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["job_descriptions"][0]["created_at"] == "2024-05-01T09:30:00+00:00"
        assert data["candidates"][0]["processed_at"] == "2024-05-01T09:30:00+00:00"
        assert data["candidates"][0]["modalities"] == ["resume"]

    def test_naive_timestamps_survive_round_trip(self, board, tmp_path):
        naive = FIXED_TIME.replace(tzinfo=None, microsecond=500)
        job = _create_job(board, created_at=naive)
        candidate = board.add_candidate(
            job.id,
            CandidateInput(
                name="Tom Becker",
                modalities=["resume", "video"],
                interview_video=InterviewVideo(
                    file_name="intro.mp4", file_size=10, uploaded_at=naive, format="mp4"
                ),
            ),
            processed_at=naive,
        )
        assert job.created_at == FIXED_TIME
        assert candidate.processed_at == FIXED_TIME
        assert candidate.interview_video.uploaded_at == FIXED_TIME

        path = tmp_path / "state.json"
        board.save(str(path))
        restored = JobBoard.load(str(path))
        assert restored.job_descriptions == [job]
        assert restored.candidates_for(job.id) == [candidate]

    def test_record_helpers(self, board):
        job = _create_job(board)
        candidate = board.add_candidate(job.id, CandidateInput(name="Emma Hart", modalities=["video"]))
        assert job_description_from_dict(to_dict(job)) == job
        assert candidate_from_dict(to_dict(candidate)) == candidate

    def test_to_dict_requires_dataclass(self):
        with pytest.raises(TypeError):
            to_dict({"not": "a dataclass"})
