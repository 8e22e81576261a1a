"""
Shared pytest fixtures for the FairHire360 test suite.

Provides a realistic plain-text resume, a job description with and without
free-text description, and a fresh JobBoard per test.
"""

import pytest

from fairhire.models import ExperienceRange, JobDescription
from fairhire.parser import parse_resume_text
from fairhire.store import JobBoard
from tests.samples import FIXED_TIME, JD_DESCRIPTION, RESUME_TEXT


@pytest.fixture
def resume_text():
    return RESUME_TEXT


@pytest.fixture
def parsed_resume():
    return parse_resume_text(RESUME_TEXT)


@pytest.fixture
def job_description():
    return JobDescription(
        id="jd-test",
        role_title="Backend Engineer",
        required_skills=["Python", "Django", "Kubernetes"],
        experience_range=ExperienceRange(2, 6),
        language_requirements=["English"],
        skills_weight=60,
        created_at=FIXED_TIME,
    )


@pytest.fixture
def described_job(job_description):
    job_description.description = JD_DESCRIPTION
    return job_description


@pytest.fixture
def fixed_time():
    return FIXED_TIME


@pytest.fixture
def board():
    return JobBoard(max_candidates_per_job=6)
