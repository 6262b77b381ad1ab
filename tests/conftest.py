"""
PyTest configuration file containing test fixtures.
"""
import os
from datetime import date, datetime, timezone
from typing import Any, Callable

import pytest
from dotenv import load_dotenv

from jobmatch_core.core.config import Settings
from jobmatch_core.repositories.job import InMemoryScoreRepository
from jobmatch_core.repositories.user import InMemoryBehaviorRepository, InMemoryProfileRepository
from jobmatch_core.schemas.job import (
    EmploymentType,
    ExperienceLevel,
    ExtractedSkill,
    JobMetadata,
    JobPosting,
    Salary,
    SkillCategory,
)
from jobmatch_core.schemas.profile import (
    LocationPreferences,
    Proficiency,
    SalaryExpectations,
    UserProfile,
    UserSkill,
)
from jobmatch_core.services.extractor import JobParser
from jobmatch_core.services.matcher import JobMatcher
from jobmatch_core.services.scorer import JobScorer

SENIOR_ENGINEER_POSTING = """Senior Software Engineer - TechCorp

Location: San Francisco, CA (Remote OK)
Salary: $130,000 - $160,000 per year
Employment Type: Full-time
Posted: 2024-03-01

We are building the next generation of developer tools and our platform
team is growing. You will design and ship services used by thousands of
engineering teams.

Requirements:
- 5+ years of professional software development experience
- Strong proficiency in JavaScript, React, and Node.js
- Experience with PostgreSQL and Docker
- Excellent communication skills

Benefits:
- Health, dental and vision insurance
- 401k matching
- Flexible PTO
"""

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configure pytest."""
    # Load environment variables
    load_dotenv()

    # Set test environment
    os.environ["JOBMATCH_ENVIRONMENT"] = "test"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, ENVIRONMENT="test")


@pytest.fixture
def now() -> datetime:
    """Fixed extraction time."""
    return NOW


@pytest.fixture
def sample_posting() -> str:
    """Well-formed senior engineering posting."""
    return SENIOR_ENGINEER_POSTING


@pytest.fixture
def developer_profile() -> UserProfile:
    """Mid-career JavaScript developer."""
    return UserProfile(
        id="user-1",
        skills=[
            UserSkill(name="JavaScript", proficiency=Proficiency.EXPERT, years_experience=6,
                      last_used=date.today()),
            UserSkill(name="React", proficiency=Proficiency.ADVANCED, years_experience=4,
                      last_used=date.today()),
            UserSkill(name="Postgres", proficiency=Proficiency.INTERMEDIATE, years_experience=3),
        ],
        experience_years=6,
        current_role="Software Engineer",
        desired_roles=["Senior Software Engineer"],
        salary_expectations=SalaryExpectations(min=120000, max=170000),
        location_preferences=LocationPreferences(locations=["San Francisco, CA"]),
    )


@pytest.fixture
def make_job() -> Callable[..., JobPosting]:
    """Factory for job postings with sensible defaults."""

    def _make_job(**overrides: Any) -> JobPosting:
        fields = {
            "id": "job-1",
            "title": "Software Engineer",
            "company": "Acme",
            "location": "San Francisco, CA",
            "description": "Build web services",
            "salary": Salary(),
            "employment_type": EmploymentType.FULL_TIME,
            "experience_level": ExperienceLevel.MID,
            "skills": [
                ExtractedSkill(name="javascript", category=SkillCategory.PROGRAMMING,
                               required=True, confidence=1.0),
            ],
            "metadata": JobMetadata(scraped_at=NOW),
        }
        fields.update(overrides)
        return JobPosting(**fields)

    return _make_job


@pytest.fixture
def profile_repo(developer_profile: UserProfile) -> InMemoryProfileRepository:
    """Profile repository holding the developer profile."""
    return InMemoryProfileRepository([developer_profile])


@pytest.fixture
def score_repo() -> InMemoryScoreRepository:
    return InMemoryScoreRepository()


@pytest.fixture
def behavior_repo() -> InMemoryBehaviorRepository:
    return InMemoryBehaviorRepository()


@pytest.fixture
def parser(settings: Settings) -> JobParser:
    return JobParser(settings)


@pytest.fixture
def scorer(profile_repo, score_repo, settings: Settings) -> JobScorer:
    """Scorer for the developer profile."""
    return JobScorer("user-1", profile_repo, score_repo, settings)


@pytest.fixture
def matcher(behavior_repo, settings: Settings) -> JobMatcher:
    return JobMatcher(behavior_repo, settings)
