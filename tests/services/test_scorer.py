"""Tests for the job scoring service."""
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import pydantic
import pytest
from structlog.testing import capture_logs

from jobmatch_core.core.config import Settings
from jobmatch_core.core.exceptions import (
    ProfileNotFoundError,
    RepositoryError,
    ServiceError,
    ValidationError,
)
from jobmatch_core.repositories.user import InMemoryProfileRepository
from jobmatch_core.schemas.job import (
    EmploymentType,
    ExperienceLevel,
    ExtractedSkill,
    JobMetadata,
    Salary,
    SalaryPeriod,
    SkillCategory,
)
from jobmatch_core.schemas.profile import (
    EmploymentPreferences,
    LocationPreferences,
    Proficiency,
    SalaryExpectations,
    UserProfile,
    UserSkill,
)
from jobmatch_core.schemas.score import MatchingCriteria, Recommendation
from jobmatch_core.services.scorer import JobScorer, recommendation_for, round_half_up


TODAY = date(2024, 3, 10)


def _skill(name, required=False, category=SkillCategory.PROGRAMMING):
    return ExtractedSkill(name=name, category=category, required=required, confidence=1.0)


@pytest.mark.asyncio
async def test_score_job_stores_result(scorer, score_repo, make_job):
    """Test scoring a job returns and persists the score."""
    job = make_job()

    with capture_logs() as logs:
        score = await scorer.score_job(job)

    assert score.job_id == "job-1"
    assert score.user_id == "user-1"
    assert score.overall_score == 84
    assert score.recommendation == Recommendation.GOOD_MATCH
    assert score.breakdown.skills_match == 100
    assert score.breakdown.location_match == 100
    assert "Perfect location match" in score.reasoning.strengths
    assert await score_repo.get("job-1", "user-1") == score
    assert any(log["event"] == "Job scored" for log in logs)


@pytest.mark.asyncio
async def test_score_is_immutable(scorer, make_job):
    """Test a returned score cannot be modified."""
    score = await scorer.score_job(make_job())

    with pytest.raises(pydantic.ValidationError):
        score.overall_score = 100


@pytest.mark.asyncio
async def test_salary_overlap(scorer, make_job):
    """Test partially overlapping salary bands."""
    job = make_job(salary=Salary(min=120000, max=140000))
    profile = UserProfile(id="user-1", salary_expectations=SalaryExpectations(min=100000, max=160000))

    assert scorer.calculate_salary_match(job, profile).score == pytest.approx(0.85)

    score = await scorer.score_job(job, profile)
    assert score.breakdown.salary_match == 85


@pytest.mark.asyncio
async def test_poor_match(scorer, make_job):
    """Test a job that misses on every dimension."""
    job = make_job(
        title="VP of Engineering",
        location="New York, NY",
        experience_level=ExperienceLevel.EXECUTIVE,
        salary=Salary(min=250000, max=300000),
        skills=[
            _skill("kubernetes", required=True, category=SkillCategory.TOOL),
            _skill("leadership", required=True, category=SkillCategory.SOFT_SKILL),
        ],
    )
    profile = UserProfile(
        id="user-1",
        skills=[UserSkill(name="Python", proficiency=Proficiency.ADVANCED)],
        experience_years=5,
        salary_expectations=SalaryExpectations(min=60000, max=80000),
        location_preferences=LocationPreferences(locations=["Austin, TX"]),
    )

    score = await scorer.score_job(job, profile)

    assert score.overall_score < 50
    assert score.recommendation == Recommendation.POOR_MATCH
    assert score.breakdown.skills_match == 0
    assert score.breakdown.experience_match == 40
    assert score.breakdown.location_match == 10
    assert score.breakdown.salary_match == 30
    assert "Limited skills match - missing 2 required skills" in score.reasoning.concerns
    assert "May be under-qualified (5 years below minimum)" in score.reasoning.concerns
    assert any("Location" in concern for concern in score.reasoning.concerns)
    assert [skill.have for skill in score.compatibility.must_have_skills] == [False, False]


@pytest.mark.parametrize("overall,expected", [
    (100, Recommendation.HIGHLY_RECOMMENDED),
    (85, Recommendation.HIGHLY_RECOMMENDED),
    (84, Recommendation.GOOD_MATCH),
    (70, Recommendation.GOOD_MATCH),
    (69, Recommendation.CONSIDER),
    (50, Recommendation.CONSIDER),
    (49, Recommendation.POOR_MATCH),
    (0, Recommendation.POOR_MATCH),
])
def test_recommendation_tiers(overall, expected):
    """Test tier boundaries."""
    assert recommendation_for(overall) == expected


@pytest.mark.asyncio
async def test_missing_profile(score_repo, settings, make_job):
    """Test scoring without a profile raises ProfileNotFoundError."""
    scorer = JobScorer("ghost", InMemoryProfileRepository(), score_repo, settings)

    with pytest.raises(ProfileNotFoundError) as exc_info:
        await scorer.score_job(make_job())

    assert exc_info.value.user_id == "ghost"
    assert await score_repo.get("job-1", "ghost") is None


@pytest.mark.asyncio
async def test_profile_repository_failure(score_repo, settings, make_job):
    """Test repository failures surface as ProfileNotFoundError."""
    profile_repo = AsyncMock()
    profile_repo.get.side_effect = ConnectionError("backend down")
    scorer = JobScorer("user-1", profile_repo, score_repo, settings)

    with pytest.raises(ProfileNotFoundError) as exc_info:
        await scorer.score_job(make_job())

    assert isinstance(exc_info.value.original_error, RepositoryError)


@pytest.mark.asyncio
async def test_save_failure_does_not_fail_scoring(profile_repo, settings, make_job):
    """Test a failing score upsert is logged and the score still returned."""
    score_repo = AsyncMock()
    score_repo.upsert.side_effect = RuntimeError("write failed")
    scorer = JobScorer("user-1", profile_repo, score_repo, settings)

    with capture_logs() as logs:
        score = await scorer.score_job(make_job())

    assert score.overall_score == 84
    score_repo.upsert.assert_awaited_once()
    assert any(log["event"] == "Failed to save job score" for log in logs)


@pytest.mark.asyncio
async def test_batch_score_sorts_and_isolates_failures(scorer, make_job):
    """Test batch scoring sorts by score and skips jobs that fail."""
    good = make_job(id="good")
    weak = make_job(id="weak", location="Tokyo, JP", skills=[_skill("rust", required=True)])
    bad = make_job(id="bad")

    original = scorer.calculate_location_match

    def location_match(job, preferences):
        if job.id == "bad":
            raise RuntimeError("broken job")
        return original(job, preferences)

    with patch.object(scorer, "calculate_location_match", side_effect=location_match):
        scores = await scorer.batch_score_jobs([weak, bad, good])

    assert [score.job_id for score in scores] == ["good", "weak"]
    assert scores[0].overall_score > scores[1].overall_score


@pytest.mark.asyncio
async def test_batch_score_missing_profile(score_repo, settings, make_job):
    """Test batch scoring fails fast without a profile."""
    scorer = JobScorer("ghost", InMemoryProfileRepository(), score_repo, settings)

    with pytest.raises(ProfileNotFoundError):
        await scorer.batch_score_jobs([make_job()])


@pytest.mark.asyncio
async def test_criteria_overrides(scorer, developer_profile, make_job):
    """Test partial and full weight overrides."""
    job = make_job()

    merged = scorer._resolve_criteria({"skill_weight": 0.5})
    assert merged.skill_weight == 0.5
    assert merged.experience_weight == 0.20

    skills_only = MatchingCriteria(
        skill_weight=1.0,
        experience_weight=0,
        location_weight=0,
        salary_weight=0,
        company_weight=0,
        requirements_weight=0,
    )
    score = await scorer.score_job(job, developer_profile, skills_only)
    assert score.overall_score == score.breakdown.skills_match

    with pytest.raises(ValidationError) as exc_info:
        await scorer.score_job(job, developer_profile, {"skill_weight": 2.0})
    assert exc_info.value.context["field"] == "criteria"


@pytest.mark.asyncio
async def test_batch_rejects_invalid_criteria(scorer, score_repo, make_job):
    """Test invalid overrides fail the whole batch instead of each job."""
    with pytest.raises(ValidationError) as exc_info:
        await scorer.batch_score_jobs([make_job(id="a"), make_job(id="b")], {"skill_weight": 2.0})

    assert exc_info.value.context["field"] == "criteria"
    assert await score_repo.get("a", "user-1") is None


@pytest.mark.parametrize("value,expected", [
    (84.5, 85),
    (84.49999999999999, 85),
    (84.4, 84),
    (2.5, 3),
    (0.5, 1),
    (0.0, 0),
    (100.0, 100),
])
def test_round_half_up(value, expected):
    """Test halves round up rather than to the nearest even number."""
    assert round_half_up(value) == expected


@pytest.mark.asyncio
async def test_half_point_total_reaches_next_tier(scorer, make_job):
    """Test a weighted total of exactly 84.5 is scored 85."""
    job = make_job(
        location="Oakland, CA",
        metadata=JobMetadata(scraped_at=datetime(2024, 3, 10, tzinfo=timezone.utc), company_size="startup"),
    )
    profile = UserProfile(
        id="user-1",
        skills=[UserSkill(name="JavaScript", proficiency=Proficiency.EXPERT)],
        experience_years=3.5,
        location_preferences=LocationPreferences(locations=["San Diego, CA"], willing_to_relocate=True),
        employment_preferences=EmploymentPreferences(company_sizes=["startup"]),
    )

    score = await scorer.score_job(job, profile)

    assert score.breakdown.skills_match == 100
    assert score.breakdown.experience_match == 100
    assert score.breakdown.location_match == 70
    assert score.breakdown.salary_match == 50
    assert score.breakdown.company_match == 90
    assert score.breakdown.requirements_match == 50
    assert score.overall_score == 85
    assert score.recommendation == Recommendation.HIGHLY_RECOMMENDED


@pytest.mark.asyncio
async def test_rescore_returns_stored_score(scorer, score_repo, make_job):
    """Test a re-scored job keeps its creation time in the returned score."""
    first = await scorer.score_job(make_job())
    second = await scorer.score_job(make_job(location="Austin, TX"))

    assert second.created_at == first.created_at
    assert second.overall_score < first.overall_score
    assert await score_repo.get("job-1", "user-1") == second


@pytest.mark.asyncio
async def test_lifecycle_checks_profile(score_repo, settings, developer_profile):
    """Test init and health checks resolve the user's profile."""
    profile_repo = AsyncMock()
    profile_repo.get.side_effect = [developer_profile, developer_profile, None]
    scorer = JobScorer("user-1", profile_repo, score_repo, settings)

    async with scorer:
        assert scorer.initialized
        assert await scorer.health_check()
        assert not await scorer.health_check()

    assert not scorer.initialized


@pytest.mark.asyncio
async def test_init_requires_profile(score_repo, settings):
    """Test a scorer cannot be initialized for an unknown user."""
    scorer = JobScorer("ghost", InMemoryProfileRepository(), score_repo, settings)

    with pytest.raises(ServiceError) as exc_info:
        await scorer.init()

    assert isinstance(exc_info.value.original_error, ProfileNotFoundError)
    assert not scorer.initialized


def test_skills_match_recency(scorer):
    """Test recent skills are boosted and stale skills discounted."""
    job_skills = [_skill("python")]

    def score_for(last_used):
        user_skill = UserSkill(name="Python", proficiency=Proficiency.INTERMEDIATE, last_used=last_used)
        return scorer.calculate_skills_match(job_skills, [user_skill], today=TODAY).score

    assert score_for(date(2024, 1, 1)) == pytest.approx(0.77)
    assert score_for(date(2023, 1, 1)) == pytest.approx(0.7)
    assert score_for(None) == pytest.approx(0.7)
    assert score_for(date(2021, 1, 1)) == pytest.approx(0.63)


def test_skills_match_aliases_and_empty(scorer):
    """Test user skill aliases match canonical job skills."""
    user_skills = [UserSkill(name="k8s", proficiency=Proficiency.EXPERT)]

    result = scorer.calculate_skills_match([_skill("kubernetes", required=True)], user_skills, today=TODAY)

    assert result.score == pytest.approx(1.0)
    assert result.details["required_matched"] == 1
    assert scorer.calculate_skills_match([], user_skills).score == 0.5


def test_skills_match_is_monotonic(scorer):
    """Test adding a matching skill never lowers the skills score."""
    job_skills = [_skill("javascript", required=True), _skill("python")]
    base = [UserSkill(name="JavaScript", proficiency=Proficiency.ADVANCED)]
    more = base + [UserSkill(name="Python", proficiency=Proficiency.BEGINNER)]

    before = scorer.calculate_skills_match(job_skills, base, today=TODAY).score
    after = scorer.calculate_skills_match(job_skills, more, today=TODAY).score

    assert after >= before


@pytest.mark.parametrize("level,years,expected", [
    (ExperienceLevel.SENIOR, 7, 1.0),
    (ExperienceLevel.SENIOR, 15, 0.8),
    (ExperienceLevel.ENTRY, 0, 0.7),
    (ExperienceLevel.EXECUTIVE, 5, 0.4),
])
def test_experience_match(scorer, level, years, expected):
    """Test in-band, over and under qualified experience."""
    assert scorer.calculate_experience_match(level, years).score == pytest.approx(expected)


@pytest.mark.parametrize("job_location,remote,preferences,expected", [
    ("Anywhere", True, LocationPreferences(remote_only=True), 1.0),
    ("Boston, MA", False, LocationPreferences(remote_only=True), 0.0),
    ("San Francisco, CA", False, LocationPreferences(locations=["San Francisco, CA"]), 1.0),
    ("Oakland, CA", False, LocationPreferences(locations=["San Francisco, CA"]), 0.4),
    ("Oakland, CA", False, LocationPreferences(locations=["San Francisco, CA"], willing_to_relocate=True), 0.7),
    ("Boston, MA", False, LocationPreferences(locations=["San Francisco, CA"]), 0.1),
    ("Boston, MA", False, LocationPreferences(locations=["San Francisco, CA"], willing_to_relocate=True), 0.3),
])
def test_location_match(scorer, make_job, job_location, remote, preferences, expected):
    """Test remote, exact, partial and no location matches."""
    job = make_job(location=job_location, remote=remote)

    assert scorer.calculate_location_match(job, preferences).score == pytest.approx(expected)


def test_salary_match_edge_cases(scorer, make_job):
    """Test missing salaries, underpaid jobs and hourly rates."""
    expecting = UserProfile(id="user-1", salary_expectations=SalaryExpectations(min=100000, max=120000))

    assert scorer.calculate_salary_match(make_job(), expecting).score == 0.5
    assert scorer.calculate_salary_match(
        make_job(salary=Salary(min=90000, max=110000)), UserProfile(id="user-1")
    ).score == 0.5

    underpaid = scorer.calculate_salary_match(make_job(salary=Salary(min=50000, max=60000)), expecting)
    assert underpaid.score == pytest.approx(0.3)
    assert underpaid.details["gap_type"] == "underpaid"

    hourly = make_job(salary=Salary(min=50, max=60, period=SalaryPeriod.HOURLY))
    assert scorer.calculate_salary_match(hourly, expecting).score > 0.9


@pytest.mark.asyncio
async def test_underpaid_reasoning(scorer, make_job):
    """Test an underpaid job explains the salary gap."""
    profile = UserProfile(id="user-1", salary_expectations=SalaryExpectations(min=100000, max=120000))

    score = await scorer.score_job(make_job(salary=Salary(min=50000, max=60000)), profile)

    assert "Salary may be 40% below expectations" in score.reasoning.concerns
    assert "Consider negotiating salary or highlighting additional benefits" in score.reasoning.suggestions


def test_company_match(scorer, make_job):
    """Test industry, company size and employment type preferences."""
    job = make_job(metadata=JobMetadata(industry=["technology"], company_size="startup"))
    matching = UserProfile(
        id="user-1",
        employment_preferences=EmploymentPreferences(industries=["technology"], company_sizes=["startup"]),
    )
    mismatching = UserProfile(
        id="user-1",
        employment_preferences=EmploymentPreferences(
            types=[EmploymentType.CONTRACT], industries=["finance"], company_sizes=["enterprise"]
        ),
    )

    assert scorer.calculate_company_match(job, matching).score == 1.0
    assert scorer.calculate_company_match(job, mismatching).score == pytest.approx(0.0)
    assert scorer.calculate_company_match(job, UserProfile(id="user-1")).score == pytest.approx(0.7)


def test_company_size_penalty_is_configurable(profile_repo, make_job):
    """Test the company size mismatch penalty comes from settings."""
    settings = Settings(_env_file=None)
    settings.SCORING.company_size_mismatch_penalty = 0.1
    scorer = JobScorer("user-1", profile_repo, settings=settings)
    job = make_job(metadata=JobMetadata(company_size="startup"))
    profile = UserProfile(id="user-1", employment_preferences=EmploymentPreferences(company_sizes=["enterprise"]))

    assert scorer.calculate_company_match(job, profile).score == pytest.approx(0.6)


@pytest.mark.asyncio
async def test_deal_breaker(scorer, make_job):
    """Test deal-breakers in requirements sink the requirements score."""
    job = make_job(requirements=["Participate in on-call rotation", "Strong JavaScript"])
    profile = UserProfile(id="user-1", deal_breakers=["On-call"])

    result = scorer.calculate_requirements_match(job.requirements, profile)
    assert result.score == pytest.approx(0.1)

    score = await scorer.score_job(job, profile)
    assert "Requirements include a deal-breaker: On-call" in score.reasoning.concerns
    assert scorer.calculate_requirements_match(job.requirements, UserProfile(id="user-1")).score == 0.6
    assert scorer.calculate_requirements_match([], profile).score == 0.5


def test_compatibility(scorer, developer_profile, make_job):
    """Test skill coverage and signed gaps."""
    job = make_job(
        salary=Salary(min=130000, max=170000),
        skills=[_skill("javascript", required=True), _skill("docker", category=SkillCategory.TOOL)],
    )

    compatibility = scorer.calculate_compatibility(job, developer_profile)

    assert compatibility.must_have_skills[0].skill == "javascript"
    assert compatibility.must_have_skills[0].have is True
    assert compatibility.must_have_skills[0].gap == ""
    assert compatibility.nice_to_have_skills[0].have is False
    assert compatibility.nice_to_have_skills[0].level == "none"
    assert compatibility.experience_gap == pytest.approx(2.5)
    assert compatibility.salary_gap == pytest.approx(5000 / 145000 * 100)


def test_confidence(scorer, developer_profile, make_job):
    """Test confidence reflects available data."""
    assert scorer.calculate_confidence(make_job(), developer_profile) == 1.0
    assert scorer.calculate_confidence(make_job(skills=[]), UserProfile(id="user-1")) == pytest.approx(0.6)
