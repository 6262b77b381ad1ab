"""Tests for the end-to-end job pipeline."""
import pytest
import pytest_asyncio

from jobmatch_core.core.exceptions import ProfileNotFoundError, ServiceError
from jobmatch_core.repositories.user import InMemoryProfileRepository
from jobmatch_core.schemas.score import Recommendation
from jobmatch_core.services.pipeline import JobPipeline

SPARSE_POSTING = "Looking for a developer. Contact us at jobs@example.com"


@pytest_asyncio.fixture
async def pipeline(profile_repo, score_repo, behavior_repo, settings):
    """Initialized pipeline for the developer profile."""
    async with JobPipeline("user-1", profile_repo, score_repo, behavior_repo, settings) as pipeline:
        yield pipeline


@pytest.mark.asyncio
async def test_process_posting(pipeline, score_repo, sample_posting):
    """Test a raw posting is parsed, scored and stored."""
    extraction, score = await pipeline.process_posting(sample_posting, source="indeed")

    assert extraction.job.title == "Senior Software Engineer"
    assert extraction.job.source.value == "indeed"
    assert score.job_id == extraction.job.id
    assert score.overall_score >= 70
    assert score.recommendation in (Recommendation.GOOD_MATCH, Recommendation.HIGHLY_RECOMMENDED)
    assert await score_repo.get(extraction.job.id, "user-1") == score


@pytest.mark.asyncio
async def test_recommend(pipeline, sample_posting):
    """Test recommendations rank the well-matched posting first."""
    recommendations = await pipeline.recommend([SPARSE_POSTING, sample_posting])

    assert len(recommendations) == 2
    assert recommendations[0].job.title == "Senior Software Engineer"
    assert recommendations[0].ml_score > recommendations[1].ml_score
    assert "Excellent skills match" in recommendations[0].reasoning

    assert len(await pipeline.recommend([SPARSE_POSTING, sample_posting], limit=1)) == 1


@pytest.mark.asyncio
async def test_missing_profile(score_repo, behavior_repo, settings, sample_posting):
    """Test the pipeline requires a profile for scoring."""
    pipeline = JobPipeline("ghost", InMemoryProfileRepository(), score_repo, behavior_repo, settings)

    with pytest.raises(ProfileNotFoundError):
        await pipeline.process_posting(sample_posting)

    with pytest.raises(ProfileNotFoundError):
        await pipeline.recommend([sample_posting])


@pytest.mark.asyncio
async def test_lifecycle(profile_repo, settings):
    """Test init, health check and close cascade to the services."""
    pipeline = JobPipeline("user-1", profile_repo, settings=settings)

    assert not await pipeline.health_check()

    await pipeline.init()
    assert pipeline.scorer.initialized
    assert pipeline.matcher.initialized
    assert await pipeline.health_check()

    await pipeline.close()
    assert not pipeline.initialized
    assert not pipeline.scorer.initialized
    assert not await pipeline.health_check()


@pytest.mark.asyncio
async def test_init_fails_without_profile(score_repo, behavior_repo, settings):
    """Test the pipeline refuses to start for a user without a profile."""
    pipeline = JobPipeline("ghost", InMemoryProfileRepository(), score_repo, behavior_repo, settings)

    with pytest.raises(ServiceError):
        async with pipeline:
            pass

    assert not pipeline.initialized
    assert not pipeline.scorer.initialized
