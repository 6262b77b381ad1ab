"""Extraction, scoring and ranking wired together for one user."""
from typing import List, Optional, Sequence, Tuple, Union

from jobmatch_core.core.config import Settings
from jobmatch_core.core.logging import get_logger, log_context
from jobmatch_core.repositories.job import ScoreRepository
from jobmatch_core.repositories.user import BehaviorRepository, ProfileRepository
from jobmatch_core.schemas.job import JobExtractionResult, JobSource
from jobmatch_core.schemas.matching import JobRecommendation
from jobmatch_core.schemas.score import JobScore
from jobmatch_core.services.base import BaseService
from jobmatch_core.services.extractor import JobParser
from jobmatch_core.services.matcher import JobMatcher
from jobmatch_core.services.scorer import JobScorer

logger = get_logger(__name__)


class JobPipeline(BaseService):
    """Runs raw postings through the parser, scorer and matcher.

    Example:
        async with JobPipeline("user-1", profile_repo) as pipeline:
            extraction, score = await pipeline.process_posting(text)
    """

    def __init__(
        self,
        user_id: str,
        profile_repo: ProfileRepository,
        score_repo: Optional[ScoreRepository] = None,
        behavior_repo: Optional[BehaviorRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(settings)
        self.user_id = user_id
        self.profile_repo = profile_repo
        self.parser = JobParser(self.settings)
        self.scorer = JobScorer(user_id, profile_repo, score_repo, self.settings)
        self.matcher = JobMatcher(behavior_repo, self.settings)

    async def _init_resources(self) -> None:
        await self.scorer.init()
        await self.matcher.init()

    async def _cleanup_resources(self) -> None:
        await self.scorer.close()
        await self.matcher.close()

    async def _check_health(self) -> bool:
        return await self.scorer.health_check() and await self.matcher.health_check()

    async def process_posting(
        self,
        raw_text: str,
        source: Union[JobSource, str] = JobSource.OTHER,
        url: Optional[str] = None,
    ) -> Tuple[JobExtractionResult, JobScore]:
        """Parse a posting and score it for the user.

        Raises:
            ProfileNotFoundError: If the user's profile cannot be resolved
        """
        with log_context(user_id=self.user_id):
            extraction = self.parser.parse_job_posting(raw_text, source, url)
            score = await self.scorer.score_job(extraction.job)
        return extraction, score

    async def recommend(
        self,
        raw_postings: Sequence[str],
        limit: Optional[int] = None,
        source: Union[JobSource, str] = JobSource.OTHER,
    ) -> List[JobRecommendation]:
        """Parse postings and return the user's personalized recommendations.

        Raises:
            ProfileNotFoundError: If the user's profile cannot be resolved
        """
        profile = await self.scorer.get_profile()

        with log_context(user_id=self.user_id):
            jobs = [self.parser.parse_job_posting(text, source).job for text in raw_postings]
            recommendations = await self.matcher.get_personalized_job_recommendations(jobs, profile, limit)

        logger.info("Recommendations generated", postings=len(raw_postings), returned=len(recommendations))
        return recommendations
