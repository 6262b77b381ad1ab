"""Repositories for job scores."""
import abc
from typing import List, Optional, Tuple

from jobmatch_core.repositories.base import InMemoryRepository
from jobmatch_core.schemas.score import JobScore


class ScoreRepository(abc.ABC):
    """Write access to job scores, keyed by (job_id, user_id)."""

    @abc.abstractmethod
    async def upsert(self, score: JobScore) -> JobScore:
        """Insert or replace the score for its (job_id, user_id) pair."""

    @abc.abstractmethod
    async def get(self, job_id: str, user_id: str) -> Optional[JobScore]:
        """Get the stored score for a job/user pair."""


class InMemoryScoreRepository(ScoreRepository):
    """Score repository backed by a dict."""

    def __init__(self) -> None:
        self._store: InMemoryRepository[Tuple[str, str], JobScore] = InMemoryRepository("job_scores")

    async def upsert(self, score: JobScore) -> JobScore:
        key = (score.job_id, score.user_id)
        existing = await self._store.get(key)
        if existing is not None:
            # A re-score keeps the original creation time
            score = score.model_copy(update={"created_at": existing.created_at})
        return await self._store.put(key, score)

    async def get(self, job_id: str, user_id: str) -> Optional[JobScore]:
        return await self._store.get((job_id, user_id))

    async def list(self, *, skip: int = 0, limit: int = 100) -> List[JobScore]:
        return await self._store.list(skip=skip, limit=limit)
