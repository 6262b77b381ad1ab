"""Repository interfaces and in-memory backends."""
from jobmatch_core.repositories.base import BaseRepository, InMemoryRepository
from jobmatch_core.repositories.job import InMemoryScoreRepository, ScoreRepository
from jobmatch_core.repositories.user import (
    BehaviorRepository,
    InMemoryBehaviorRepository,
    InMemoryProfileRepository,
    ProfileRepository,
)

__all__ = [
    "BaseRepository",
    "InMemoryRepository",
    "ScoreRepository",
    "InMemoryScoreRepository",
    "ProfileRepository",
    "BehaviorRepository",
    "InMemoryProfileRepository",
    "InMemoryBehaviorRepository",
]
