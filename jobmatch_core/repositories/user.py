"""Repositories for user profiles and behavior patterns."""
import abc
from typing import List, Optional

from jobmatch_core.repositories.base import InMemoryRepository
from jobmatch_core.schemas.matching import UserBehaviorPattern
from jobmatch_core.schemas.profile import UserProfile


class ProfileRepository(abc.ABC):
    """Read access to user profiles."""

    @abc.abstractmethod
    async def get(self, user_id: str) -> Optional[UserProfile]:
        """Get a profile by user id, None if not found."""


class BehaviorRepository(abc.ABC):
    """Storage for per-user behavior patterns."""

    @abc.abstractmethod
    async def get(self, user_id: str) -> Optional[UserBehaviorPattern]:
        """Get a behavior pattern by user id, None if not found."""

    @abc.abstractmethod
    async def put(self, pattern: UserBehaviorPattern) -> UserBehaviorPattern:
        """Store a behavior pattern under its user id."""


class InMemoryProfileRepository(ProfileRepository):
    """Profile repository backed by a dict."""

    def __init__(self, profiles: Optional[List[UserProfile]] = None) -> None:
        self._store: InMemoryRepository[str, UserProfile] = InMemoryRepository(
            "profiles",
            items={profile.id: profile for profile in profiles or []},
        )

    async def get(self, user_id: str) -> Optional[UserProfile]:
        return await self._store.get(user_id)

    async def add(self, profile: UserProfile) -> UserProfile:
        return await self._store.put(profile.id, profile)


class InMemoryBehaviorRepository(BehaviorRepository):
    """Behavior pattern repository backed by a dict."""

    def __init__(self) -> None:
        self._store: InMemoryRepository[str, UserBehaviorPattern] = InMemoryRepository("behavior_patterns")

    async def get(self, user_id: str) -> Optional[UserBehaviorPattern]:
        return await self._store.get(user_id)

    async def put(self, pattern: UserBehaviorPattern) -> UserBehaviorPattern:
        return await self._store.put(pattern.user_id, pattern)
