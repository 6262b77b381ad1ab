"""Base repository classes for keyed storage."""
import abc
import logging
from typing import Dict, Generic, Hashable, List, Optional, TypeVar

from jobmatch_core.core.exceptions import RepositoryError

logger = logging.getLogger(__name__)

KeyType = TypeVar("KeyType", bound=Hashable)
ModelType = TypeVar("ModelType")


class BaseRepository(abc.ABC, Generic[KeyType, ModelType]):
    """Keyed get/put storage used by the pipeline services.

    Implementations may be backed by memory, a database or a distributed
    store; services only rely on this interface.
    """

    @abc.abstractmethod
    async def get(self, key: KeyType) -> Optional[ModelType]:
        """Get model by key.

        Args:
            key: Lookup key

        Returns:
            Model instance if found, None otherwise
        """

    @abc.abstractmethod
    async def put(self, key: KeyType, obj: ModelType) -> ModelType:
        """Create or replace the model stored under key.

        Args:
            key: Storage key
            obj: Model instance to store

        Returns:
            Stored model instance
        """

    @abc.abstractmethod
    async def delete(self, key: KeyType) -> None:
        """Delete the model stored under key, if any."""

    @abc.abstractmethod
    async def list(self, *, skip: int = 0, limit: int = 100) -> List[ModelType]:
        """Get list of models with pagination."""


class InMemoryRepository(BaseRepository[KeyType, ModelType]):
    """Dict-backed repository."""

    def __init__(
        self,
        name: Optional[str] = None,
        items: Optional[Dict[KeyType, ModelType]] = None,
    ) -> None:
        """Initialize repository.

        Args:
            name: Name used in log and error messages
            items: Optional initial contents
        """
        self.name = name or self.__class__.__name__
        self._items: Dict[KeyType, ModelType] = dict(items or {})

    async def get(self, key: KeyType) -> Optional[ModelType]:
        return self._items.get(key)

    async def put(self, key: KeyType, obj: ModelType) -> ModelType:
        if obj is None:
            raise RepositoryError(
                f"Cannot store None in {self.name}",
                context={"repository": self.name, "key": str(key)},
            )
        self._items[key] = obj
        logger.debug(
            "Stored item",
            extra={"repository": self.name, "key": str(key)},
        )
        return obj

    async def delete(self, key: KeyType) -> None:
        self._items.pop(key, None)

    async def list(self, *, skip: int = 0, limit: int = 100) -> List[ModelType]:
        return list(self._items.values())[skip:skip + limit]

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items
