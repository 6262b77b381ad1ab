"""Lifecycle shared by the pipeline services."""
from datetime import datetime, timezone
from typing import Optional

from jobmatch_core.core.config import Settings
from jobmatch_core.core.exceptions import ServiceError
from jobmatch_core.core.logging import get_logger

logger = get_logger(__name__)


class BaseService:
    """Base class for services with an init/close lifecycle.

    Subclasses override the ``_init_resources``, ``_cleanup_resources`` and
    ``_check_health`` hooks. Services are usable as async context managers.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.initialized = False
        self.last_health_check: Optional[datetime] = None
        self.name = self.__class__.__name__

    async def __aenter__(self):
        await self.init()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def init(self) -> None:
        """Acquire the service's resources.

        Raises:
            ServiceError: If a resource cannot be acquired
        """
        try:
            await self._init_resources()
        except Exception as e:
            logger.error("Service initialization failed", service=self.name, error=str(e))
            raise ServiceError(
                f"Failed to initialize {self.name}",
                context={"service": self.name},
                original_error=e,
            ) from e

        self.initialized = True
        self.last_health_check = datetime.now(timezone.utc)
        logger.info("Service initialized", service=self.name)

    async def close(self) -> None:
        """Release the service's resources.

        Raises:
            ServiceError: If cleanup fails
        """
        try:
            await self._cleanup_resources()
        except Exception as e:
            logger.error("Service cleanup failed", service=self.name, error=str(e))
            raise ServiceError(
                f"Failed to close {self.name}",
                context={"service": self.name},
                original_error=e,
            ) from e
        finally:
            self.initialized = False

        logger.info("Service closed", service=self.name)

    async def health_check(self) -> bool:
        """Return True when the service is initialized and its checks pass."""
        if not self.initialized:
            return False

        try:
            healthy = await self._check_health()
        except Exception as e:
            logger.warning("Health check failed", service=self.name, error=str(e))
            return False

        if healthy:
            self.last_health_check = datetime.now(timezone.utc)
        return healthy

    async def _init_resources(self) -> None:
        pass

    async def _cleanup_resources(self) -> None:
        pass

    async def _check_health(self) -> bool:
        return True
