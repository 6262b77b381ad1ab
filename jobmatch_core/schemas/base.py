"""Base Pydantic models for domain schemas."""
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configurations."""

    model_config = ConfigDict(
        from_attributes=True,  # Allow attribute objects -> Pydantic conversion
        validate_assignment=True,
    )


class FrozenSchema(BaseSchema):
    """Schema whose instances cannot be mutated after creation."""

    model_config = ConfigDict(frozen=True)


def utc_now() -> datetime:
    """Current UTC time, used as a field default."""
    return datetime.now(timezone.utc)
