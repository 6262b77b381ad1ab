"""Schemas for user profiles and preferences."""
from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import Field

from jobmatch_core.schemas.base import BaseSchema
from jobmatch_core.schemas.job import EmploymentType


class Proficiency(str, Enum):
    """Self-reported skill proficiency."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class UserSkill(BaseSchema):
    """A skill the user has."""
    name: str
    proficiency: Proficiency = Proficiency.INTERMEDIATE
    years_experience: float = Field(0, ge=0)
    verified: bool = False
    last_used: Optional[date] = None


class SalaryExpectations(BaseSchema):
    """Expected yearly salary band."""
    min: float = Field(0, ge=0)
    max: float = Field(0, ge=0)
    currency: str = "USD"


class LocationPreferences(BaseSchema):
    """Where the user is willing to work."""
    remote_only: bool = False
    locations: List[str] = Field(default_factory=list)
    willing_to_relocate: bool = False


class EmploymentPreferences(BaseSchema):
    """Preferred employment conditions."""
    types: List[EmploymentType] = Field(
        default_factory=lambda: [EmploymentType.FULL_TIME],
        description="Preferred employment types"
    )
    company_sizes: List[str] = Field(
        default_factory=list,
        description="Preferred company sizes (small/medium/large/enterprise/startup)"
    )
    industries: List[str] = Field(
        default_factory=list,
        description="Preferred industries"
    )


class Priorities(BaseSchema):
    """Relative importance of job aspects, informally summing to 1.0."""
    salary: float = 0.3
    location: float = 0.2
    company_culture: float = 0.2
    growth_opportunity: float = 0.15
    work_life_balance: float = 0.1
    benefits: float = 0.05


class UserProfile(BaseSchema):
    """User profile used for scoring and ranking."""
    id: str
    skills: List[UserSkill] = Field(default_factory=list)
    experience_years: float = Field(0, ge=0)
    current_role: str = ""
    desired_roles: List[str] = Field(default_factory=list)
    salary_expectations: SalaryExpectations = Field(default_factory=SalaryExpectations)
    location_preferences: LocationPreferences = Field(default_factory=LocationPreferences)
    employment_preferences: EmploymentPreferences = Field(default_factory=EmploymentPreferences)
    deal_breakers: List[str] = Field(default_factory=list)
    priorities: Priorities = Field(default_factory=Priorities)
