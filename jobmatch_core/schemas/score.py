"""Pydantic models for job score schemas."""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from jobmatch_core.schemas.base import BaseSchema, FrozenSchema, utc_now


class Recommendation(str, Enum):
    """Recommendation tier derived from the overall score."""
    HIGHLY_RECOMMENDED = "highly_recommended"
    GOOD_MATCH = "good_match"
    CONSIDER = "consider"
    POOR_MATCH = "poor_match"


class MatchingCriteria(BaseSchema):
    """Component weights for the overall score."""

    skill_weight: float = Field(0.35, ge=0, le=1)
    experience_weight: float = Field(0.20, ge=0, le=1)
    location_weight: float = Field(0.15, ge=0, le=1)
    salary_weight: float = Field(0.15, ge=0, le=1)
    company_weight: float = Field(0.10, ge=0, le=1)
    requirements_weight: float = Field(0.05, ge=0, le=1)

    def merged(self, overrides: Optional[Dict[str, float]] = None) -> "MatchingCriteria":
        """Return a copy with the given weights replaced."""
        if not overrides:
            return self
        return self.model_validate({**self.model_dump(), **overrides})


class ScoreBreakdown(FrozenSchema):
    """Component scores, each 0-100."""
    skills_match: int = Field(..., ge=0, le=100)
    experience_match: int = Field(..., ge=0, le=100)
    location_match: int = Field(..., ge=0, le=100)
    salary_match: int = Field(..., ge=0, le=100)
    company_match: int = Field(..., ge=0, le=100)
    requirements_match: int = Field(..., ge=0, le=100)


class ScoreReasoning(FrozenSchema):
    """Human readable explanation of a score."""
    strengths: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class MustHaveSkill(FrozenSchema):
    skill: str
    have: bool
    gap: str = ""


class NiceToHaveSkill(FrozenSchema):
    skill: str
    have: bool
    level: str = "none"


class Compatibility(FrozenSchema):
    """Skill coverage and signed experience/salary gaps."""
    must_have_skills: List[MustHaveSkill] = Field(default_factory=list)
    nice_to_have_skills: List[NiceToHaveSkill] = Field(default_factory=list)
    experience_gap: float = 0.0  # Years above (+) or below (-) the level ideal
    salary_gap: float = 0.0  # Percent of job midpoint vs expected midpoint


class JobScore(FrozenSchema):
    """Result of scoring one job against one user profile."""

    job_id: str
    user_id: str
    overall_score: int = Field(..., ge=0, le=100)
    breakdown: ScoreBreakdown
    reasoning: ScoreReasoning
    compatibility: Compatibility
    recommendation: Recommendation
    confidence: float = Field(..., ge=0, le=1)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
