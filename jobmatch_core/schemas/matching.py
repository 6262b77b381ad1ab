"""Schemas for the behavioral ranking model."""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from jobmatch_core.schemas.base import BaseSchema, utc_now
from jobmatch_core.schemas.job import JobPosting


class MLJobFeatures(BaseSchema):
    """Numeric feature vector for one job/profile pair."""

    # Text features
    title_similarity: float = Field(0.0, ge=0, le=1)
    description_similarity: float = Field(0.0, ge=0, le=1)
    requirements_overlap: float = Field(0.0, ge=0, le=1)
    benefits_appeal: float = Field(0.0, ge=0, le=1)

    # Numeric features
    salary_fit: float = Field(0.0, ge=0, le=1)
    experience_match: float = Field(0.0, ge=0, le=1)
    skills_coverage: float = Field(0.0, ge=0, le=1)
    location_preference: float = Field(0.0, ge=0, le=1)

    # Categorical features
    employment_type_match: float = Field(0.0, ge=0, le=1)
    company_size_preference: float = Field(0.0, ge=0, le=1)
    industry_alignment: float = Field(0.0, ge=0, le=1)
    remote_compatibility: float = Field(0.0, ge=0, le=1)

    # Behavioral features
    application_likelihood: float = Field(0.5, ge=0, le=1)
    response_probability: float = Field(0.5, ge=0, le=1)
    success_prediction: float = Field(0.5, ge=0, le=1)


class InteractionAction(str, Enum):
    """What a user did with a job."""
    VIEWED = "viewed"
    SAVED = "saved"
    APPLIED = "applied"
    REJECTED = "rejected"
    INTERVIEWED = "interviewed"
    HIRED = "hired"


class JobInteraction(BaseSchema):
    """One user interaction event."""
    user_id: str
    job_id: str
    action: InteractionAction
    timestamp: datetime = Field(default_factory=utc_now)
    duration_viewed: Optional[float] = Field(None, ge=0, description="Seconds")
    application_success: Optional[bool] = None
    feedback_rating: Optional[int] = Field(None, ge=1, le=5)
    feedback_text: Optional[str] = None


class SalaryRange(BaseSchema):
    min: float = 0
    max: float = 0


class BehaviorPreferences(BaseSchema):
    """Preferences observed from the user's history."""
    preferred_job_titles: List[str] = Field(default_factory=list)
    preferred_companies: List[str] = Field(default_factory=list)
    preferred_locations: List[str] = Field(default_factory=list)
    preferred_salary_range: SalaryRange = Field(default_factory=SalaryRange)
    preferred_skills: List[str] = Field(default_factory=list)


class BehaviorStats(BaseSchema):
    """Rolling behavior rates."""
    application_rate: float = Field(0.15, ge=0, le=1)
    response_rate: float = Field(0.25, ge=0, le=1)
    success_rate: float = Field(0.1, ge=0, le=1)
    avg_viewing_time: float = Field(45.0, ge=0)
    peak_activity_hours: List[int] = Field(default_factory=list)
    search_patterns: List[str] = Field(default_factory=list)


class ModelWeights(BaseSchema):
    """Per-user weights of the composite ranking score."""
    salary_importance: float = 0.25
    location_importance: float = 0.15
    company_importance: float = 0.20
    skills_importance: float = 0.30
    growth_importance: float = 0.10


class UserBehaviorPattern(BaseSchema):
    """Mutable per-user behavioral model."""
    user_id: str
    preferences: BehaviorPreferences = Field(default_factory=BehaviorPreferences)
    behavior: BehaviorStats = Field(default_factory=BehaviorStats)
    model_weights: ModelWeights = Field(default_factory=ModelWeights)
    last_updated: datetime = Field(default_factory=utc_now)


class RankedJob(BaseSchema):
    """A job with its composite score and features."""
    job: JobPosting
    ml_score: float = Field(..., ge=0, le=1)
    features: MLJobFeatures


class JobRecommendation(RankedJob):
    """A ranked job with a short explanation."""
    reasoning: str
