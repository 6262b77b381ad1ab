"""Pydantic schemas for pipeline data."""
from jobmatch_core.schemas.base import BaseSchema, FrozenSchema
from jobmatch_core.schemas.job import (
    EmploymentType,
    ExperienceLevel,
    ExtractedSkill,
    JobExtractionResult,
    JobMetadata,
    JobPosting,
    JobSource,
    Salary,
    SalaryPeriod,
    SkillCategory,
)
from jobmatch_core.schemas.matching import (
    BehaviorPreferences,
    BehaviorStats,
    InteractionAction,
    JobInteraction,
    JobRecommendation,
    MLJobFeatures,
    ModelWeights,
    RankedJob,
    SalaryRange,
    UserBehaviorPattern,
)
from jobmatch_core.schemas.profile import (
    EmploymentPreferences,
    LocationPreferences,
    Priorities,
    Proficiency,
    SalaryExpectations,
    UserProfile,
    UserSkill,
)
from jobmatch_core.schemas.score import (
    Compatibility,
    JobScore,
    MatchingCriteria,
    MustHaveSkill,
    NiceToHaveSkill,
    Recommendation,
    ScoreBreakdown,
    ScoreReasoning,
)

__all__ = [
    # Base schemas
    "BaseSchema",
    "FrozenSchema",

    # Job schemas
    "EmploymentType",
    "ExperienceLevel",
    "ExtractedSkill",
    "JobExtractionResult",
    "JobMetadata",
    "JobPosting",
    "JobSource",
    "Salary",
    "SalaryPeriod",
    "SkillCategory",

    # Profile schemas
    "EmploymentPreferences",
    "LocationPreferences",
    "Priorities",
    "Proficiency",
    "SalaryExpectations",
    "UserProfile",
    "UserSkill",

    # Score schemas
    "Compatibility",
    "JobScore",
    "MatchingCriteria",
    "MustHaveSkill",
    "NiceToHaveSkill",
    "Recommendation",
    "ScoreBreakdown",
    "ScoreReasoning",

    # Matching schemas
    "BehaviorPreferences",
    "BehaviorStats",
    "InteractionAction",
    "JobInteraction",
    "JobRecommendation",
    "MLJobFeatures",
    "ModelWeights",
    "RankedJob",
    "SalaryRange",
    "UserBehaviorPattern",
]
