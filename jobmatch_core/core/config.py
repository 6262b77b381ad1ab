"""Application configuration module."""
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionSettings(BaseModel):
    """Tuning constants for job posting extraction."""

    # Confidence increments per extracted field
    title_bonus: float = 0.3
    company_bonus: float = 0.2
    location_bonus: float = 0.1
    salary_bonus: float = 0.1
    skills_bonus: float = 0.2
    many_skills_bonus: float = 0.1
    many_skills_threshold: int = 5
    requirements_bonus: float = 0.1

    # Confidence penalties per missing field
    missing_penalties: Dict[str, float] = {
        "title": 0.3,
        "company": 0.2,
        "location": 0.1,
        "skills": 0.2,
    }

    low_confidence_threshold: float = 0.5
    max_missing_fields: int = 2

    max_requirements: int = 15
    max_benefits: int = 10
    raw_text_limit: int = 1000

    # Skill confidence multiplier when the skill is mentioned only once
    single_mention_factor: float = 0.8


class ScoringSettings(BaseModel):
    """Tuning constants for job scoring."""

    skill_weight: float = 0.35
    experience_weight: float = 0.20
    location_weight: float = 0.15
    salary_weight: float = 0.15
    company_weight: float = 0.10
    requirements_weight: float = 0.05

    required_skill_weight: float = 2.0
    optional_skill_weight: float = 1.0
    proficiency_scores: Dict[str, float] = {
        "beginner": 0.4,
        "intermediate": 0.7,
        "advanced": 0.9,
        "expert": 1.0,
    }
    recent_months: int = 12
    recent_boost: float = 1.1
    stale_months: int = 24
    stale_discount: float = 0.9
    # Blend of raw skill coverage and required-only coverage
    required_blend: float = 0.3

    # Recommendation tiers, applied to overall_score
    highly_recommended_threshold: int = 85
    good_match_threshold: int = 70
    consider_threshold: int = 50

    industry_match_bonus: float = 0.3
    industry_mismatch_penalty: float = 0.1
    company_size_match_bonus: float = 0.2
    company_size_mismatch_penalty: float = 0.2
    employment_type_match_bonus: float = 0.2
    employment_type_mismatch_penalty: float = 0.2

    requirements_base: float = 0.6
    deal_breaker_score: float = 0.1

    # Hours per year for annualizing hourly salaries
    hours_per_year: int = 2080


class MatchingSettings(BaseModel):
    """Tuning constants for the behavioral ranking model."""

    default_application_rate: float = 0.15
    default_response_rate: float = 0.25
    default_success_rate: float = 0.1
    default_avg_viewing_time: float = 45.0
    default_peak_hours: List[int] = [9, 10, 11, 14, 15, 16]

    default_model_weights: Dict[str, float] = {
        "salary_importance": 0.25,
        "location_importance": 0.15,
        "company_importance": 0.20,
        "skills_importance": 0.30,
        "growth_importance": 0.10,
    }
    behavioral_weight: float = 0.1

    preferred_title_factor: float = 1.5
    preferred_company_factor: float = 1.3
    salary_window_factor: float = 1.2
    high_salary_threshold: int = 80000
    high_salary_factor: float = 1.1
    remote_factor: float = 1.15
    large_company_factor: float = 1.1
    reasonable_requirements_count: int = 5
    reasonable_requirements_factor: float = 1.05

    applied_rate_factor: float = 1.05
    hired_rate_factor: float = 1.1
    rejected_rate_factor: float = 0.95
    min_application_rate: float = 0.05
    low_rating_threshold: int = 3

    default_recommendation_limit: int = 20


class Settings(BaseSettings):
    """Application settings.

    Settings are read from environment variables prefixed with
    ``JOBMATCH_`` (nested tuning values use ``__``, e.g.
    ``JOBMATCH_SCORING__SKILL_WEIGHT=0.4``) and from a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="JOBMATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_FILE: Optional[str] = None
    LOG_DIR: Path = Path("logs")
    LOG_MAX_BYTES: int = 10485760  # 10MB
    LOG_BACKUP_COUNT: int = 5
    LOG_FILTER_FIELDS: List[str] = [
        "password",
        "api_key",
        "token",
        "secret",
        "authorization",
    ]

    # Pipeline tuning
    EXTRACTION: ExtractionSettings = Field(default_factory=ExtractionSettings)
    SCORING: ScoringSettings = Field(default_factory=ScoringSettings)
    MATCHING: MatchingSettings = Field(default_factory=MatchingSettings)

    def get_log_file(self) -> Optional[str]:
        """Get log file path if logging to file is enabled.

        Returns:
            Log file path or None
        """
        if not self.LOG_FILE:
            return None

        self.LOG_DIR.mkdir(parents=True, exist_ok=True)

        return str(self.LOG_DIR / self.LOG_FILE)
