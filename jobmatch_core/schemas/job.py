"""Pydantic models for job posting schemas."""
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import Field, field_validator

from jobmatch_core.schemas.base import BaseSchema, utc_now


class JobSource(str, Enum):
    """Where a raw posting came from."""
    LINKEDIN = "linkedin"
    INDEED = "indeed"
    GLASSDOOR = "glassdoor"
    COMPANY_WEBSITE = "company-website"
    EMAIL = "email"
    OTHER = "other"


class EmploymentType(str, Enum):
    """Employment type enum."""
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"
    TEMPORARY = "temporary"


class ExperienceLevel(str, Enum):
    """Experience level enum."""
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    EXECUTIVE = "executive"


class SalaryPeriod(str, Enum):
    """Salary period enum."""
    HOURLY = "hourly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SkillCategory(str, Enum):
    """Skill taxonomy category."""
    PROGRAMMING = "programming"
    FRAMEWORK = "framework"
    DATABASE = "database"
    TOOL = "tool"
    SOFT_SKILL = "soft-skill"
    CERTIFICATION = "certification"
    LANGUAGE = "language"


class ExtractedSkill(BaseSchema):
    """A skill found in a posting, keyed by its canonical taxonomy name."""

    name: str = Field(..., description="Canonical lower-cased skill name")
    category: SkillCategory
    required: bool = False
    years_required: Optional[int] = Field(None, ge=0)
    confidence: float = Field(..., ge=0, le=1)


class Salary(BaseSchema):
    """Salary band as advertised."""

    min: Optional[float] = None
    max: Optional[float] = None
    currency: str = "USD"
    period: SalaryPeriod = SalaryPeriod.YEARLY
    equity: Optional[bool] = None

    @property
    def has_range(self) -> bool:
        return bool(self.min or self.max)

    def annualized_range(self, hours_per_year: int = 2080) -> Tuple[Optional[float], Optional[float]]:
        """Return (min, max) converted to yearly figures."""
        factor = 1
        if self.period == SalaryPeriod.HOURLY:
            factor = hours_per_year
        elif self.period == SalaryPeriod.MONTHLY:
            factor = 12
        return (
            self.min * factor if self.min is not None else None,
            self.max * factor if self.max is not None else None,
        )

    def annualized_midpoint(self, hours_per_year: int = 2080) -> float:
        """Yearly midpoint of the band, or whichever bound is known."""
        low, high = self.annualized_range(hours_per_year)
        if low and high:
            return (low + high) / 2
        return low or high or 0.0


class JobMetadata(BaseSchema):
    """Extraction metadata for a posting."""

    scraped_at: datetime = Field(default_factory=utc_now)
    raw_text: Optional[str] = None
    confidence_score: float = Field(0.0, ge=0, le=1)
    language: str = "unknown"
    category: str = "other"
    industry: List[str] = Field(default_factory=lambda: ["other"])
    company_size: Optional[str] = None
    funding: Optional[str] = None


class JobPosting(BaseSchema):
    """One parsed job posting."""

    id: str = Field(..., frozen=True, description="Deterministic posting id")
    title: str
    company: str
    location: str
    description: str = ""
    requirements: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    salary: Salary = Field(default_factory=Salary)
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    experience_level: ExperienceLevel = ExperienceLevel.MID
    remote: bool = False
    posted_date: datetime = Field(default_factory=utc_now)
    application_deadline: Optional[datetime] = None
    application_url: str = ""
    source: JobSource = JobSource.OTHER
    skills: List[ExtractedSkill] = Field(default_factory=list)
    metadata: JobMetadata = Field(default_factory=JobMetadata)

    @property
    def required_skills(self) -> List[ExtractedSkill]:
        return [skill for skill in self.skills if skill.required]


class JobExtractionResult(BaseSchema):
    """Result of parsing one raw posting."""

    job: JobPosting
    confidence: float = Field(..., ge=0, le=1)
    warnings: List[str] = Field(default_factory=list)
    missing_fields: List[str] = Field(default_factory=list)

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        """Validate confidence is between 0 and 1."""
        if not 0 <= v <= 1:
            raise ValueError("Confidence must be between 0 and 1")
        return v

    @property
    def needs_review(self) -> bool:
        """Low-confidence extractions should be reviewed by a person."""
        return bool(self.warnings)
