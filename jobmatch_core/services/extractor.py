"""Service for turning raw job posting text into structured postings."""
import hashlib
from datetime import datetime
from typing import Any, Callable, List, Optional, TypeVar, Union

from jobmatch_core.core.config import Settings
from jobmatch_core.core.exceptions import JobMatchingError, safe_execute
from jobmatch_core.core.logging import get_logger
from jobmatch_core.extraction import fields
from jobmatch_core.extraction.text import normalize_text
from jobmatch_core.schemas.base import utc_now
from jobmatch_core.schemas.job import (
    EmploymentType,
    ExperienceLevel,
    JobExtractionResult,
    JobMetadata,
    JobPosting,
    JobSource,
    Salary,
)

logger = get_logger(__name__)

T = TypeVar("T")

UNKNOWN_TITLE = "Unknown Position"
UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_LOCATION = "Location not specified"

LOW_CONFIDENCE_WARNING = "Low confidence extraction - manual review recommended"
MISSING_FIELDS_WARNING = "Multiple critical fields missing"


def generate_job_id(title: str, company: str, scraped_at: datetime) -> str:
    """Derive a posting id from its title, company and extraction time."""
    digest = hashlib.sha1(f"{title}{company}{scraped_at.isoformat()}".encode("utf-8")).hexdigest()
    return f"job-{digest[:10]}"


class JobParser:
    """Parser for raw job postings.

    Parsing never raises. A field whose extractor fails is logged and
    treated as absent, which lowers the extraction confidence.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.config = self.settings.EXTRACTION

    def _extract(self, field: str, func: Callable[[], T], default: T) -> T:
        try:
            return safe_execute(func, f"Failed to extract {field}", field=field)
        except JobMatchingError:
            return default

    def parse_job_posting(
        self,
        raw_text: str,
        source: Union[JobSource, str] = JobSource.OTHER,
        url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> JobExtractionResult:
        """Parse a raw job posting.

        Args:
            raw_text: Posting text or HTML
            source: Where the posting came from
            url: Source URL of the posting
            now: Extraction time, used for relative dates and the id

        Returns:
            Extracted posting with confidence, warnings and missing fields
        """
        scraped_at = now or utc_now()
        raw_text = raw_text or ""
        job_source = self._resolve_source(source)

        text = self._extract("text", lambda: normalize_text(raw_text), "")
        config = self.config

        title = self._extract("title", lambda: fields.extract_title(text), None)
        company = self._extract("company", lambda: fields.extract_company(text), None)
        location = self._extract("location", lambda: fields.extract_location(text), None)
        salary = self._extract("salary", lambda: fields.extract_salary(text), Salary())
        employment_type = self._extract(
            "employment_type", lambda: fields.extract_employment_type(text), EmploymentType.FULL_TIME
        )
        experience_level = self._extract(
            "experience_level", lambda: fields.extract_experience_level(text), ExperienceLevel.MID
        )
        remote = self._extract("remote", lambda: fields.detect_remote(text), False)
        skills = self._extract(
            "skills", lambda: fields.extract_skills(text, config.single_mention_factor), []
        )
        requirements = self._extract(
            "requirements", lambda: fields.extract_requirements(text, config.max_requirements), []
        )
        benefits = self._extract(
            "benefits", lambda: fields.extract_benefits(text, config.max_benefits), []
        )
        posted_date = self._extract(
            "posted_date", lambda: fields.extract_posted_date(text, scraped_at), None
        )
        deadline = self._extract(
            "application_deadline", lambda: fields.extract_application_deadline(text), None
        )

        confidence = self._score_fields(
            title=title,
            company=company,
            location=location,
            salary=salary,
            skills=skills,
            requirements=requirements,
        )

        missing_fields: List[str] = []
        present = {"title": title, "company": company, "location": location, "skills": skills}
        for field, value in present.items():
            if not value:
                missing_fields.append(field)
                confidence -= config.missing_penalties.get(field, 0.0)

        confidence = max(0.0, min(1.0, confidence))

        warnings: List[str] = []
        if confidence < config.low_confidence_threshold:
            warnings.append(LOW_CONFIDENCE_WARNING)
        if len(missing_fields) > config.max_missing_fields:
            warnings.append(MISSING_FIELDS_WARNING)

        metadata = JobMetadata(
            scraped_at=scraped_at,
            raw_text=self._truncate(raw_text),
            confidence_score=confidence,
            language=self._extract("language", lambda: fields.detect_language(text), "unknown"),
            category=self._extract("category", lambda: fields.categorize_job(title or ""), "other"),
            industry=self._extract(
                "industry", lambda: fields.detect_industries(text, company or ""), ["other"]
            ),
            company_size=self._extract("company_size", lambda: fields.extract_company_size(text), None),
            funding=self._extract("funding", lambda: fields.extract_funding(text), None),
        )

        job = JobPosting(
            id=generate_job_id(title or "", company or "", scraped_at),
            title=title or UNKNOWN_TITLE,
            company=company or UNKNOWN_COMPANY,
            location=location or UNKNOWN_LOCATION,
            description=text,
            requirements=requirements,
            benefits=benefits,
            salary=salary,
            employment_type=employment_type,
            experience_level=experience_level,
            remote=remote,
            posted_date=posted_date or scraped_at,
            application_deadline=deadline,
            application_url=url or "",
            source=job_source,
            skills=skills,
            metadata=metadata,
        )

        logger.info(
            "Job posting parsed",
            job_id=job.id,
            source=job_source.value,
            confidence=round(confidence, 2),
            skills=len(skills),
            missing_fields=missing_fields,
        )
        if warnings:
            logger.warning("Job posting needs review", job_id=job.id, warnings=warnings)

        return JobExtractionResult(
            job=job,
            confidence=confidence,
            warnings=warnings,
            missing_fields=missing_fields,
        )

    def _resolve_source(self, source: Union[JobSource, str]) -> JobSource:
        try:
            return JobSource(source)
        except ValueError:
            logger.warning("Unknown job source", source=str(source))
            return JobSource.OTHER

    def _score_fields(self, **extracted: Any) -> float:
        config = self.config
        score = 0.0

        if extracted["title"]:
            score += config.title_bonus
        if extracted["company"]:
            score += config.company_bonus
        if extracted["location"]:
            score += config.location_bonus
        if extracted["salary"].min:
            score += config.salary_bonus
        if extracted["skills"]:
            score += config.skills_bonus
        if len(extracted["skills"]) > config.many_skills_threshold:
            score += config.many_skills_bonus
        if extracted["requirements"]:
            score += config.requirements_bonus

        return score

    def _truncate(self, raw_text: str) -> str:
        limit = self.config.raw_text_limit
        if len(raw_text) > limit:
            return raw_text[:limit] + "..."
        return raw_text
