"""Service for scoring job postings against a user profile."""
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from jobmatch_core.core.config import ScoringSettings, Settings
from jobmatch_core.core.exceptions import (
    ProfileNotFoundError,
    RepositoryError,
    ScoringError,
    ValidationError,
    handle_error,
)
from jobmatch_core.core.logging import get_logger
from jobmatch_core.extraction.taxonomy import canonical_skill_name
from jobmatch_core.repositories.job import InMemoryScoreRepository, ScoreRepository
from jobmatch_core.repositories.user import ProfileRepository
from jobmatch_core.schemas.job import ExperienceLevel, ExtractedSkill, JobPosting
from jobmatch_core.schemas.profile import LocationPreferences, UserProfile, UserSkill
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
from jobmatch_core.services.base import BaseService

logger = get_logger(__name__)

CriteriaOverrides = Union[MatchingCriteria, Mapping[str, float], None]


@dataclass(frozen=True)
class ExperienceBand:
    """Years of experience expected for an experience level."""

    min: float
    max: float
    ideal: float


EXPERIENCE_BANDS: Dict[ExperienceLevel, ExperienceBand] = {
    ExperienceLevel.ENTRY: ExperienceBand(min=0, max=2, ideal=1),
    ExperienceLevel.MID: ExperienceBand(min=2, max=5, ideal=3.5),
    ExperienceLevel.SENIOR: ExperienceBand(min=5, max=10, ideal=7),
    ExperienceLevel.LEAD: ExperienceBand(min=7, max=15, ideal=10),
    ExperienceLevel.EXECUTIVE: ExperienceBand(min=10, max=30, ideal=15),
}


@dataclass
class ComponentScore:
    """One scoring component with the details used for reasoning."""

    score: float
    details: Dict[str, Any] = field(default_factory=dict)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    The value is first rounded to 9 decimals so a weighted sum such as
    84.49999999999999 is treated as 84.5.
    """
    return int(Decimal(repr(round(value, 9))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def recommendation_for(overall_score: int, config: Optional[ScoringSettings] = None) -> Recommendation:
    """Map an overall score to its recommendation tier."""
    config = config or ScoringSettings()
    if overall_score >= config.highly_recommended_threshold:
        return Recommendation.HIGHLY_RECOMMENDED
    if overall_score >= config.good_match_threshold:
        return Recommendation.GOOD_MATCH
    if overall_score >= config.consider_threshold:
        return Recommendation.CONSIDER
    return Recommendation.POOR_MATCH


def _skill_key(name: str) -> str:
    return canonical_skill_name(name) or name.strip().lower()


def _months_since(last_used: date, today: date) -> int:
    return (today.year - last_used.year) * 12 + (today.month - last_used.month)


class JobScorer(BaseService):
    """Scores jobs for one user and stores the results.

    The overall score is a weighted sum of six component scores (skills,
    experience, location, salary, company and requirements), each in
    [0, 1]. Component weights default to the configured scoring weights
    and may be overridden per call.
    """

    def __init__(
        self,
        user_id: str,
        profile_repo: ProfileRepository,
        score_repo: Optional[ScoreRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """Initialize scorer.

        Args:
            user_id: User the scores are computed for
            profile_repo: Repository used to resolve the user's profile
            score_repo: Repository scores are upserted into
            settings: Optional settings
        """
        super().__init__(settings)
        self.user_id = user_id
        self.profile_repo = profile_repo
        self.score_repo = score_repo or InMemoryScoreRepository()
        self.config = self.settings.SCORING
        self.default_criteria = MatchingCriteria(
            skill_weight=self.config.skill_weight,
            experience_weight=self.config.experience_weight,
            location_weight=self.config.location_weight,
            salary_weight=self.config.salary_weight,
            company_weight=self.config.company_weight,
            requirements_weight=self.config.requirements_weight,
        )

    async def _init_resources(self) -> None:
        await self.get_profile()

    async def _check_health(self) -> bool:
        try:
            await self.get_profile()
        except ProfileNotFoundError:
            return False
        return True

    async def score_job(
        self,
        job: JobPosting,
        profile: Optional[UserProfile] = None,
        criteria: CriteriaOverrides = None,
    ) -> JobScore:
        """Score a job against the user's profile.

        Args:
            job: Job posting to score
            profile: User profile, resolved from the repository when omitted
            criteria: Full criteria or a partial dict of weight overrides

        Returns:
            The job score as stored

        Raises:
            ProfileNotFoundError: If no profile can be resolved
            ValidationError: If the criteria overrides are invalid
        """
        if profile is None:
            profile = await self.get_profile()
        weights = self._resolve_criteria(criteria)

        try:
            score = self._build_score(job, profile, weights)
        except Exception as e:
            raise ScoringError(f"Failed to score job {job.id}", job_id=job.id, original_error=e) from e

        score = await self._save_score(score)

        logger.info(
            "Job scored",
            job_id=job.id,
            user_id=self.user_id,
            overall_score=score.overall_score,
            recommendation=score.recommendation.value,
        )
        return score

    async def batch_score_jobs(
        self,
        jobs: Sequence[JobPosting],
        criteria: CriteriaOverrides = None,
    ) -> List[JobScore]:
        """Score several jobs, best first.

        The profile is resolved once. A job that fails to score is logged
        and skipped.

        Args:
            jobs: Job postings to score
            criteria: Optional weight overrides applied to every job

        Returns:
            Scores sorted by overall score, highest first

        Raises:
            ProfileNotFoundError: If no profile can be resolved
            ValidationError: If the criteria overrides are invalid
        """
        profile = await self.get_profile()
        weights = self._resolve_criteria(criteria)

        scores: List[JobScore] = []
        for job in jobs:
            try:
                scores.append(await self.score_job(job, profile, weights))
            except Exception as e:
                error = handle_error(e)
                logger.warning(
                    "Failed to score job",
                    job_id=job.id,
                    user_id=self.user_id,
                    error_code=error["error_code"],
                )

        logger.info("Batch scored", user_id=self.user_id, requested=len(jobs), scored=len(scores))
        return sorted(scores, key=lambda s: s.overall_score, reverse=True)

    async def get_profile(self) -> UserProfile:
        """Resolve the user's profile from the repository.

        Raises:
            ProfileNotFoundError: If the profile is missing or cannot be loaded
        """
        try:
            profile = await self.profile_repo.get(self.user_id)
        except Exception as e:
            error = e if isinstance(e, RepositoryError) else RepositoryError(
                "Failed to load user profile",
                context={"user_id": self.user_id},
                original_error=e,
            )
            raise ProfileNotFoundError(self.user_id, original_error=error) from e

        if profile is None:
            raise ProfileNotFoundError(self.user_id)
        return profile

    async def _save_score(self, score: JobScore) -> JobScore:
        try:
            return await self.score_repo.upsert(score)
        except Exception as e:
            error = handle_error(e)
            logger.error(
                "Failed to save job score",
                job_id=score.job_id,
                user_id=score.user_id,
                error_code=error["error_code"],
            )
            return score

    def _resolve_criteria(self, criteria: CriteriaOverrides) -> MatchingCriteria:
        if isinstance(criteria, MatchingCriteria):
            return criteria
        try:
            return self.default_criteria.merged(dict(criteria) if criteria else None)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid matching criteria",
                field="criteria",
                context={"overrides": dict(criteria or {})},
                original_error=e,
            ) from e

    def _build_score(self, job: JobPosting, profile: UserProfile, weights: MatchingCriteria) -> JobScore:
        skills = self.calculate_skills_match(job.skills, profile.skills)
        experience = self.calculate_experience_match(job.experience_level, profile.experience_years)
        location = self.calculate_location_match(job, profile.location_preferences)
        salary = self.calculate_salary_match(job, profile)
        company = self.calculate_company_match(job, profile)
        requirements = self.calculate_requirements_match(job.requirements, profile)

        overall = round_half_up(100 * (
            skills.score * weights.skill_weight
            + experience.score * weights.experience_weight
            + location.score * weights.location_weight
            + salary.score * weights.salary_weight
            + company.score * weights.company_weight
            + requirements.score * weights.requirements_weight
        ))
        overall = max(0, min(100, overall))

        return JobScore(
            job_id=job.id,
            user_id=self.user_id,
            overall_score=overall,
            breakdown=ScoreBreakdown(
                skills_match=round_half_up(skills.score * 100),
                experience_match=round_half_up(experience.score * 100),
                location_match=round_half_up(location.score * 100),
                salary_match=round_half_up(salary.score * 100),
                company_match=round_half_up(company.score * 100),
                requirements_match=round_half_up(requirements.score * 100),
            ),
            reasoning=self.generate_reasoning(job, skills, experience, location, salary, requirements),
            compatibility=self.calculate_compatibility(job, profile),
            recommendation=recommendation_for(overall, self.config),
            confidence=self.calculate_confidence(job, profile),
        )

    def calculate_skills_match(
        self,
        job_skills: Sequence[ExtractedSkill],
        user_skills: Sequence[UserSkill],
        today: Optional[date] = None,
    ) -> ComponentScore:
        """Weighted share of job skills the user has.

        Required skills weigh double. A matched skill contributes its
        proficiency score, adjusted for how recently it was used.
        """
        if not job_skills:
            return ComponentScore(0.5, {"required_matched": 0, "required_total": 0})

        config = self.config
        today = today or date.today()
        user_skills_by_name = {_skill_key(skill.name): skill for skill in user_skills}

        total_weight = 0.0
        matched_weight = 0.0
        required_total = 0
        required_matched = 0

        for job_skill in job_skills:
            weight = config.required_skill_weight if job_skill.required else config.optional_skill_weight
            total_weight += weight
            if job_skill.required:
                required_total += 1

            user_skill = user_skills_by_name.get(_skill_key(job_skill.name))
            if user_skill is None:
                continue

            skill_score = config.proficiency_scores.get(user_skill.proficiency.value, 0.5)
            if user_skill.last_used is not None:
                months = _months_since(user_skill.last_used, today)
                if months < config.recent_months:
                    skill_score *= config.recent_boost
                elif months > config.stale_months:
                    skill_score *= config.stale_discount

            matched_weight += weight * min(1.0, skill_score)
            if job_skill.required:
                required_matched += 1

        score = matched_weight / total_weight if total_weight > 0 else 0.0
        if required_total > 0:
            required_ratio = required_matched / required_total
            score = score * (1 - config.required_blend) + required_ratio * config.required_blend

        return ComponentScore(min(1.0, score), {
            "required_matched": required_matched,
            "required_total": required_total,
            "total_skills": len(job_skills),
        })

    def calculate_experience_match(self, level: ExperienceLevel, user_years: float) -> ComponentScore:
        """Score years of experience against the level's expected band."""
        band = EXPERIENCE_BANDS[level]

        if band.min <= user_years <= band.max:
            distance = abs(user_years - band.ideal)
            max_distance = max(band.ideal - band.min, band.max - band.ideal)
            score = 1.0 - (distance / max_distance) * 0.3
        elif user_years < band.min:
            deficit = band.min - user_years
            score = max(0.0, 0.6 - (deficit / band.min) * 0.4) if band.min else 0.6
        else:
            excess = user_years - band.max
            score = max(0.7, 0.9 - (excess / band.max) * 0.2)

        if user_years < band.min:
            gap = band.min - user_years
        elif user_years > band.max:
            gap = user_years - band.max
        else:
            gap = 0.0

        return ComponentScore(score, {
            "user_years": user_years,
            "under_qualified": user_years < band.min,
            "gap": gap,
        })

    def calculate_location_match(self, job: JobPosting, preferences: LocationPreferences) -> ComponentScore:
        if preferences.remote_only:
            return ComponentScore(1.0 if job.remote else 0.0)

        if job.remote:
            return ComponentScore(1.0)

        job_location = job.location.lower()
        for location in preferences.locations:
            location = location.lower()
            if location in job_location or job_location in location:
                return ComponentScore(1.0, {"match": location})

        job_parts = job.location.split(",")
        for location in preferences.locations:
            parts = location.split(",")
            if len(parts) > 1 and len(job_parts) > 1 and parts[-1].strip().lower() == job_parts[-1].strip().lower():
                return ComponentScore(0.7 if preferences.willing_to_relocate else 0.4, {"partial_match": True})

        return ComponentScore(0.3 if preferences.willing_to_relocate else 0.1)

    def calculate_salary_match(self, job: JobPosting, profile: UserProfile) -> ComponentScore:
        """Score the annualized job band against the expected band."""
        job_min, job_max = job.salary.annualized_range(self.config.hours_per_year)
        if not job_min and not job_max:
            return ComponentScore(0.5, {"message": "No salary information available"})

        user_min = profile.salary_expectations.min
        user_max = profile.salary_expectations.max
        if user_max <= 0:
            return ComponentScore(0.5, {"message": "No salary expectations"})

        job_min = job_min or 0
        job_max = job_max or job_min or user_max

        overlap_start = max(job_min, user_min)
        overlap_end = min(job_max, user_max)
        if overlap_start <= overlap_end:
            avg_range = ((user_max - user_min) + (job_max - job_min)) / 2
            overlap_ratio = (overlap_end - overlap_start) / avg_range if avg_range > 0 else 1.0
            return ComponentScore(min(1.0, 0.7 + overlap_ratio * 0.3), {"overlap_ratio": overlap_ratio})

        if job_max < user_min:
            gap = (user_min - job_max) / user_min
            return ComponentScore(max(0.0, 0.5 - gap * 0.5), {"gap": gap * 100, "gap_type": "underpaid"})

        gap = (job_min - user_max) / user_max
        return ComponentScore(max(0.3, 0.8 - gap * 0.3), {"gap": gap * 100, "gap_type": "overpaid"})

    def calculate_company_match(self, job: JobPosting, profile: UserProfile) -> ComponentScore:
        config = self.config
        preferences = profile.employment_preferences
        score = 0.5
        factors = []

        if preferences.industries:
            if set(job.metadata.industry) & set(preferences.industries):
                score += config.industry_match_bonus
                factors.append("Industry match")
            else:
                score -= config.industry_mismatch_penalty
                factors.append("Industry mismatch")

        if preferences.company_sizes and job.metadata.company_size:
            if job.metadata.company_size in preferences.company_sizes:
                score += config.company_size_match_bonus
                factors.append("Company size match")
            else:
                score -= config.company_size_mismatch_penalty
                factors.append("Company size mismatch")

        if job.employment_type in preferences.types:
            score += config.employment_type_match_bonus
            factors.append("Employment type match")
        else:
            score -= config.employment_type_mismatch_penalty
            factors.append("Employment type mismatch")

        return ComponentScore(max(0.0, min(1.0, score)), {"factors": factors})

    def calculate_requirements_match(self, requirements: Sequence[str], profile: UserProfile) -> ComponentScore:
        if not requirements:
            return ComponentScore(0.5, {"deal_breaker": None})

        for requirement in requirements:
            for deal_breaker in profile.deal_breakers:
                if deal_breaker and deal_breaker.lower() in requirement.lower():
                    return ComponentScore(self.config.deal_breaker_score, {"deal_breaker": deal_breaker})

        return ComponentScore(self.config.requirements_base, {"deal_breaker": None})

    def generate_reasoning(
        self,
        job: JobPosting,
        skills: ComponentScore,
        experience: ComponentScore,
        location: ComponentScore,
        salary: ComponentScore,
        requirements: ComponentScore,
    ) -> ScoreReasoning:
        strengths: List[str] = []
        concerns: List[str] = []
        suggestions: List[str] = []

        required_matched = skills.details.get("required_matched", 0)
        required_total = skills.details.get("required_total", 0)
        if skills.score >= 0.8:
            strengths.append(
                f"Excellent skills match ({round_half_up(skills.score * 100)}%) "
                f"with {required_matched}/{required_total} required skills"
            )
        elif skills.score >= 0.6:
            strengths.append(f"Good skills alignment with {required_matched}/{required_total} required skills")
        else:
            concerns.append(f"Limited skills match - missing {required_total - required_matched} required skills")
            suggestions.append("Consider learning the missing required skills before applying")

        if experience.score >= 0.8:
            strengths.append(f"Experience level aligns well with {job.experience_level.value} position")
        elif experience.details["gap"] > 0:
            if experience.details["under_qualified"]:
                concerns.append(f"May be under-qualified ({experience.details['gap']:g} years below minimum)")
                suggestions.append("Highlight relevant projects and quick learning ability in application")
            else:
                concerns.append("May be overqualified - consider if this aligns with career goals")

        if salary.score >= 0.7:
            strengths.append("Salary expectations align with offer")
        elif salary.details.get("gap_type") == "underpaid":
            concerns.append(f"Salary may be {round_half_up(salary.details['gap'])}% below expectations")
            suggestions.append("Consider negotiating salary or highlighting additional benefits")

        if location.score >= 0.9:
            strengths.append("Perfect location match")
        elif location.score < 0.5:
            concerns.append("Location may not be ideal - requires relocation or long commute")

        if requirements.details.get("deal_breaker"):
            concerns.append(f"Requirements include a deal-breaker: {requirements.details['deal_breaker']}")

        return ScoreReasoning(strengths=strengths, concerns=concerns, suggestions=suggestions)

    def calculate_compatibility(self, job: JobPosting, profile: UserProfile) -> Compatibility:
        user_skills_by_name = {_skill_key(skill.name): skill for skill in profile.skills}

        must_have = []
        nice_to_have = []
        for skill in job.skills:
            user_skill = user_skills_by_name.get(_skill_key(skill.name))
            if skill.required:
                must_have.append(MustHaveSkill(
                    skill=skill.name,
                    have=user_skill is not None,
                    gap="" if user_skill else f"Learn {skill.name} ({skill.category.value})",
                ))
            else:
                nice_to_have.append(NiceToHaveSkill(
                    skill=skill.name,
                    have=user_skill is not None,
                    level=user_skill.proficiency.value if user_skill else "none",
                ))

        expected = profile.salary_expectations
        user_mid = (expected.min + expected.max) / 2
        job_mid = job.salary.annualized_midpoint(self.config.hours_per_year)
        salary_gap = (job_mid - user_mid) / user_mid * 100 if job_mid > 0 and user_mid > 0 else 0.0

        return Compatibility(
            must_have_skills=must_have,
            nice_to_have_skills=nice_to_have,
            experience_gap=profile.experience_years - EXPERIENCE_BANDS[job.experience_level].ideal,
            salary_gap=salary_gap,
        )

    def calculate_confidence(self, job: JobPosting, profile: UserProfile) -> float:
        """Estimate how complete the data behind a score is."""
        confidence = 0.5

        if job.title:
            confidence += 0.1
        if job.skills:
            confidence += 0.15
        if job.salary.has_range:
            confidence += 0.1
        if job.requirements:
            confidence += 0.1

        if profile.skills:
            confidence += 0.15
        if profile.salary_expectations.min > 0:
            confidence += 0.1

        return min(1.0, confidence)
