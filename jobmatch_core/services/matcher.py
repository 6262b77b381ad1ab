"""Service for behavioral job ranking and personalized recommendations."""
import asyncio
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple

from jobmatch_core.core.config import Settings
from jobmatch_core.core.exceptions import handle_error
from jobmatch_core.core.logging import get_logger
from jobmatch_core.extraction.taxonomy import canonical_skill_name
from jobmatch_core.repositories.user import BehaviorRepository, InMemoryBehaviorRepository
from jobmatch_core.schemas.base import utc_now
from jobmatch_core.schemas.job import ExperienceLevel, ExtractedSkill, JobPosting
from jobmatch_core.schemas.matching import (
    BehaviorStats,
    InteractionAction,
    JobInteraction,
    JobRecommendation,
    MLJobFeatures,
    ModelWeights,
    RankedJob,
    UserBehaviorPattern,
)
from jobmatch_core.schemas.profile import (
    EmploymentPreferences,
    LocationPreferences,
    SalaryExpectations,
    UserProfile,
    UserSkill,
)
from jobmatch_core.services.base import BaseService

logger = get_logger(__name__)

STOP_WORDS = frozenset({
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    "by", "is", "are", "was", "were", "be", "been", "have", "has", "had",
    "will", "would", "could", "should", "may", "might", "can", "must",
})

# First matching keyword decides a benefit's weight
BENEFIT_WEIGHTS: Dict[str, float] = {
    "health": 0.25,
    "dental": 0.15,
    "vision": 0.10,
    "retirement": 0.20,
    "401k": 0.20,
    "pto": 0.25,
    "vacation": 0.25,
    "flexible": 0.30,
    "remote": 0.35,
    "equity": 0.30,
    "stock": 0.30,
    "bonus": 0.25,
    "learning": 0.20,
    "development": 0.20,
    "gym": 0.10,
    "food": 0.15,
}

# (ideal years, tolerated distance) per level
EXPERIENCE_TARGETS: Dict[ExperienceLevel, Tuple[float, float]] = {
    ExperienceLevel.ENTRY: (1, 2),
    ExperienceLevel.MID: (4, 3),
    ExperienceLevel.SENIOR: (7, 4),
    ExperienceLevel.LEAD: (10, 5),
    ExperienceLevel.EXECUTIVE: (15, 8),
}

_NON_WORD_RE = re.compile(r"[^\w\s]")


def extract_keywords(text: str) -> List[str]:
    """Split text into lower-cased keywords without stop words."""
    words = _NON_WORD_RE.sub(" ", text.lower()).split()
    return [word for word in words if len(word) > 2 and word not in STOP_WORDS]


def _skill_key(name: str) -> str:
    return canonical_skill_name(name) or name.strip().lower()


class JobMatcher(BaseService):
    """Ranks jobs with a hand-weighted feature model and learns from behavior.

    Behavior patterns live behind a ``BehaviorRepository`` and are created
    with default rates the first time a user is seen. Updates for the same
    user are serialized with a per-user lock that exists only while an
    update for that user is running or waiting.
    """

    def __init__(
        self,
        behavior_repo: Optional[BehaviorRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """Initialize matcher.

        Args:
            behavior_repo: Repository for behavior patterns
            settings: Optional settings
        """
        super().__init__(settings)
        self.behavior_repo = behavior_repo or InMemoryBehaviorRepository()
        self.config = self.settings.MATCHING
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_holders: Dict[str, int] = {}

    async def _cleanup_resources(self) -> None:
        # Let in-flight behavior updates finish
        for lock in list(self._locks.values()):
            async with lock:
                pass

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        self._lock_holders[user_id] = self._lock_holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[user_id] -= 1
            if not self._lock_holders[user_id]:
                del self._lock_holders[user_id]
                del self._locks[user_id]

    def default_behavior(self, user_id: str) -> UserBehaviorPattern:
        """Behavior pattern for a user seen for the first time."""
        config = self.config
        return UserBehaviorPattern(
            user_id=user_id,
            behavior=BehaviorStats(
                application_rate=config.default_application_rate,
                response_rate=config.default_response_rate,
                success_rate=config.default_success_rate,
                avg_viewing_time=config.default_avg_viewing_time,
                peak_activity_hours=list(config.default_peak_hours),
            ),
            model_weights=ModelWeights(**config.default_model_weights),
        )

    async def get_behavior(self, user_id: str) -> UserBehaviorPattern:
        """Load a user's behavior pattern, falling back to defaults."""
        try:
            pattern = await self.behavior_repo.get(user_id)
        except Exception as e:
            error = handle_error(e)
            logger.warning(
                "Failed to load behavior pattern, using defaults",
                user_id=user_id,
                error_code=error["error_code"],
            )
            pattern = None
        return pattern or self.default_behavior(user_id)

    def generate_job_features(
        self,
        job: JobPosting,
        profile: UserProfile,
        behavior: Optional[UserBehaviorPattern] = None,
    ) -> MLJobFeatures:
        """Build the feature vector for a job/profile pair.

        Args:
            job: Job posting
            profile: User profile
            behavior: Behavior snapshot, defaults for a new user when omitted

        Returns:
            Feature vector with every value in [0, 1]
        """
        behavior = behavior or self.default_behavior(profile.id)

        title_similarity = self.calculate_title_similarity(job.title, profile.desired_roles)
        salary_fit = self.calculate_salary_fit(job, profile.salary_expectations)
        experience_match = self.calculate_experience_match(job.experience_level, profile.experience_years)
        skills_coverage = self.calculate_skills_coverage(job.skills, profile.skills)

        features = MLJobFeatures(
            title_similarity=title_similarity,
            description_similarity=self.calculate_description_similarity(job.description, profile),
            requirements_overlap=self.calculate_requirements_overlap(job.requirements, profile.skills),
            benefits_appeal=self.calculate_benefits_appeal(job.benefits),
            salary_fit=salary_fit,
            experience_match=experience_match,
            skills_coverage=skills_coverage,
            location_preference=self.calculate_location_preference(job, profile.location_preferences),
            employment_type_match=1.0 if job.employment_type in profile.employment_preferences.types else 0.0,
            company_size_preference=self.encode_company_size_preference(
                job.metadata.company_size, profile.employment_preferences
            ),
            industry_alignment=self.encode_industry_alignment(
                job.metadata.industry, profile.employment_preferences
            ),
            remote_compatibility=1.0 if job.remote else 0.0,
        )

        features.application_likelihood = self.predict_application_likelihood(job, behavior)
        features.response_probability = self.predict_response_probability(job, behavior)
        features.success_prediction = self.predict_success_probability(features, behavior)
        return features

    def calculate_ml_score(self, features: MLJobFeatures, weights: ModelWeights) -> float:
        behavioral = self.config.behavioral_weight
        score = (
            features.skills_coverage * weights.skills_importance
            + features.salary_fit * weights.salary_importance
            + features.location_preference * weights.location_importance
            + features.title_similarity * weights.company_importance
            + features.experience_match * weights.growth_importance
            + features.application_likelihood * behavioral
            + features.response_probability * behavioral
            + features.success_prediction * behavioral
        )
        return min(1.0, max(0.0, score))

    async def rank_jobs(self, jobs: Sequence[JobPosting], profile: UserProfile) -> List[RankedJob]:
        """Rank jobs for a user, best first.

        Ranking is deterministic. Jobs with equal scores keep their input
        order.
        """
        behavior = await self.get_behavior(profile.id)
        feature_cache: Dict[str, MLJobFeatures] = {}

        ranked = []
        for job in jobs:
            features = feature_cache.get(job.id)
            if features is None:
                features = self.generate_job_features(job, profile, behavior)
                feature_cache[job.id] = features
            ranked.append(RankedJob(
                job=job,
                ml_score=self.calculate_ml_score(features, behavior.model_weights),
                features=features,
            ))

        logger.debug("Jobs ranked", user_id=profile.id, jobs=len(ranked))
        return sorted(ranked, key=lambda item: item.ml_score, reverse=True)

    async def get_personalized_job_recommendations(
        self,
        jobs: Sequence[JobPosting],
        profile: UserProfile,
        limit: Optional[int] = None,
    ) -> List[JobRecommendation]:
        """Top ranked jobs with a short explanation for each."""
        limit = self.config.default_recommendation_limit if limit is None else limit
        ranked = await self.rank_jobs(jobs, profile)

        return [
            JobRecommendation(
                job=item.job,
                ml_score=item.ml_score,
                features=item.features,
                reasoning=self.generate_recommendation_reasoning(item.features, item.ml_score),
            )
            for item in ranked[:limit]
        ]

    async def update_user_behavior(self, interaction: JobInteraction) -> None:
        """Fold one interaction into the user's behavior pattern and store it.

        A user without a stored pattern starts from the defaults. When the
        stored pattern cannot be read the interaction is logged and dropped,
        so existing learned rates are never overwritten with defaults.
        """
        config = self.config

        async with self._user_lock(interaction.user_id):
            try:
                current = await self.behavior_repo.get(interaction.user_id)
            except Exception as e:
                error = handle_error(e)
                logger.error(
                    "Failed to load behavior pattern, interaction dropped",
                    user_id=interaction.user_id,
                    job_id=interaction.job_id,
                    action=interaction.action.value,
                    error_code=error["error_code"],
                )
                return

            current = current or self.default_behavior(interaction.user_id)
            pattern = current.model_copy(deep=True)
            stats = pattern.behavior

            if interaction.action == InteractionAction.VIEWED:
                if interaction.duration_viewed:
                    stats.avg_viewing_time = (stats.avg_viewing_time + interaction.duration_viewed) / 2
            elif interaction.action == InteractionAction.APPLIED:
                stats.application_rate = min(1.0, stats.application_rate * config.applied_rate_factor)
            elif interaction.action == InteractionAction.HIRED:
                stats.success_rate = min(1.0, stats.success_rate * config.hired_rate_factor)
            elif interaction.action == InteractionAction.REJECTED:
                if interaction.feedback_rating and interaction.feedback_rating < config.low_rating_threshold:
                    stats.application_rate = max(
                        config.min_application_rate,
                        stats.application_rate * config.rejected_rate_factor,
                    )

            pattern.last_updated = utc_now()

            try:
                await self.behavior_repo.put(pattern)
            except Exception as e:
                error = handle_error(e)
                logger.error(
                    "Failed to save behavior pattern",
                    user_id=interaction.user_id,
                    error_code=error["error_code"],
                )
                return

        logger.info(
            "User behavior updated",
            user_id=interaction.user_id,
            job_id=interaction.job_id,
            action=interaction.action.value,
            application_rate=round(stats.application_rate, 4),
            success_rate=round(stats.success_rate, 4),
        )

    def calculate_title_similarity(self, title: str, desired_roles: Sequence[str]) -> float:
        title = title.lower()
        roles = [role.lower() for role in desired_roles if role.strip()]

        if any(role in title or title in role for role in roles):
            return 1.0

        job_keywords = extract_keywords(title)
        user_keywords = {keyword for role in roles for keyword in extract_keywords(role)}
        union = set(job_keywords) | user_keywords
        if not union:
            return 0.0
        intersection = [keyword for keyword in job_keywords if keyword in user_keywords]
        return min(1.0, len(intersection) / len(union))

    def calculate_description_similarity(self, description: str, profile: UserProfile) -> float:
        words = extract_keywords(description)
        terms = [skill.name.lower() for skill in profile.skills] + [role.lower() for role in profile.desired_roles]
        terms = [term for term in terms if term]
        if not words or not terms:
            return 0.0

        matches = [word for word in words if any(word in term or term in word for term in terms)]
        return min(1.0, len(matches) / max(20, len(words) * 0.1))

    def calculate_requirements_overlap(self, requirements: Sequence[str], user_skills: Sequence[UserSkill]) -> float:
        if not requirements:
            return 0.5
        if not user_skills:
            return 0.0

        text = " ".join(requirements).lower()
        matched = [skill for skill in user_skills if skill.name.lower() in text]
        return min(1.0, len(matched) / len(user_skills))

    def calculate_benefits_appeal(self, benefits: Sequence[str]) -> float:
        matched = 0
        total_weight = 0.0
        for benefit in benefits:
            benefit = benefit.lower()
            for keyword, weight in BENEFIT_WEIGHTS.items():
                if keyword in benefit:
                    matched += 1
                    total_weight += weight
                    break

        return min(1.0, total_weight / matched) if matched else 0.3

    def _job_salary_midpoint(self, job: JobPosting) -> float:
        return job.salary.annualized_midpoint(self.settings.SCORING.hours_per_year)

    def calculate_salary_fit(self, job: JobPosting, expectations: SalaryExpectations) -> float:
        """Score the job midpoint against the expected midpoint.

        90% to 130% of expectations is a perfect fit.
        """
        job_mid = self._job_salary_midpoint(job)
        user_mid = (expectations.min + expectations.max) / 2
        if not job_mid or not user_mid:
            return 0.5

        ratio = job_mid / user_mid
        if 0.9 <= ratio <= 1.3:
            return 1.0
        if ratio < 0.9:
            return max(0.0, 0.5 + (ratio - 0.5) * 0.5)
        return max(0.6, 1.0 - (ratio - 1.3) * 0.2)

    def calculate_experience_match(self, level: ExperienceLevel, user_years: float) -> float:
        ideal, tolerance = EXPERIENCE_TARGETS[level]
        distance = abs(user_years - ideal)
        if distance <= tolerance:
            return 1.0 - (distance / tolerance) * 0.3
        return max(0.1, 0.7 - (distance - tolerance) / ideal)

    def calculate_skills_coverage(self, job_skills: Sequence[ExtractedSkill], user_skills: Sequence[UserSkill]) -> float:
        """Blend of required-skill coverage (70%) and overall coverage (30%)."""
        if not job_skills:
            return 0.5

        user_skill_names = {_skill_key(skill.name) for skill in user_skills}
        required = [skill for skill in job_skills if skill.required]
        required_matched = sum(1 for skill in required if _skill_key(skill.name) in user_skill_names)
        all_matched = sum(1 for skill in job_skills if _skill_key(skill.name) in user_skill_names)

        required_score = required_matched / len(required) if required else 1.0
        overall_score = all_matched / len(job_skills)
        return required_score * 0.7 + overall_score * 0.3

    def calculate_location_preference(self, job: JobPosting, preferences: LocationPreferences) -> float:
        if job.remote:
            return 1.0 if preferences.remote_only else 0.9
        if preferences.remote_only:
            return 0.1

        job_location = job.location.lower()
        for location in preferences.locations:
            location = location.lower()
            if location in job_location or job_location in location:
                return 1.0

        return 0.6 if preferences.willing_to_relocate else 0.2

    def encode_company_size_preference(self, company_size: Optional[str], preferences: EmploymentPreferences) -> float:
        if not company_size or not preferences.company_sizes:
            return 0.5
        return 1.0 if company_size in preferences.company_sizes else 0.0

    def encode_industry_alignment(self, industries: Sequence[str], preferences: EmploymentPreferences) -> float:
        if not industries or not preferences.industries:
            return 0.5
        matches = [industry for industry in industries if industry in preferences.industries]
        return len(matches) / len(industries)

    def predict_application_likelihood(self, job: JobPosting, behavior: UserBehaviorPattern) -> float:
        config = self.config
        preferences = behavior.preferences
        likelihood = behavior.behavior.application_rate

        title = job.title.lower()
        if any(preferred.lower() in title for preferred in preferences.preferred_job_titles if preferred):
            likelihood *= config.preferred_title_factor

        company = job.company.lower()
        if any(preferred.lower() in company for preferred in preferences.preferred_companies if preferred):
            likelihood *= config.preferred_company_factor

        salary_window = preferences.preferred_salary_range
        if salary_window.max > 0:
            job_mid = self._job_salary_midpoint(job)
            if salary_window.min <= job_mid <= salary_window.max:
                likelihood *= config.salary_window_factor

        return min(1.0, likelihood)

    def predict_response_probability(self, job: JobPosting, behavior: UserBehaviorPattern) -> float:
        config = self.config
        probability = behavior.behavior.response_rate

        salary_min, _ = job.salary.annualized_range(self.settings.SCORING.hours_per_year)
        if salary_min and salary_min > config.high_salary_threshold:
            probability *= config.high_salary_factor
        if job.remote:
            probability *= config.remote_factor
        if job.metadata.company_size in ("large", "enterprise"):
            probability *= config.large_company_factor
        if len(job.required_skills) <= config.reasonable_requirements_count:
            probability *= config.reasonable_requirements_factor

        return min(1.0, probability)

    def predict_success_probability(self, features: MLJobFeatures, behavior: UserBehaviorPattern) -> float:
        match_quality = (
            features.skills_coverage
            + features.experience_match
            + features.salary_fit
            + features.title_similarity
        ) / 4
        return min(1.0, behavior.behavior.success_rate * 0.5 + match_quality * 0.5)

    def generate_recommendation_reasoning(self, features: MLJobFeatures, score: float) -> str:
        reasons = []

        if features.skills_coverage > 0.8:
            reasons.append("Excellent skills match")
        elif features.skills_coverage > 0.6:
            reasons.append("Good skills alignment")

        if features.salary_fit > 0.8:
            reasons.append("Salary matches expectations")

        if features.location_preference > 0.8:
            reasons.append("Perfect location fit")

        if features.application_likelihood > 0.7:
            reasons.append("High likelihood of application success")

        if features.title_similarity > 0.7:
            reasons.append("Title matches career goals")

        if not reasons:
            if score > 0.7:
                reasons.append("Good overall match")
            elif score > 0.5:
                reasons.append("Decent fit with growth potential")
            else:
                reasons.append("Consider for skill development")

        return ", ".join(reasons[:3])
