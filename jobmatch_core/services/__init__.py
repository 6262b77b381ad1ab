"""Pipeline services: extraction, scoring and ranking."""
from jobmatch_core.services.extractor import JobParser
from jobmatch_core.services.matcher import JobMatcher
from jobmatch_core.services.pipeline import JobPipeline
from jobmatch_core.services.scorer import JobScorer

__all__ = ["JobParser", "JobScorer", "JobMatcher", "JobPipeline"]
