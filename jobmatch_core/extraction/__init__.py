"""Pure text extractors for job postings."""
from jobmatch_core.extraction.taxonomy import SKILL_TAXONOMY, SkillDefinition, canonical_skill_name
from jobmatch_core.extraction.text import normalize_text

__all__ = [
    "SKILL_TAXONOMY",
    "SkillDefinition",
    "canonical_skill_name",
    "normalize_text",
]
