"""Static skill taxonomy used by extraction, scoring and ranking."""
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import Field

from jobmatch_core.schemas.base import FrozenSchema
from jobmatch_core.schemas.job import SkillCategory


class SkillDefinition(FrozenSchema):
    """Taxonomy entry for one canonical skill."""

    category: SkillCategory
    aliases: Tuple[str, ...] = ()
    weight: float = Field(..., gt=0, le=1)
    related: Tuple[str, ...] = ()


def _skill(category: SkillCategory, aliases: List[str], weight: float, related: List[str]) -> SkillDefinition:
    return SkillDefinition(
        category=category,
        aliases=tuple(aliases),
        weight=weight,
        related=tuple(related),
    )


_PROGRAMMING = SkillCategory.PROGRAMMING
_FRAMEWORK = SkillCategory.FRAMEWORK
_DATABASE = SkillCategory.DATABASE
_TOOL = SkillCategory.TOOL
_SOFT_SKILL = SkillCategory.SOFT_SKILL

_SKILLS: Dict[str, SkillDefinition] = {
    # Programming languages
    "javascript": _skill(_PROGRAMMING, ["js", "es6", "es2015", "node.js", "nodejs"], 1.0, ["typescript", "react", "vue"]),
    "typescript": _skill(_PROGRAMMING, ["ts"], 0.9, ["javascript", "angular", "react"]),
    "python": _skill(_PROGRAMMING, ["py"], 1.0, ["django", "flask", "pandas", "numpy"]),
    "java": _skill(_PROGRAMMING, [], 0.9, ["spring", "hibernate", "maven"]),
    "c#": _skill(_PROGRAMMING, ["csharp", "c-sharp"], 0.8, [".net", "asp.net", "azure"]),
    "go": _skill(_PROGRAMMING, ["golang"], 0.8, ["docker", "kubernetes"]),
    "rust": _skill(_PROGRAMMING, [], 0.7, ["wasm", "systems"]),
    "php": _skill(_PROGRAMMING, [], 0.7, ["laravel", "symfony", "wordpress"]),
    "ruby": _skill(_PROGRAMMING, [], 0.7, ["rails", "sinatra"]),
    "swift": _skill(_PROGRAMMING, [], 0.6, ["ios", "xcode"]),
    "kotlin": _skill(_PROGRAMMING, [], 0.6, ["android", "java"]),

    # Frameworks and libraries
    "react": _skill(_FRAMEWORK, ["reactjs", "react.js"], 1.0, ["javascript", "jsx", "redux"]),
    "vue": _skill(_FRAMEWORK, ["vuejs", "vue.js"], 0.8, ["javascript", "nuxt"]),
    "angular": _skill(_FRAMEWORK, ["angularjs"], 0.8, ["typescript", "rxjs"]),
    "django": _skill(_FRAMEWORK, [], 0.8, ["python", "rest"]),
    "flask": _skill(_FRAMEWORK, [], 0.7, ["python"]),
    "spring": _skill(_FRAMEWORK, ["spring boot"], 0.8, ["java", "hibernate"]),
    "express": _skill(_FRAMEWORK, ["express.js", "expressjs"], 0.8, ["node.js", "javascript"]),
    "laravel": _skill(_FRAMEWORK, [], 0.7, ["php"]),
    "rails": _skill(_FRAMEWORK, ["ruby on rails"], 0.7, ["ruby"]),
    ".net": _skill(_FRAMEWORK, ["dotnet", "asp.net"], 0.8, ["c#", "azure"]),

    # Databases
    "postgresql": _skill(_DATABASE, ["postgres", "psql"], 0.9, ["sql", "database"]),
    "mysql": _skill(_DATABASE, [], 0.8, ["sql", "database"]),
    "mongodb": _skill(_DATABASE, ["mongo"], 0.8, ["nosql", "database"]),
    "redis": _skill(_DATABASE, [], 0.7, ["caching", "nosql"]),
    "elasticsearch": _skill(_DATABASE, ["elastic"], 0.7, ["search", "nosql"]),
    "sqlite": _skill(_DATABASE, [], 0.6, ["sql", "database"]),
    "oracle": _skill(_DATABASE, ["oracle db"], 0.6, ["sql", "database"]),

    # Tools and platforms
    "docker": _skill(_TOOL, ["containerization"], 0.9, ["kubernetes", "devops"]),
    "kubernetes": _skill(_TOOL, ["k8s"], 0.8, ["docker", "devops"]),
    "aws": _skill(_TOOL, ["amazon web services"], 0.9, ["cloud", "devops"]),
    "azure": _skill(_TOOL, ["microsoft azure"], 0.8, ["cloud", "devops"]),
    "gcp": _skill(_TOOL, ["google cloud", "google cloud platform"], 0.8, ["cloud", "devops"]),
    "git": _skill(_TOOL, ["github", "gitlab", "version control"], 1.0, ["devops"]),
    "jenkins": _skill(_TOOL, [], 0.7, ["ci/cd", "devops"]),
    "terraform": _skill(_TOOL, [], 0.7, ["iac", "devops", "cloud"]),
    "ansible": _skill(_TOOL, [], 0.6, ["devops", "automation"]),

    # Soft skills
    "leadership": _skill(_SOFT_SKILL, ["team lead", "management"], 0.8, ["communication"]),
    "communication": _skill(_SOFT_SKILL, ["verbal", "written"], 0.9, ["leadership"]),
    "problem-solving": _skill(_SOFT_SKILL, ["analytical", "critical thinking"], 0.9, []),
    "teamwork": _skill(_SOFT_SKILL, ["collaboration", "team player"], 0.8, ["communication"]),
    "agile": _skill(_SOFT_SKILL, ["scrum", "kanban"], 0.8, ["project management"]),
    "project management": _skill(_SOFT_SKILL, ["pm"], 0.7, ["leadership", "agile"]),
}

SKILL_TAXONOMY: Mapping[str, SkillDefinition] = MappingProxyType(_SKILLS)

_ALIAS_INDEX: Mapping[str, str] = MappingProxyType({
    **{alias: name for name, skill in _SKILLS.items() for alias in skill.aliases},
    **{name: name for name in _SKILLS},
})


def skill_names(name: str) -> List[str]:
    """Return the canonical name followed by its aliases."""
    return [name, *SKILL_TAXONOMY[name].aliases]


def canonical_skill_name(name: str) -> Optional[str]:
    """Resolve a skill name or alias to its canonical taxonomy key.

    Args:
        name: Skill name in any case, e.g. ``"Node.js"`` or ``"k8s"``

    Returns:
        Canonical name, or None when the skill is not in the taxonomy
    """
    return _ALIAS_INDEX.get(name.strip().lower())
