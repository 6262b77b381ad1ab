"""Field extractors for normalized job posting text.

Every extractor is a pure function of the normalized text. Extractors
return None (or an empty list) when the field cannot be found; filling in
placeholders and scoring confidence is left to the parser service.
"""
import bisect
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Match, Optional, Pattern, Sequence, Tuple

from jobmatch_core.extraction.taxonomy import SKILL_TAXONOMY, skill_names
from jobmatch_core.schemas.job import (
    EmploymentType,
    ExperienceLevel,
    ExtractedSkill,
    Salary,
    SalaryPeriod,
)

COMMON_WORDS = frozenset({
    "the", "and", "or", "but", "with", "for", "you", "we",
    "are", "have", "this", "that", "will", "can", "all",
})

ENGLISH_MARKERS = ("the", "and", "or", "but", "with", "for", "you", "we", "are", "have")

# Title
_TITLE_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"\b(?:job title|position|role):[ \t]*([^\n\r]{2,100})", re.IGNORECASE),
    re.compile(r"^([^\n\r]{10,100})(?:\s*-\s*[A-Z])", re.MULTILINE),
    re.compile(r"\bhiring\s+(?:a\s+)?([^\n\r]{5,80})", re.IGNORECASE),
    re.compile(r"\bseeking\s+(?:a\s+)?([^\n\r]{5,80})", re.IGNORECASE),
    re.compile(r"\bposition:[ \t]*([^\n\r]{5,80})", re.IGNORECASE),
)
_COMMON_TITLE_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(?:senior|lead|principal|staff|junior)?\s*"
        r"(?:software|web|mobile|full.?stack|front.?end|back.?end|data|devops|site reliability)\s*"
        r"(?:engineer|developer|architect|analyst)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:product|project|program|engineering)\s*(?:manager|director|lead)\b", re.IGNORECASE),
    re.compile(r"\b(?:ui|ux|product)\s*(?:designer|researcher)\b", re.IGNORECASE),
    re.compile(r"\b(?:data|business|financial|marketing)\s*(?:scientist|analyst)\b", re.IGNORECASE),
)
_EDGE_NON_WORD_RE = re.compile(r"^[^\w(]+|[^\w)]+$")
_SPACES_RE = re.compile(r"\s+")

# Company
_COMPANY_LABEL_RE = re.compile(r"\b(?:company|employer|organization):[ \t]*([^\n\r]{2,50})", re.IGNORECASE)
_FIRST_LINE_COMPANY_RE = re.compile(r"[^\n]{3,100}?\s+-\s+([A-Z][^\n]{1,50}?)(?:\s+-\s+|[ \t]*\n|[ \t]*$)")
_COMPANY_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"(?:\bat|@)\s+([A-Z][a-zA-Z\s&.,]{2,30})(?:\s+is|,|\n)"),
    re.compile(r"([A-Z][a-zA-Z\s&.,]{2,30})\s+(?i:is hiring|seeks|looking for)"),
    re.compile(r"\bwork\s+(?:at|for)\s+([A-Z][a-zA-Z\s&.,]{2,30})", re.IGNORECASE),
)

# Location
_LOCATION_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"\b(?:location|based in|located in):[ \t]*([^\n\r]{3,50})", re.IGNORECASE),
    re.compile(r"\b([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*),[ \t]*([A-Z]{2})\b"),
    re.compile(r"\b([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*),[ \t]*([A-Z][a-z]+)\b"),
)
_REMOTE_LOCATION_RE = re.compile(r"\b(?:remote|work from home|wfh)\b", re.IGNORECASE)
_REMOTE_RE = re.compile(r"\b(?:remote|work from home|wfh|distributed|anywhere|virtual)\b", re.IGNORECASE)

# Salary
_AMOUNT = r"(\d{1,3}(?:,\d{3})*(?:\.\d{2})?)"
_SALARY_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(rf"\${_AMOUNT}\s*-\s*\${_AMOUNT}\s*(per\s+year|annually|/year|yearly)", re.IGNORECASE),
    re.compile(rf"\${_AMOUNT}\s*-\s*\${_AMOUNT}\s*(per\s+hour|hourly|/hour|/hr)", re.IGNORECASE),
    re.compile(
        rf"salary:\s*\${_AMOUNT}\s*-\s*\${_AMOUNT}"
        r"(?:\s*(per\s+(?:year|month|hour)|yearly|monthly|hourly|/month|/hr))?",
        re.IGNORECASE,
    ),
)
_SALARY_FLOOR_RE = re.compile(r"\$(\d{1,3}(?:,\d{3})*)([kK])?\+")
_SALARY_SHORTHAND_RE = re.compile(
    r"\$?(\d{1,3})([kK])?\s*-\s*\$?(\d{1,3})([kK])\b(?:\s*(per\s+year|annually|yearly))?",
    re.IGNORECASE,
)
_EQUITY_RE = re.compile(r"equity|stock options|\brsu|restricted stock", re.IGNORECASE)

# Employment type and experience level, checked in order
_EMPLOYMENT_TYPE_PATTERNS: Sequence[Tuple[EmploymentType, Pattern[str]]] = (
    (EmploymentType.FULL_TIME, re.compile(r"\b(?:full.time|full time|fulltime)\b", re.IGNORECASE)),
    (EmploymentType.PART_TIME, re.compile(r"\b(?:part.time|part time|parttime)\b", re.IGNORECASE)),
    (EmploymentType.CONTRACT, re.compile(r"\b(?:contract|contractor|freelance|consulting)\b", re.IGNORECASE)),
    (EmploymentType.INTERNSHIP, re.compile(r"\b(?:intern|internship)\b", re.IGNORECASE)),
    (EmploymentType.TEMPORARY, re.compile(r"\b(?:temporary|temp|seasonal)\b", re.IGNORECASE)),
)
_EXPERIENCE_LEVEL_PATTERNS: Sequence[Tuple[ExperienceLevel, Pattern[str]]] = (
    (ExperienceLevel.ENTRY, re.compile(
        r"\b(?:junior|jr|entry.level|entry level|new grad|graduate|0-2 years)\b", re.IGNORECASE)),
    (ExperienceLevel.SENIOR, re.compile(r"\b(?:senior|sr|senior level|5\+ years)\b", re.IGNORECASE)),
    (ExperienceLevel.LEAD, re.compile(
        r"\b(?:lead|principal|staff|architect|7\+ years|10\+ years)\b", re.IGNORECASE)),
    (ExperienceLevel.EXECUTIVE, re.compile(
        r"\b(?:director|vp|vice president|chief|head of|executive)\b", re.IGNORECASE)),
)

# Sections
_REQUIREMENT_SECTIONS: Sequence[Pattern[str]] = (
    re.compile(
        r"requirements?:[ \t]*\n?(.*?)(?:\n[ \t]*\n|responsibilities?:|qualifications?:|$)",
        re.IGNORECASE | re.DOTALL,
    ),
    re.compile(
        r"qualifications?:[ \t]*\n?(.*?)(?:\n[ \t]*\n|requirements?:|responsibilities?:|$)",
        re.IGNORECASE | re.DOTALL,
    ),
    re.compile(
        r"must have:[ \t]*\n?(.*?)(?:\n[ \t]*\n|nice to have:|requirements?:|$)",
        re.IGNORECASE | re.DOTALL,
    ),
)
_BENEFIT_SECTIONS: Sequence[Pattern[str]] = tuple(
    re.compile(
        rf"{label}:[ \t]*\n?(.*?)(?:\n[ \t]*\n|requirements?:|responsibilities?:|$)",
        re.IGNORECASE | re.DOTALL,
    )
    for label in (r"benefits?", r"we offer", r"perks?")
)
_BULLET_ITEM_RE = re.compile(r"^[ \t]*[•\-*+][ \t]*(.+)$", re.MULTILINE)
_NUMBERED_ITEM_RE = re.compile(r"^[ \t]*\d+\.[ \t]*(.+)$", re.MULTILINE)
_SECTION_HEADER_RE = re.compile(r"^(?:posted|apply|requirements?|benefits?|qualifications?)", re.IGNORECASE)

# Dates
_DATE = r"(\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{2}-\d{2})"
_POSTED_DATE_RE = re.compile(rf"\bposted:?\s*{_DATE}", re.IGNORECASE)
_DAYS_AGO_RE = re.compile(r"\b(\d{1,2})\s+days?\s+ago\b", re.IGNORECASE)
_HOURS_AGO_RE = re.compile(r"\b(\d{1,2})\s+hours?\s+ago\b", re.IGNORECASE)
_YESTERDAY_RE = re.compile(r"\byesterday\b", re.IGNORECASE)
_TODAY_RE = re.compile(r"\btoday\b", re.IGNORECASE)
_DEADLINE_RE = re.compile(rf"\b(?:deadline|apply by|applications? close):?\s*{_DATE}", re.IGNORECASE)

# Categorization, first match wins
JOB_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "software-engineering": ("engineer", "developer", "programming", "software"),
    "data-science": ("data scientist", "analyst", "ml", "machine learning"),
    "design": ("designer", "ui", "ux", "design"),
    "product": ("product manager", "pm", "product"),
    "devops": ("devops", "sre", "infrastructure", "ops"),
    "marketing": ("marketing", "growth", "acquisition"),
    "sales": ("sales", "account", "business development"),
    "management": ("manager", "director", "lead", "head"),
}

INDUSTRIES: Dict[str, Tuple[str, ...]] = {
    "technology": ("tech", "software", "startup", "saas", "ai", "ml"),
    "finance": ("bank", "financial", "fintech", "trading", "investment"),
    "healthcare": ("health", "medical", "pharma", "biotech", "hospital"),
    "ecommerce": ("ecommerce", "retail", "marketplace", "shopping"),
    "consulting": ("consulting", "advisory", "professional services"),
    "education": ("education", "edtech", "university", "school"),
    "gaming": ("gaming", "game", "entertainment", "mobile games"),
    "media": ("media", "advertising", "publishing", "content"),
}

# Company size and funding
_EMPLOYEE_COUNT_RE = re.compile(r"(\d+)\+?\s*employees", re.IGNORECASE)
_SIZE_WORD_RE = re.compile(r"\b(startup|small|medium|large|enterprise)\b", re.IGNORECASE)
_SERIES_RE = re.compile(r"\b(series\s+[a-z])\b", re.IGNORECASE)
_FUNDING_STAGE_RE = re.compile(r"\b(seed|pre-seed|ipo|public)\b", re.IGNORECASE)
_RAISED_RE = re.compile(r"\braised\s+\$(\d+[mb])\b", re.IGNORECASE)


def _keyword_pattern(keywords: Sequence[str]) -> Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + ")", re.IGNORECASE)


_CATEGORY_PATTERNS = {name: _keyword_pattern(words) for name, words in JOB_CATEGORIES.items()}
_INDUSTRY_PATTERNS = {name: _keyword_pattern(words) for name, words in INDUSTRIES.items()}
_ENGLISH_MARKER_RE = re.compile(r"\b(?:" + "|".join(ENGLISH_MARKERS) + r")\b", re.IGNORECASE)


def _strip_edges(value: str) -> str:
    return _SPACES_RE.sub(" ", _EDGE_NON_WORD_RE.sub("", value)).strip()


def _is_common_word(value: str) -> bool:
    words = value.lower().split()
    return not words or value.lower() in COMMON_WORDS or words[0] in COMMON_WORDS


def extract_title(text: str) -> Optional[str]:
    """Extract the job title.

    Labelled titles win, then a ``Title - Company`` first line, then
    hiring/seeking phrasing, and finally well-known title shapes.
    """
    for pattern in _TITLE_PATTERNS:
        match = pattern.search(text)
        if match:
            title = _strip_edges(match.group(1))
            if title:
                return title

    for pattern in _COMMON_TITLE_PATTERNS:
        match = pattern.search(text)
        if match:
            return _strip_edges(match.group(0))

    return None


def extract_company(text: str) -> Optional[str]:
    """Extract the hiring company name."""
    candidates = []

    match = _COMPANY_LABEL_RE.search(text)
    if match:
        candidates.append(match.group(1))

    first_line = text.split("\n", 1)[0]
    match = _FIRST_LINE_COMPANY_RE.match(first_line)
    if match:
        candidates.append(match.group(1))

    for pattern in _COMPANY_PATTERNS:
        match = pattern.search(text)
        if match:
            candidates.append(match.group(1))

    for candidate in candidates:
        company = _strip_edges(candidate)
        if company and not _is_common_word(company):
            return company

    return None


def extract_location(text: str) -> Optional[str]:
    """Extract the job location, falling back to "Remote".

    Unlabelled ``City, Region`` matches keep the region so the scorer can
    compare trailing region tokens.
    """
    labelled, *unlabelled = _LOCATION_PATTERNS

    match = labelled.search(text)
    if match:
        location = _strip_edges(match.group(1))
        if location:
            return location

    for pattern in unlabelled:
        match = pattern.search(text)
        if match:
            return _strip_edges(match.group(0))

    if _REMOTE_LOCATION_RE.search(text):
        return "Remote"

    return None


def _parse_amount(value: str) -> float:
    return float(value.replace(",", "").replace("$", ""))


def _salary_period(words: Optional[str]) -> SalaryPeriod:
    words = (words or "").lower()
    if "hour" in words or "/hr" in words:
        return SalaryPeriod.HOURLY
    if "month" in words:
        return SalaryPeriod.MONTHLY
    return SalaryPeriod.YEARLY


def extract_salary(text: str) -> Salary:
    """Extract the advertised salary band.

    Amounts with a ``k`` suffix are multiplied by 1000. In ``Nk-Mk``
    shorthand a suffix on the upper bound alone applies to both bounds.
    The equity flag is set from anywhere in the text.
    """
    equity = bool(_EQUITY_RE.search(text))

    for pattern in _SALARY_PATTERNS:
        match = pattern.search(text)
        if match:
            return Salary(
                min=_parse_amount(match.group(1)),
                max=_parse_amount(match.group(2)),
                period=_salary_period(match.group(3)),
                equity=equity,
            )

    match = _SALARY_FLOOR_RE.search(text)
    if match:
        multiplier = 1000 if match.group(2) else 1
        return Salary(min=_parse_amount(match.group(1)) * multiplier, equity=equity)

    match = _SALARY_SHORTHAND_RE.search(text)
    if match:
        # Upper bound always carries the suffix here
        return Salary(
            min=_parse_amount(match.group(1)) * 1000,
            max=_parse_amount(match.group(3)) * 1000,
            period=_salary_period(match.group(5)),
            equity=equity,
        )

    return Salary(equity=equity)


def extract_employment_type(text: str) -> EmploymentType:
    """Detect employment type, defaulting to full-time."""
    for employment_type, pattern in _EMPLOYMENT_TYPE_PATTERNS:
        if pattern.search(text):
            return employment_type
    return EmploymentType.FULL_TIME


def extract_experience_level(text: str) -> ExperienceLevel:
    """Detect seniority, defaulting to mid."""
    for level, pattern in _EXPERIENCE_LEVEL_PATTERNS:
        if pattern.search(text):
            return level
    return ExperienceLevel.MID


def detect_remote(text: str) -> bool:
    return bool(_REMOTE_RE.search(text))


def _word(name: str) -> str:
    return rf"(?<!\w){re.escape(name)}(?!\w)"


_REQUIRED_KEYWORD_RE = re.compile(r"\b(?:required|must have|essential|mandatory)\b", re.IGNORECASE)
_REQUIREMENTS_LABEL_RE = re.compile(r"requirements?", re.IGNORECASE)
_YEARS_RE = re.compile(r"(\d+)\+?\s*years?", re.IGNORECASE)


class SkillContext:
    """Requirement cues of a posting, located once and shared by every skill.

    A skill's context never crosses a period: two offsets belong to the same
    clause when no period lies between them. Requirement keywords and
    "Requirements:" labels are not bounded by line breaks, so a keyword on
    one bullet can mark a skill on the next bullet as required when no period
    separates them.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.periods = [index for index, char in enumerate(text) if char == "."]

        # Earliest keyword end and latest keyword start, per clause
        self.keyword_ends: Dict[int, int] = {}
        self.keyword_starts: Dict[int, int] = {}
        for match in _REQUIRED_KEYWORD_RE.finditer(text):
            self.keyword_ends.setdefault(self.clause(match.end()), match.end())
            self.keyword_starts[self.clause(match.start())] = match.start()

        # Earliest start of a "requirements ... :" section, per clause
        self.section_starts: Dict[int, int] = {}
        position = 0
        for part in text.split(":")[:-1]:
            colon = position + len(part)
            if _REQUIREMENTS_LABEL_RE.search(part):
                self.section_starts.setdefault(self.clause(colon + 1), colon + 1)
            position = colon + 1

        self.years = list(_YEARS_RE.finditer(text))
        self.year_starts = [match.start() for match in self.years]

    def clause(self, offset: int) -> int:
        """Index of the clause an offset falls in."""
        return bisect.bisect_left(self.periods, offset)

    def _mentions(self, name: str) -> List[Match[str]]:
        return list(re.finditer(_word(name), self.text, re.IGNORECASE))

    def is_required(self, name: str) -> bool:
        """Check whether a skill is mentioned in a required context."""
        for mention in self._mentions(name):
            start_clause = self.clause(mention.start())
            end_clause = self.clause(mention.end())
            if self.keyword_ends.get(start_clause, len(self.text) + 1) <= mention.start():
                return True
            if self.keyword_starts.get(end_clause, -1) >= mention.end():
                return True
            if self.section_starts.get(start_clause, len(self.text) + 1) <= mention.start():
                return True
        return False

    def years_required(self, name: str) -> Optional[int]:
        """Years of experience asked for with a skill.

        Uses the first "N years ... skill" or "skill ... N years" pairing in
        the posting. In the second form the nearest following figure wins.
        """
        mentions = self._mentions(name)
        if not mentions or not self.years:
            return None

        # Latest mention start, per clause
        last_mentions = {self.clause(mention.start()): mention.start() for mention in mentions}

        # "N years ... skill"
        leading = next((
            years for years in self.years
            if last_mentions.get(self.clause(years.end()), -1) >= years.end()
        ), None)

        # "skill ... N years"
        trailing = None
        for mention in mentions:
            if leading is not None and mention.start() >= leading.start():
                break
            index = bisect.bisect_left(self.year_starts, mention.end())
            if index < len(self.years) and self.clause(self.year_starts[index]) == self.clause(mention.end()):
                trailing = self.years[index]
                break

        match = trailing or leading
        return int(match.group(1)) if match else None


def extract_skills(text: str, single_mention_factor: float = 0.8) -> List[ExtractedSkill]:
    """Find taxonomy skills mentioned in the text.

    Each canonical skill is reported once. Confidence is the taxonomy
    weight, reduced by ``single_mention_factor`` when the skill is
    mentioned only once. Results are ordered by confidence, highest first.

    Args:
        text: Normalized posting text
        single_mention_factor: Confidence multiplier for single mentions

    Returns:
        Extracted skills
    """
    context = SkillContext(text)
    skills = []
    for name, definition in SKILL_TAXONOMY.items():
        matched_names = []
        mentions = 0
        for alias in skill_names(name):
            count = len(re.findall(_word(alias), text, re.IGNORECASE))
            if count:
                matched_names.append(alias)
                mentions += count

        if not matched_names:
            continue

        years_required = None
        for alias in matched_names:
            years_required = context.years_required(alias)
            if years_required is not None:
                break

        skills.append(ExtractedSkill(
            name=name,
            category=definition.category,
            required=any(context.is_required(alias) for alias in matched_names),
            years_required=years_required,
            confidence=definition.weight * (1.0 if mentions > 1 else single_mention_factor),
        ))

    return sorted(skills, key=lambda skill: skill.confidence, reverse=True)


def extract_list_items(section: str) -> List[str]:
    """Split a section body into items.

    Bullet lines are preferred, then numbered lines, then any reasonably
    long line that is not a section header.
    """
    items = _BULLET_ITEM_RE.findall(section) or _NUMBERED_ITEM_RE.findall(section)
    if not items:
        items = [
            line for line in (raw.strip() for raw in section.split("\n"))
            if 10 < len(line) < 200 and not _SECTION_HEADER_RE.match(line)
        ]

    return [item.strip() for item in items if 3 < len(item.strip()) < 200]


def _extract_sections(text: str, patterns: Sequence[Pattern[str]], limit: int) -> List[str]:
    items: List[str] = []
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            for item in extract_list_items(match.group(1)):
                if item not in items:
                    items.append(item)
    return items[:limit]


def extract_requirements(text: str, limit: int = 15) -> List[str]:
    return _extract_sections(text, _REQUIREMENT_SECTIONS, limit)


def extract_benefits(text: str, limit: int = 10) -> List[str]:
    return _extract_sections(text, _BENEFIT_SECTIONS, limit)


def _parse_date(value: str) -> datetime:
    fmt = "%Y-%m-%d" if "-" in value else "%m/%d/%Y"
    return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)


def extract_posted_date(text: str, now: datetime) -> Optional[datetime]:
    """Extract the posting date, resolving relative dates against ``now``."""
    match = _POSTED_DATE_RE.search(text)
    if match:
        try:
            return _parse_date(match.group(1))
        except ValueError:
            pass

    match = _DAYS_AGO_RE.search(text)
    if match:
        return now - timedelta(days=int(match.group(1)))

    match = _HOURS_AGO_RE.search(text)
    if match:
        return now - timedelta(hours=int(match.group(1)))

    if _YESTERDAY_RE.search(text):
        return now - timedelta(days=1)

    if _TODAY_RE.search(text):
        return now

    return None


def extract_application_deadline(text: str) -> Optional[datetime]:
    for match in _DEADLINE_RE.finditer(text):
        try:
            return _parse_date(match.group(1))
        except ValueError:
            continue
    return None


def categorize_job(title: str) -> str:
    """Assign a single job category from title keywords."""
    for category, pattern in _CATEGORY_PATTERNS.items():
        if pattern.search(title):
            return category
    return "other"


def detect_industries(text: str, company: str = "") -> List[str]:
    combined = f"{text} {company}"
    industries = [name for name, pattern in _INDUSTRY_PATTERNS.items() if pattern.search(combined)]
    return industries or ["other"]


def extract_company_size(text: str) -> Optional[str]:
    """Bucket the company size from headcount, size words or funding round."""
    match = _EMPLOYEE_COUNT_RE.search(text)
    if match:
        employees = int(match.group(1))
        if employees < 50:
            return "small"
        if employees < 200:
            return "medium"
        if employees < 1000:
            return "large"
        return "enterprise"

    match = _SIZE_WORD_RE.search(text)
    if match:
        return match.group(1).lower()

    if _SERIES_RE.search(text):
        return "startup"

    return None


def extract_funding(text: str) -> Optional[str]:
    match = _SERIES_RE.search(text)
    if match:
        return _SPACES_RE.sub(" ", match.group(1).lower())

    match = _FUNDING_STAGE_RE.search(text)
    if match:
        return match.group(1).lower()

    match = _RAISED_RE.search(text)
    if match:
        return f"raised ${match.group(1).lower()}"

    return None


def detect_language(text: str) -> str:
    return "en" if len(_ENGLISH_MARKER_RE.findall(text)) > 10 else "unknown"
