"""Query strategy layer: turn one (prompt, job description) pair into a bounded set of search queries."""

from abc import ABC, abstractmethod
from typing import List, Optional

from lead_signal_ai.config import JOB_DESCRIPTION_SLICE, MAX_QUERY_VARIATIONS
from lead_signal_ai.utils.helpers import truncate
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)

ROLE_SYNONYMS: tuple = (
    "hiring managers",
    "recruiters",
    "talent acquisition leads",
    "decision makers",
)

# {role}, {prompt}, {scope}, {industry}
ACTION_TEMPLATES: tuple = (
    "Find {role} hiring for: {prompt}{scope}",
    "List {role} at{industry} companies recruiting for: {prompt}{scope}",
    "Key {role} responsible for hiring {prompt}{scope}",
    "{prompt} {role}{scope}",
)

# {jd}, {scope}
JD_TEMPLATES: tuple = (
    "Find hiring managers relevant to: {jd}{scope}",
    "Directors or managers in charge of hiring for: {jd}{scope}",
)

# Used when the caller gives no location
GEO_SCOPES: tuple = ("remote", "United States", "Europe")

# Title keywords for LinkedIn profile search
PROFILE_ROLE_TERMS: tuple = (
    ("hiring manager", "head of", "director"),
    ("recruiter", "talent acquisition", "technical recruiter"),
    ("engineering manager", "VP", "founder"),
)

COMPANY_TEMPLATES: tuple = (
    '"{prompt}" hiring{industry}{scope}',
    'companies hiring "{prompt}"{industry}{scope}',
    '"{prompt}" careers{industry}{scope}',
    '"{prompt}" job opening{industry}{scope}',
)


def _dedupe_queries(queries: List[str], cap: int) -> List[str]:
    """Exact-string dedupe preserving order, drop empties, cap the count."""
    seen: set[str] = set()
    result: List[str] = []
    for q in queries:
        q = " ".join((q or "").split())
        if not q or q in seen:
            continue
        seen.add(q)
        result.append(q)
        if len(result) >= cap:
            break
    return result


def _build_or_query_part(terms: List[str]) -> str:
    """Build (\"A\" OR \"B\" OR \"C\") for search query."""
    if not terms:
        return ""
    escaped = [f'"{t}"' for t in terms if t and str(t).strip()]
    return "(" + " OR ".join(escaped) + ")" if escaped else ""


class BaseQueryStrategy(ABC):
    """Abstract base for search query construction. Keeps query logic isolated from lead sources."""

    def __init__(
        self,
        prompt: str,
        job_description: str = "",
        location: Optional[str] = None,
        industry: Optional[str] = None,
        max_queries: int = MAX_QUERY_VARIATIONS,
        company_size: Optional[str] = None,
    ) -> None:
        self._prompt = " ".join((prompt or "").split()) or "hiring"
        self._jd = truncate(job_description or "", JOB_DESCRIPTION_SLICE)
        self._location = (location or "").strip()
        self._industry = (industry or "").strip()
        self._company_size = (company_size or "").strip()
        self._max = max(1, max_queries)

    @abstractmethod
    def build_queries(self) -> List[str]:
        """Return an ordered, de-duplicated, non-empty list of query strings."""
        pass


class LeadQueryStrategy(BaseQueryStrategy):
    """Natural-language variations for an LLM search provider."""

    def build_queries(self) -> List[str]:
        size = f" at {self._company_size} employee companies" if self._company_size else ""
        scope = size + (f" in {self._location}" if self._location else "")
        industry = f" {self._industry}" if self._industry else ""
        fmt = dict(prompt=self._prompt, scope=scope, industry=industry)

        candidates: List[str] = []
        if self._jd:
            candidates.extend(t.format(jd=self._jd, scope=scope) for t in JD_TEMPLATES)
        # One pass with a rotating role so the first queries differ in both phrasing and role
        for i, template in enumerate(ACTION_TEMPLATES):
            candidates.append(template.format(role=ROLE_SYNONYMS[i % len(ROLE_SYNONYMS)], **fmt))
        if not self._location:
            for geo in GEO_SCOPES:
                candidates.append(f"{self._prompt} hiring managers{size} in {geo}")
        for i, template in enumerate(ACTION_TEMPLATES):
            for j in range(1, len(ROLE_SYNONYMS)):
                role = ROLE_SYNONYMS[(i + j) % len(ROLE_SYNONYMS)]
                candidates.append(template.format(role=role, **fmt))

        result = _dedupe_queries(candidates, self._max) or [self._prompt]
        logger.info("LeadQueryStrategy: prompt=%s location=%s -> %s queries", self._prompt[:50], self._location, len(result))
        return result


class ProfileSearchQueryStrategy(BaseQueryStrategy):
    """Web-search queries aimed at LinkedIn profiles of people who hire for the role."""

    def build_queries(self) -> List[str]:
        loc = f' "{self._location}"' if self._location else ""
        industry = f' "{self._industry}"' if self._industry else ""
        candidates: List[str] = []
        for terms in PROFILE_ROLE_TERMS:
            or_part = _build_or_query_part(list(terms))
            candidates.append(f'site:linkedin.com/in {or_part} "{self._prompt}"{loc}{industry}')
        for terms in PROFILE_ROLE_TERMS:
            or_part = _build_or_query_part(list(terms))
            candidates.append(f"site:linkedin.com/in {or_part} hiring {self._prompt}{loc}")
        result = _dedupe_queries(candidates, self._max) or [self._prompt]
        logger.info("ProfileSearchQueryStrategy: prompt=%s -> %s queries", self._prompt[:50], len(result))
        return result


class CompanyDiscoveryQueryStrategy(BaseQueryStrategy):
    """Web-search queries that surface companies currently hiring for the role."""

    def build_queries(self) -> List[str]:
        size = f' "{self._company_size} employees"' if self._company_size else ""
        scope = size + (f" {self._location}" if self._location else "")
        industry = f" {self._industry}" if self._industry else ""
        candidates = [t.format(prompt=self._prompt, scope=scope, industry=industry) for t in COMPANY_TEMPLATES]
        result = _dedupe_queries(candidates, self._max) or [self._prompt]
        logger.info("CompanyDiscoveryQueryStrategy: prompt=%s -> %s queries", self._prompt[:50], len(result))
        return result


def build_query_variations(
    prompt: str,
    job_description: str,
    location: Optional[str] = None,
    industry: Optional[str] = None,
    max_queries: int = MAX_QUERY_VARIATIONS,
    company_size: Optional[str] = None,
) -> List[str]:
    """Deterministic LLM query variations for one request."""
    return LeadQueryStrategy(prompt, job_description, location, industry, max_queries, company_size).build_queries()
