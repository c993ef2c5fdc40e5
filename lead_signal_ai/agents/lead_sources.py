"""Lead-source strategies: each one turns a request into a lazy stream of candidate leads."""

import asyncio
import re
from abc import ABC, abstractmethod
from contextlib import aclosing
from functools import partial
from typing import Any, AsyncIterator, List, Optional

from lead_signal_ai.agents.orchestrator import EventChannel, bounded_gather, first_successful
from lead_signal_ai.agents.query_strategies import (
    CompanyDiscoveryQueryStrategy,
    ProfileSearchQueryStrategy,
    build_query_variations,
)
from lead_signal_ai.config import DEFAULT_STRATEGY, SERP_RESULTS_PER_QUERY, PipelineConfig
from lead_signal_ai.errors import EmptyResultError, ProviderError, ValidationError
from lead_signal_ai.ranking.lead_ranker import (
    KeyFunc,
    contact_key,
    deduplicate_companies,
    name_company_key,
    rank_companies,
)
from lead_signal_ai.schemas.lead import Company, Lead
from lead_signal_ai.schemas.request import LeadRequest
from lead_signal_ai.services.hunter_service import HunterClient
from lead_signal_ai.services.normalizer import coerce_lead, leads_from_text
from lead_signal_ai.services.perplexity_service import PerplexityClient, build_lead_messages
from lead_signal_ai.services.serp_service import SerpClient
from lead_signal_ai.utils.helpers import registrable_domain
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)

# Share of the progress bar spent on each phase
SINGLE_PHASE_SPAN = 90
DISCOVERY_SPAN = 30
ENRICH_SPAN = 65

# Hosts that list other companies' jobs; never treated as the hiring company
EXCLUDED_DOMAINS = frozenset(
    {
        "linkedin.com",
        "indeed.com",
        "glassdoor.com",
        "ziprecruiter.com",
        "monster.com",
        "simplyhired.com",
        "careerbuilder.com",
        "dice.com",
        "wellfound.com",
        "angel.co",
        "builtin.com",
        "greenhouse.io",
        "lever.co",
        "ashbyhq.com",
        "workable.com",
        "myworkdayjobs.com",
        "smartrecruiters.com",
        "google.com",
        "youtube.com",
        "facebook.com",
        "twitter.com",
        "x.com",
        "reddit.com",
        "wikipedia.org",
        "medium.com",
        "crunchbase.com",
        "bloomberg.com",
        "forbes.com",
    }
)

ROLE_KEYWORDS = ("recruit", "talent", "hiring", "manager", "head of", "director", "vp", "founder", "people")

_LINKEDIN_SUFFIX_RE = re.compile(r"\s*[|\-–]\s*LinkedIn\s*$", re.IGNORECASE)
_TITLE_SPLIT_RE = re.compile(r"\s+[-–—|]\s+")
_AT_COMPANY_RE = re.compile(r"\bat\s+(.+)$", re.IGNORECASE)
_EXPERIENCE_RE = re.compile(r"Experience:\s*([^·\n]+)")
_LOCATION_RE = re.compile(r"Location:\s*([^·\n]+)")


class LeadSource(ABC):
    """Strategy: given inputs, produce a finite, non-restartable sequence of candidate leads."""

    name: str = ""
    required_providers: tuple = ()
    key: KeyFunc = staticmethod(name_company_key)

    @abstractmethod
    def candidates(self, channel: EventChannel) -> AsyncIterator[Lead]:
        """Yield candidate leads as they are found; report progress on the channel."""

    async def aclose(self) -> None:
        """Release provider clients."""


class LLMSearchSource(LeadSource):
    """Single phase: query variations sent to the LLM search provider with bounded concurrency."""

    name = "llm"
    required_providers = ("perplexity",)

    def __init__(
        self,
        request: LeadRequest,
        config: PipelineConfig,
        client: Optional[PerplexityClient] = None,
    ) -> None:
        self._queries = build_query_variations(
            request.prompt,
            request.job_description,
            request.location,
            request.industry,
            config.max_queries,
            request.company_size,
        )
        self._job_description = request.job_description
        self._models = list(config.perplexity_models)
        self._workers = config.concurrency
        self._owns_client = client is None
        self._client = client or PerplexityClient(config.perplexity_api_key, timeout=config.http_timeout)

    async def _run_query(self, query: str) -> List[Lead]:
        messages = build_lead_messages(query, self._job_description)
        attempts = [(f"model {m}", partial(self._client.complete, messages, m)) for m in self._models]
        text = await first_successful(attempts)
        logger.debug("Raw response for query %r: %s", query[:80], text[:200])
        return leads_from_text(text, source="perplexity")

    async def candidates(self, channel: EventChannel) -> AsyncIterator[Lead]:
        total = len(self._queries)
        done = 0
        calls = [partial(self._run_query, q) for q in self._queries]
        async with aclosing(bounded_gather(calls, self._workers)) as results:
            async for index, leads, error in results:
                done += 1
                query = self._queries[index]
                if error is not None:
                    logger.warning("Query %r failed, skipping: %s", query[:80], error)
                else:
                    logger.info("Found %s leads for query %r", len(leads), query[:80])
                    for lead in leads:
                        yield lead
                channel.progress(done * SINGLE_PHASE_SPAN // total)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def lead_from_profile_result(item: dict[str, Any], position: int) -> Optional[Lead]:
    """
    Parse a LinkedIn profile search result ("Jane Doe - Head of Talent - Acme | LinkedIn").
    The score comes from search rank, with a bonus for hiring-related titles.
    """
    link = item.get("link") or ""
    if "linkedin.com/in/" not in link:
        return None
    title_text = _LINKEDIN_SUFFIX_RE.sub("", item.get("title") or "").strip()
    parts = [p.strip() for p in _TITLE_SPLIT_RE.split(title_text) if p.strip()]
    if not parts:
        return None
    snippet = item.get("snippet") or ""
    name = parts[0]
    title = parts[1] if len(parts) > 1 else ""
    company = parts[2] if len(parts) > 2 else ""
    if not company and title:
        match = _AT_COMPANY_RE.search(title)
        if match:
            company = match.group(1)
            title = title[: match.start()].strip()
    if not company:
        match = _EXPERIENCE_RE.search(snippet)
        if match:
            company = match.group(1)
    location = ""
    match = _LOCATION_RE.search(snippet)
    if match:
        location = match.group(1)

    score = 90 - 4 * position
    if any(k in title.lower() for k in ROLE_KEYWORDS):
        score += 10
    return coerce_lead(
        {
            "name": name,
            "title": title,
            "company": company,
            "location": location,
            "profile_url": link,
            "score": score,
        },
        source="serpapi",
    )


class WebSearchSource(LeadSource):
    """Single phase: LinkedIn profile searches through the web-search provider."""

    name = "web"
    required_providers = ("serpapi",)

    def __init__(
        self,
        request: LeadRequest,
        config: PipelineConfig,
        serp: Optional[SerpClient] = None,
    ) -> None:
        self._queries = ProfileSearchQueryStrategy(
            request.prompt,
            request.job_description,
            request.location,
            request.industry,
            config.max_queries,
        ).build_queries()
        self._workers = config.concurrency
        self._serp = serp or SerpClient(config.serpapi_key, timeout=config.http_timeout)

    async def candidates(self, channel: EventChannel) -> AsyncIterator[Lead]:
        total = len(self._queries)
        done = 0
        calls = [partial(self._serp.search, q, SERP_RESULTS_PER_QUERY) for q in self._queries]
        async with aclosing(bounded_gather(calls, self._workers)) as searches:
            async for index, results, error in searches:
                done += 1
                if error is not None:
                    logger.warning("Profile search %r failed, skipping: %s", self._queries[index][:80], error)
                else:
                    for position, item in enumerate(results):
                        lead = lead_from_profile_result(item, position)
                        if lead is not None:
                            yield lead
                channel.progress(done * SINGLE_PHASE_SPAN // total)


def company_from_result(item: dict[str, Any], location: str = "", industry: str = "") -> Optional[Company]:
    """A search result on a company's own site becomes a Company keyed by its domain name."""
    link = item.get("link") or ""
    domain = registrable_domain(link)
    if not domain or "." not in domain or domain in EXCLUDED_DOMAINS:
        return None
    label = domain.split(".")[0]
    name = " ".join(w.capitalize() for w in re.split(r"[-_]", label) if w)
    if not name:
        return None
    return Company(
        company_name=name,
        industry=industry,
        headquarters_location=location,
        careers_page_url=link,
        linkedin_or_domain=domain,
    )


class DiscoverEnrichSource(LeadSource):
    """
    Two phases: discover companies with web searches, then look up contacts for
    each company domain with the email-enrichment provider.
    """

    name = "discover_enrich"
    required_providers = ("serpapi", "hunter")
    key = staticmethod(contact_key)

    def __init__(
        self,
        request: LeadRequest,
        config: PipelineConfig,
        serp: Optional[SerpClient] = None,
        hunter: Optional[HunterClient] = None,
    ) -> None:
        self._queries = CompanyDiscoveryQueryStrategy(
            request.prompt,
            request.job_description,
            request.location,
            request.industry,
            config.max_queries,
            request.company_size,
        ).build_queries()
        self._location = request.location or ""
        self._industry = request.industry or ""
        self._workers = config.concurrency
        self._max_companies = config.max_companies
        self._throttle_every = config.throttle_every
        self._throttle_seconds = config.throttle_seconds
        self._serp = serp or SerpClient(config.serpapi_key, timeout=config.http_timeout)
        self._hunter = hunter or HunterClient(config.hunter_api_key, timeout=config.http_timeout)

    async def discover(self, channel: EventChannel) -> List[Company]:
        """Phase 1. Raises EmptyResultError when nothing usable was found."""
        total = len(self._queries)
        done = 0
        found: List[Company] = []
        calls = [partial(self._serp.search, q, SERP_RESULTS_PER_QUERY) for q in self._queries]
        async with aclosing(bounded_gather(calls, self._workers)) as searches:
            async for index, results, error in searches:
                done += 1
                if error is not None:
                    logger.warning("Company search %r failed, skipping: %s", self._queries[index][:80], error)
                else:
                    for item in results:
                        company = company_from_result(item, self._location, self._industry)
                        if company is not None:
                            found.append(company)
                channel.progress(done * DISCOVERY_SPAN // total)

        companies = rank_companies(deduplicate_companies(found), self._max_companies)
        if not companies:
            raise EmptyResultError("No companies found for this search")
        logger.info("Discovered %s companies (%s raw)", len(companies), len(found))
        for company in companies:
            channel.domain(company.domain or company.company_name)
        return companies

    @staticmethod
    def _contact_record(contact: dict[str, Any], company: Company) -> dict[str, Any]:
        name = " ".join(p for p in (contact.get("first_name"), contact.get("last_name")) if p)
        return {
            "name": name,
            "title": contact.get("position") or "",
            "company": contact.get("organization") or company.company_name,
            "location": company.headquarters_location,
            "email": contact.get("email") or "",
            "confidence": contact.get("confidence"),
        }

    async def enrich(self, companies: List[Company], channel: EventChannel) -> AsyncIterator[Lead]:
        """Phase 2: one call per company, serially, pausing after every few calls."""
        total = len(companies)
        for i, company in enumerate(companies, 1):
            contacts: List[dict] = []
            try:
                contacts = await self._hunter.domain_search(company.domain or company.company_name)
            except ProviderError as e:
                logger.warning("Enrichment failed for %s, skipping: %s", company.company_name, e)
            for contact in contacts:
                lead = coerce_lead(self._contact_record(contact, company), source="hunter")
                if lead is not None:
                    yield lead
            channel.progress(DISCOVERY_SPAN + i * ENRICH_SPAN // total)
            if self._throttle_every and i % self._throttle_every == 0 and i < total:
                await asyncio.sleep(self._throttle_seconds)

    async def candidates(self, channel: EventChannel) -> AsyncIterator[Lead]:
        companies = await self.discover(channel)
        async with aclosing(self.enrich(companies, channel)) as leads:
            async for lead in leads:
                yield lead


LEAD_SOURCES: dict = {
    LLMSearchSource.name: LLMSearchSource,
    WebSearchSource.name: WebSearchSource,
    DiscoverEnrichSource.name: DiscoverEnrichSource,
}


def build_lead_source(request: LeadRequest, config: PipelineConfig) -> LeadSource:
    """Pick the strategy named by the request (or the default); credentials are checked first."""
    name = request.strategy or DEFAULT_STRATEGY
    source_cls = LEAD_SOURCES.get(name)
    if source_cls is None:
        raise ValidationError(f"Unknown strategy '{name}'. Use one of: {', '.join(LEAD_SOURCES)}")
    config.require(*source_cls.required_providers)
    return source_cls(request, config)
