"""Tests for the lead-source strategies run end to end through the orchestrator."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from lead_signal_ai.agents.lead_sources import (
    DiscoverEnrichSource,
    LLMSearchSource,
    WebSearchSource,
    build_lead_source,
    company_from_result,
    lead_from_profile_result,
)
from lead_signal_ai.agents.orchestrator import LeadOrchestrator
from lead_signal_ai.config import PipelineConfig
from lead_signal_ai.errors import ConfigurationError, EmptyResultError, ProviderError, ValidationError
from lead_signal_ai.schemas.events import CompleteEvent, DomainEvent, ErrorEvent, LeadEvent
from lead_signal_ai.schemas.request import LeadRequest


def _leads_json(*leads):
    return "Here you go:\n```json\n" + json.dumps(list(leads)) + "\n```"


class FakePerplexity:
    """Answers each call through a handler(query_prompt, model)."""

    def __init__(self, handler):
        self._handler = handler
        self.calls = []
        self.closed = False

    async def complete(self, messages, model):
        content = messages[0]["content"]
        self.calls.append((content, model))
        return self._handler(content, model)

    async def aclose(self):
        self.closed = True


class FakeSerp:
    def __init__(self, handler):
        self._handler = handler
        self.queries = []

    async def search(self, query, num=10):
        self.queries.append(query)
        return self._handler(query)


class FakeHunter:
    def __init__(self, contacts_by_domain, failing=()):
        self._contacts = contacts_by_domain
        self._failing = set(failing)
        self.domains = []

    async def domain_search(self, domain, limit=10):
        self.domains.append(domain)
        if domain in self._failing:
            raise ProviderError("hunter", "rate limited", 429)
        return self._contacts.get(domain, [])


class TestLLMSearchSource:
    @pytest.mark.asyncio
    async def test_same_lead_from_two_queries_keeps_best_score(self, lead_request, pipeline_config):
        config = pipeline_config.model_copy(update={"max_queries": 2})
        scores = iter([70, 90])

        def handler(content, model):
            return _leads_json({"name": "Jane Doe", "company": "Acme", "relevance_score": next(scores)})

        client = FakePerplexity(handler)
        source = LLMSearchSource(lead_request, config, client=client)
        leads = await LeadOrchestrator(source, config).run()

        assert len(client.calls) == 2
        assert len(leads) == 1
        assert (leads[0].name, leads[0].company, leads[0].relevance_score) == ("Jane Doe", "Acme", 90)
        assert leads[0].source == "perplexity"

    @pytest.mark.asyncio
    async def test_model_fallback_order(self, lead_request, pipeline_config):
        config = pipeline_config.model_copy(update={"max_queries": 1})

        def handler(content, model):
            if model == "sonar":
                raise ProviderError("perplexity", "model unavailable", 400)
            return _leads_json({"name": "Ana Li", "company": "Globex", "score": 55})

        client = FakePerplexity(handler)
        leads = await LeadOrchestrator(LLMSearchSource(lead_request, config, client=client), config).run()

        assert [model for _, model in client.calls] == ["sonar", "sonar-pro"]
        assert [(l.name, l.relevance_score) for l in leads] == [("Ana Li", 55)]

    @pytest.mark.asyncio
    async def test_failed_queries_are_skipped(self, lead_request, pipeline_config):
        config = pipeline_config.model_copy(update={"max_queries": 4, "perplexity_models": ["sonar"]})
        calls = []

        def handler(content, model):
            calls.append(content)
            if len(calls) == 1:
                raise ProviderError("perplexity", "timeout")
            if len(calls) == 2:
                return "I could not find anyone, sorry."
            return _leads_json({"name": f"Lead {len(calls)}", "company": "Acme", "rating": 60})

        source = LLMSearchSource(lead_request, config, client=FakePerplexity(handler))
        leads = await LeadOrchestrator(source, config).run()
        assert len(calls) == 4
        assert sorted(l.name for l in leads) == ["Lead 3", "Lead 4"]
        assert all(l.relevance_score == 60 for l in leads)

    @pytest.mark.asyncio
    async def test_every_query_failing_returns_empty(self, lead_request, pipeline_config):
        def handler(content, model):
            raise ProviderError("perplexity", "down", 503)

        source = LLMSearchSource(lead_request, pipeline_config, client=FakePerplexity(handler))
        assert await LeadOrchestrator(source, pipeline_config).run() == []

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self, lead_request, pipeline_config):
        source = LLMSearchSource(lead_request, pipeline_config)
        source._client.aclose = AsyncMock()
        await source.aclose()
        source._client.aclose.assert_awaited_once()


class TestProfileResults:
    def test_parses_linkedin_title(self):
        lead = lead_from_profile_result(
            {
                "title": "Jane Doe - Head of Talent - Acme | LinkedIn",
                "link": "https://www.linkedin.com/in/janedoe",
                "snippet": "Location: Berlin · 500+ connections",
            },
            position=0,
        )
        assert (lead.name, lead.title, lead.company) == ("Jane Doe", "Head of Talent", "Acme")
        assert lead.location == "Berlin"
        assert lead.contact_url_or_email == "https://www.linkedin.com/in/janedoe"
        assert lead.relevance_score == 100
        assert lead.source == "serpapi"

    def test_company_from_at_clause(self):
        lead = lead_from_profile_result(
            {"title": "John Roe - Engineering Manager at Globex - LinkedIn", "link": "https://linkedin.com/in/jroe"},
            position=5,
        )
        assert (lead.title, lead.company) == ("Engineering Manager", "Globex")
        assert lead.relevance_score == 80

    def test_company_from_snippet(self):
        lead = lead_from_profile_result(
            {"title": "Ana Li - Software Engineer | LinkedIn", "link": "https://linkedin.com/in/ana", "snippet": "Experience: Initech · Education"},
            position=2,
        )
        assert lead.company == "Initech"
        assert lead.relevance_score == 82

    def test_skips_non_profiles_and_unknown_company(self):
        assert lead_from_profile_result({"title": "Acme jobs", "link": "https://acme.com/jobs"}, 0) is None
        assert lead_from_profile_result({"title": "Ana Li | LinkedIn", "link": "https://linkedin.com/in/ana"}, 0) is None


class TestWebSearchSource:
    @pytest.mark.asyncio
    async def test_collects_profiles_across_queries(self, lead_request, pipeline_config):
        def handler(query):
            return [
                {"title": "Jane Doe - Recruiter - Acme | LinkedIn", "link": "https://linkedin.com/in/jane", "snippet": ""},
                {"title": "Blog post", "link": "https://medium.com/x", "snippet": ""},
            ]

        serp = FakeSerp(handler)
        leads = await LeadOrchestrator(WebSearchSource(lead_request, pipeline_config, serp=serp), pipeline_config).run()
        assert len(serp.queries) == 6
        assert [(l.name, l.company) for l in leads] == [("Jane Doe", "Acme")]


class TestCompanyFromResult:
    def test_domain_becomes_company(self):
        company = company_from_result({"link": "https://careers.blue-origin.com/jobs/1"}, "Seattle", "Aerospace")
        assert company.company_name == "Blue Origin"
        assert company.linkedin_or_domain == "blue-origin.com"
        assert company.headquarters_location == "Seattle"
        assert company.industry == "Aerospace"

    def test_job_boards_are_excluded(self):
        for link in ("https://www.indeed.com/viewjob?jk=1", "https://boards.greenhouse.io/acme", "https://linkedin.com/jobs/1"):
            assert company_from_result({"link": link}) is None


def _discover_serp(query):
    return [
        {"title": "Careers", "link": "https://careers.acme.com/open-roles"},
        {"title": "Jobs", "link": "https://www.indeed.com/q-python-jobs.html"},
        {"title": "Beta is hiring", "link": "https://beta.io/jobs"},
        {"title": "Gamma", "link": "https://gamma.dev/careers"},
    ]


HUNTER_CONTACTS = {
    "acme.com": [
        {"first_name": "Jane", "last_name": "Doe", "email": "jane@acme.com", "position": "CTO", "confidence": 91, "organization": "Acme"},
        {"first_name": "", "last_name": "", "email": "info@acme.com", "position": "", "confidence": 99, "organization": "Acme"},
    ],
    "gamma.dev": [
        {"first_name": "Gil", "last_name": "Ma", "email": "gil@gamma.dev", "position": "Recruiter", "confidence": 140, "organization": ""},
    ],
}


class TestDiscoverEnrichSource:
    @pytest.mark.asyncio
    async def test_two_phase_stream(self, lead_request, pipeline_config):
        hunter = FakeHunter(HUNTER_CONTACTS, failing={"beta.io"})
        source = DiscoverEnrichSource(lead_request, pipeline_config, serp=FakeSerp(_discover_serp), hunter=hunter)
        events = [e async for e in LeadOrchestrator(source, pipeline_config).stream()]

        domains = [e.domain for e in events if isinstance(e, DomainEvent)]
        assert domains == ["acme.com", "beta.io", "gamma.dev"]
        assert hunter.domains == ["acme.com", "beta.io", "gamma.dev"]
        final = events[-1]
        assert isinstance(final, CompleteEvent)
        assert [(l.name, l.company, l.contact_url_or_email, l.relevance_score) for l in final.leads] == [
            ("Gil Ma", "Gamma", "gil@gamma.dev", 100),
            ("Jane Doe", "Acme", "jane@acme.com", 91),
        ]
        assert all(l.source == "hunter" for l in final.leads)

    @pytest.mark.asyncio
    async def test_zero_companies_is_fatal(self, lead_request, pipeline_config):
        source = DiscoverEnrichSource(lead_request, pipeline_config, serp=FakeSerp(lambda q: []), hunter=FakeHunter({}))
        events = [e async for e in LeadOrchestrator(source, pipeline_config).stream()]
        assert isinstance(events[-1], ErrorEvent)
        assert events[-1].message == "No companies found for this search"
        assert not any(isinstance(e, (LeadEvent, DomainEvent, CompleteEvent)) for e in events)

        source = DiscoverEnrichSource(lead_request, pipeline_config, serp=FakeSerp(lambda q: []), hunter=FakeHunter({}))
        with pytest.raises(EmptyResultError):
            await LeadOrchestrator(source, pipeline_config).run()

    @pytest.mark.asyncio
    async def test_company_cap_and_throttle(self, lead_request, pipeline_config):
        config = pipeline_config.model_copy(update={"max_companies": 5, "throttle_every": 2, "throttle_seconds": 1.0})

        def serp_handler(query):
            return [{"title": "x", "link": f"https://company{i}.com/careers"} for i in range(8)]

        hunter = FakeHunter({})
        source = DiscoverEnrichSource(lead_request, config, serp=FakeSerp(serp_handler), hunter=hunter)
        with patch("lead_signal_ai.agents.lead_sources.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await LeadOrchestrator(source, config).run() == []
        assert len(hunter.domains) == 5
        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.0)


class TestBuildLeadSource:
    def test_default_strategy_is_llm(self, lead_request, pipeline_config):
        assert isinstance(build_lead_source(lead_request, pipeline_config), LLMSearchSource)

    def test_named_strategies(self, pipeline_config):
        for name, cls in (("web", WebSearchSource), ("discover_enrich", DiscoverEnrichSource)):
            request = LeadRequest(prompt="PM", job_description="Own roadmap", strategy=name)
            assert isinstance(build_lead_source(request, pipeline_config), cls)

    def test_unknown_strategy(self, pipeline_config):
        request = LeadRequest(prompt="PM", job_description="Own roadmap", strategy="magic")
        with pytest.raises(ValidationError):
            build_lead_source(request, pipeline_config)

    def test_missing_credentials_listed(self):
        request = LeadRequest(prompt="PM", job_description="Own roadmap", strategy="discover_enrich")
        with pytest.raises(ConfigurationError) as exc_info:
            build_lead_source(request, PipelineConfig(serpapi_key="s"))
        assert "HUNTER_API_KEY" in str(exc_info.value)
        assert "SERPAPI_KEY" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_company_size_reaches_discovery_searches(self, pipeline_config):
        request = LeadRequest.from_payload({"prompt": "SRE", "jobDescription": "Run Kubernetes", "companySize": "51-200"})
        serp = FakeSerp(_discover_serp)
        source = DiscoverEnrichSource(request, pipeline_config, serp=serp, hunter=FakeHunter({}))
        await LeadOrchestrator(source, pipeline_config).run()
        assert serp.queries
        assert all('"51-200 employees"' in q for q in serp.queries)
