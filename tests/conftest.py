"""
Shared fixtures for the lead pipeline tests.

No test talks to a real provider: credentials are fake and every provider
client is replaced by a stub, an AsyncMock or an httpx.MockTransport.
"""

import os

import pytest

# Keep a developer's real .env keys out of the tests
for _var in ("PERPLEXITY_API_KEY", "SERPAPI_KEY", "HUNTER_API_KEY", "LEAD_STRATEGY"):
    os.environ.pop(_var, None)

from lead_signal_ai.agents.lead_sources import LeadSource  # noqa: E402
from lead_signal_ai.config import PipelineConfig  # noqa: E402
from lead_signal_ai.schemas.lead import Lead  # noqa: E402
from lead_signal_ai.schemas.request import LeadRequest  # noqa: E402


@pytest.fixture
def pipeline_config():
    """Config with every credential present and no throttle delay."""
    return PipelineConfig(
        perplexity_api_key="pplx-test-key",
        serpapi_key="serp-test-key",
        hunter_api_key="hunter-test-key",
        perplexity_models=["sonar", "sonar-pro"],
        concurrency=3,
        throttle_seconds=0.0,
    )


@pytest.fixture
def lead_request():
    return LeadRequest(
        prompt="Senior Python Engineer",
        job_description="Build data pipelines in Python and AWS for a fintech startup.",
    )


def make_lead(name: str, company: str, score: int = 50, **extra) -> Lead:
    return Lead(name=name, company=company, relevance_score=score, **extra)


class StaticLeadSource(LeadSource):
    """Yields a fixed list of leads, optionally failing afterwards."""

    name = "static"
    required_providers = ("perplexity",)

    def __init__(self, leads=None, error=None, domains=()):
        self._leads = list(leads or [])
        self._error = error
        self._domains = list(domains)
        self.closed = False

    async def candidates(self, channel):
        for domain in self._domains:
            channel.domain(domain)
        total = max(1, len(self._leads))
        for i, lead in enumerate(self._leads, 1):
            yield lead
            channel.progress(i * 90 // total)
        if self._error is not None:
            raise self._error

    async def aclose(self):
        self.closed = True
