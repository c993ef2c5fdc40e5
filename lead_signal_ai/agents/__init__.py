"""Agent exports."""

from .lead_agent import build_orchestrator, run_lead_agent, stream_lead_agent
from .lead_sources import (
    LEAD_SOURCES,
    DiscoverEnrichSource,
    LeadSource,
    LLMSearchSource,
    WebSearchSource,
    build_lead_source,
)
from .orchestrator import EventChannel, LeadOrchestrator, bounded_gather, first_successful
from .query_strategies import build_query_variations

__all__ = [
    "run_lead_agent",
    "stream_lead_agent",
    "build_orchestrator",
    "build_lead_source",
    "build_query_variations",
    "LeadOrchestrator",
    "EventChannel",
    "bounded_gather",
    "first_successful",
    "LeadSource",
    "LLMSearchSource",
    "WebSearchSource",
    "DiscoverEnrichSource",
    "LEAD_SOURCES",
]
