"""Lead Agent: build the requested lead source and run it through the orchestrator."""

from contextlib import aclosing
from typing import AsyncIterator, List, Optional

from lead_signal_ai.agents.lead_sources import build_lead_source
from lead_signal_ai.agents.orchestrator import LeadOrchestrator
from lead_signal_ai.config import PipelineConfig
from lead_signal_ai.schemas.events import StreamEvent
from lead_signal_ai.schemas.lead import Lead
from lead_signal_ai.schemas.request import LeadRequest
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)


def build_orchestrator(request: LeadRequest, config: Optional[PipelineConfig] = None) -> LeadOrchestrator:
    """Raises ConfigurationError / ValidationError before any provider call."""
    config = config or PipelineConfig.from_env()
    source = build_lead_source(request, config)
    logger.info(
        "Lead Agent: strategy=%s prompt=%s limit=%s location=%s industry=%s",
        source.name,
        request.prompt[:50],
        request.limit,
        request.location,
        request.industry,
    )
    return LeadOrchestrator(source, config, limit=request.limit)


async def run_lead_agent(request: LeadRequest, config: Optional[PipelineConfig] = None) -> List[Lead]:
    """Ranked, size-bounded leads for one request."""
    return await build_orchestrator(request, config).run()


async def stream_lead_agent(request: LeadRequest, config: Optional[PipelineConfig] = None) -> AsyncIterator[StreamEvent]:
    """Progress, lead and domain events, ending with one complete or error event."""
    async with aclosing(build_orchestrator(request, config).stream()) as events:
        async for event in events:
            yield event
