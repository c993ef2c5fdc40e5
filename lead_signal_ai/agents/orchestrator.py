"""Aggregation orchestrator: drives a lead source, dedupes, ranks, and streams events."""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from typing import (
    TYPE_CHECKING,
    AsyncIterator,
    Awaitable,
    Callable,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from lead_signal_ai.config import LIMIT_DEFAULT, PipelineConfig
from lead_signal_ai.errors import LeadPipelineError, ProviderError
from lead_signal_ai.ranking.lead_ranker import Deduplicator, rank_leads
from lead_signal_ai.schemas.events import (
    TERMINAL_EVENTS,
    CompleteEvent,
    DomainEvent,
    ErrorEvent,
    LeadEvent,
    ProgressEvent,
    StreamEvent,
)
from lead_signal_ai.schemas.lead import Lead
from lead_signal_ai.utils.helpers import clamp_limit
from lead_signal_ai.utils.logger import get_logger

if TYPE_CHECKING:
    from lead_signal_ai.agents.lead_sources import LeadSource

logger = get_logger(__name__)

T = TypeVar("T")

# (submission index, result or None, error or None)
GatherResult = Tuple[int, Optional[T], Optional[Exception]]


class EventChannel:
    """
    Typed events for one run. The pipeline writes; the stream consumer polls.
    A disabled channel drops everything (batch mode).
    """

    def __init__(self, enabled: bool = True) -> None:
        self._queue: Optional[asyncio.Queue] = asyncio.Queue() if enabled else None
        self._progress = 0

    def put(self, event: StreamEvent) -> None:
        if self._queue is not None:
            self._queue.put_nowait(event)

    def progress(self, value: int) -> None:
        """Emit progress only when it moves forward."""
        value = max(0, min(100, int(value)))
        if value > self._progress:
            self._progress = value
            self.put(ProgressEvent(value=value))

    def lead(self, lead: Lead) -> None:
        self.put(LeadEvent(lead=lead))

    def domain(self, domain: str) -> None:
        if domain:
            self.put(DomainEvent(domain=domain))

    async def get(self) -> StreamEvent:
        if self._queue is None:
            raise RuntimeError("channel is disabled")
        return await self._queue.get()


async def bounded_gather(
    calls: Sequence[Callable[[], Awaitable[T]]],
    workers: int,
) -> AsyncIterator[GatherResult]:
    """
    Run calls with at most `workers` in flight, yielding in completion order.
    A failing call is reported, not raised. Pending calls are cancelled when the
    consumer stops iterating.
    """
    sem = asyncio.Semaphore(max(1, workers))

    async def run(index: int, call: Callable[[], Awaitable[T]]) -> GatherResult:
        async with sem:
            try:
                return index, await call(), None
            except Exception as e:
                return index, None, e

    tasks = [asyncio.create_task(run(i, c)) for i, c in enumerate(calls)]
    try:
        for next_done in asyncio.as_completed(tasks):
            yield await next_done
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()


async def first_successful(attempts: Sequence[Tuple[str, Callable[[], Awaitable[T]]]]) -> T:
    """Try attempts in priority order; return the first that does not raise ProviderError."""
    last_error: Optional[ProviderError] = None
    for label, attempt in attempts:
        try:
            result = await attempt()
        except ProviderError as e:
            logger.warning("Attempt %s failed: %s", label, e)
            last_error = e
            continue
        logger.info("Used %s", label)
        return result
    raise ProviderError(
        last_error.provider if last_error else "provider",
        f"All {len(attempts)} attempts failed",
        last_error.status if last_error else None,
    )


class LeadOrchestrator:
    """Runs one lead source end to end. One instance per run; nothing is shared across runs."""

    def __init__(self, source: LeadSource, config: PipelineConfig, limit: int = LIMIT_DEFAULT) -> None:
        config.require(*source.required_providers)
        self._source = source
        self._limit = clamp_limit(limit)

    @property
    def limit(self) -> int:
        return self._limit

    async def _collect(self, channel: EventChannel) -> List[Lead]:
        dedup = Deduplicator(self._source.key)
        seen = 0
        async with aclosing(self._source.candidates(channel)) as candidates:
            async for lead in candidates:
                seen += 1
                if dedup.add(lead):
                    channel.lead(lead)
        ranked = rank_leads(dedup.records(), self._limit)
        logger.info(
            "Lead source %s finished: candidates=%s unique=%s returned=%s",
            self._source.name,
            seen,
            len(dedup),
            len(ranked),
        )
        return ranked

    async def run(self) -> List[Lead]:
        """Batch mode: the ranked, size-bounded lead list."""
        try:
            return await self._collect(EventChannel(enabled=False))
        finally:
            await self._source.aclose()

    async def stream(self) -> AsyncIterator[StreamEvent]:
        """
        Streaming mode: progress/lead/domain events in discovery order, then exactly
        one terminal complete or error event. Closing the iterator cancels the run.
        """
        channel = EventChannel()

        async def produce() -> None:
            try:
                leads = await self._collect(channel)
                channel.progress(100)
                channel.put(CompleteEvent(message=f"Found {len(leads)} leads", total=len(leads), leads=leads))
            except LeadPipelineError as e:
                logger.warning("Lead source %s failed: %s", self._source.name, e)
                channel.put(ErrorEvent(message=str(e)))
            except Exception as e:
                logger.exception("Lead source %s crashed", self._source.name)
                channel.put(ErrorEvent(message=f"Internal error: {type(e).__name__}"))
            finally:
                await self._source.aclose()

        task = asyncio.create_task(produce())
        try:
            while True:
                event = await channel.get()
                yield event
                if isinstance(event, TERMINAL_EVENTS):
                    break
            # let the producer finish closing provider clients
            await task
        finally:
            if not task.done():
                logger.info("Stream closed early; cancelling lead source %s", self._source.name)
                task.cancel()
                # wait for produce() to run source.aclose()
                await asyncio.gather(task, return_exceptions=True)
