"""Typed progress events emitted by a streaming run."""

from typing import List, Literal, Union

from pydantic import BaseModel, Field

from lead_signal_ai.schemas.lead import Lead

DONE_MARKER = "data: [DONE]\n\n"


class _Event(BaseModel):
    def to_sse(self) -> str:
        """Format as one SSE data line."""
        return f"data: {self.model_dump_json()}\n\n"


class ProgressEvent(_Event):
    type: Literal["progress"] = "progress"
    value: int = Field(..., ge=0, le=100)


class LeadEvent(_Event):
    type: Literal["lead"] = "lead"
    lead: Lead


class DomainEvent(_Event):
    type: Literal["domain"] = "domain"
    domain: str


class CompleteEvent(_Event):
    type: Literal["complete"] = "complete"
    message: str
    total: int = 0
    # Final ranked order; stream order is discovery order only
    leads: List[Lead] = Field(default_factory=list)


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str


StreamEvent = Union[ProgressEvent, LeadEvent, DomainEvent, CompleteEvent, ErrorEvent]

TERMINAL_EVENTS = (CompleteEvent, ErrorEvent)
