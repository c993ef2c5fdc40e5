"""Schema exports."""

from .events import (
    DONE_MARKER,
    CompleteEvent,
    DomainEvent,
    ErrorEvent,
    LeadEvent,
    ProgressEvent,
    StreamEvent,
)
from .lead import LEAD_CSV_FIELDS, Company, Lead
from .request import LeadRequest

__all__ = [
    "Lead",
    "Company",
    "LeadRequest",
    "LEAD_CSV_FIELDS",
    "DONE_MARKER",
    "StreamEvent",
    "ProgressEvent",
    "LeadEvent",
    "DomainEvent",
    "CompleteEvent",
    "ErrorEvent",
]
