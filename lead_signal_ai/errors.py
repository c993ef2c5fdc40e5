"""Error taxonomy for the lead pipeline.

Only ConfigurationError and ValidationError abort a whole run. The others are
raised at a single call site and degrade to fewer results, except
EmptyResultError which is fatal for two-phase sources.
"""

from typing import Optional


class LeadPipelineError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(LeadPipelineError):
    """A required provider credential is missing."""


class ValidationError(LeadPipelineError):
    """Inbound request is missing required fields."""


class ProviderError(LeadPipelineError):
    """One upstream call failed (non-2xx, transport error, or malformed body)."""

    def __init__(self, provider: str, message: str, status: Optional[int] = None) -> None:
        self.provider = provider
        self.status = status
        self.message = message
        detail = f"{provider} error"
        if status is not None:
            detail += f" {status}"
        super().__init__(f"{detail}: {message}")


class ParseError(LeadPipelineError):
    """Text response could not be coerced into the expected structure."""


class EmptyResultError(LeadPipelineError):
    """A discovery phase produced nothing to enrich."""
