"""Inbound lead generation request."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from lead_signal_ai.errors import ValidationError
from lead_signal_ai.utils.helpers import clamp_limit

REQUIRED_FIELDS_MESSAGE = "prompt and jobDescription are required"


class LeadRequest(BaseModel):
    """Request body: prompt (or jobTitle) and job description plus optional filters."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(default="", validation_alias=AliasChoices("prompt", "jobTitle"))
    job_description: str = Field(default="", validation_alias=AliasChoices("jobDescription", "job_description"))
    limit: int = Field(default=200, validation_alias=AliasChoices("limit", "leadCount"))
    location: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[str] = Field(default=None, validation_alias=AliasChoices("companySize", "company_size"))
    strategy: Optional[str] = None
    stream: bool = False

    @field_validator("prompt", "job_description", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("location", "industry", "company_size", "strategy", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            # Client sends "global"/"all" for no filter
            if not value or value.lower() in ("global", "all"):
                return None
        return value

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value: Any) -> int:
        return clamp_limit(value)

    @classmethod
    def from_payload(cls, payload: Any) -> "LeadRequest":
        """Validate a decoded JSON body; raise ValidationError when required fields are absent."""
        if not isinstance(payload, dict):
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        try:
            request = cls.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid request: {e.errors()[0].get('msg', 'bad value')}") from e
        if not request.prompt or not request.job_description:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        return request
