"""Perplexity chat-completions adapter (OpenAI-compatible API)."""

from typing import Optional

from openai import APIError, APIStatusError, AsyncOpenAI

from lead_signal_ai.config import (
    HTTP_TIMEOUT_SECONDS,
    LEADS_PER_QUERY,
    LLM_MAX_TOKENS,
    LLM_TEMPERATURE,
    LLM_TOP_P,
    PERPLEXITY_BASE_URL,
)
from lead_signal_ai.errors import ProviderError
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)

PROVIDER = "perplexity"

LEAD_SEARCH_PROMPT = """Find up to {count} hiring managers that match this job description: "{job_description}".
Search using: "{query}".
Return ONLY a valid JSON array with these exact keys: name, title, company, location, profile_url, relevance_score (0-100)."""


def build_lead_messages(query: str, job_description: str, count: int = LEADS_PER_QUERY) -> list[dict]:
    """Role-tagged messages asking the model for a JSON array of leads."""
    return [
        {
            "role": "user",
            "content": LEAD_SEARCH_PROMPT.format(count=count, job_description=job_description, query=query),
        }
    ]


class PerplexityClient:
    """One completion call per invocation; model fallback is decided by the caller."""

    def __init__(
        self,
        api_key: str,
        client: Optional[AsyncOpenAI] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        # max_retries=0: the SDK would otherwise retry on its own
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=PERPLEXITY_BASE_URL,
            max_retries=0,
            timeout=timeout,
        )

    async def complete(self, messages: list[dict], model: str) -> str:
        """Return the raw completion text (may be prose around a JSON array)."""
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=LLM_TEMPERATURE,
                top_p=LLM_TOP_P,
                max_tokens=LLM_MAX_TOKENS,
            )
        except APIStatusError as e:
            raise ProviderError(PROVIDER, f"{model}: {e.message}", e.status_code) from e
        except APIError as e:
            raise ProviderError(PROVIDER, f"{model}: {e}") from e

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message:
            raise ProviderError(PROVIDER, f"{model}: response has no choices")
        return choice.message.content or ""

    async def aclose(self) -> None:
        await self._client.close()
