"""Single-shot async HTTP helper shared by the JSON provider adapters."""

from typing import Any, Optional

import httpx

from lead_signal_ai.config import HTTP_TIMEOUT_SECONDS
from lead_signal_ai.errors import ProviderError
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)


async def get_json(
    provider: str,
    url: str,
    params: dict[str, Any],
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = HTTP_TIMEOUT_SECONDS,
) -> Any:
    """
    Perform exactly one GET and return the decoded JSON body.
    Raises ProviderError on non-2xx, transport failure or a non-JSON body. No retries.
    """
    try:
        if client is not None:
            response = await client.get(url, params=params, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as owned:
                response = await owned.get(url, params=params)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        logger.warning("%s HTTP error: %s %s", provider, e.response.status_code, e.response.text[:200])
        raise ProviderError(provider, e.response.text[:200] or "HTTP error", e.response.status_code) from e
    except httpx.HTTPError as e:
        logger.warning("%s request failed: %s", provider, e)
        raise ProviderError(provider, str(e) or type(e).__name__) from e
    except ValueError as e:
        raise ProviderError(provider, "response body is not JSON") from e
