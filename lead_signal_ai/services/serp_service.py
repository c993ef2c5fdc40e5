"""SerpAPI (Google Search) adapter."""

from typing import Any, Optional

import httpx

from lead_signal_ai.config import HTTP_TIMEOUT_SECONDS
from lead_signal_ai.errors import ProviderError
from lead_signal_ai.services.http_client import get_json
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)

PROVIDER = "serpapi"
SERPAPI_BASE = "https://serpapi.com/search"

# SerpAPI reports an empty result page as an "error"
_NO_RESULTS_MARKER = "hasn't returned any results"


def _parse_organic_result(item: dict[str, Any]) -> Optional[dict[str, str]]:
    """Keep title, link and snippet from one organic result."""
    link = item.get("link") or item.get("url")
    if not link:
        return None
    title = item.get("title") or ""
    snippet = item.get("snippet") or item.get("description") or ""
    return {
        "title": title[:500],
        "link": link,
        "snippet": snippet[:1000],
    }


class SerpClient:
    """Run one Google search per call and return raw organic results."""

    def __init__(
        self,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._timeout = timeout

    async def search(self, query: str, num: int = 10) -> list[dict[str, str]]:
        params: dict[str, Any] = {
            "q": query,
            "api_key": self._api_key,
            "num": min(100, max(10, num)),
            "engine": "google",
        }
        data = await get_json(PROVIDER, SERPAPI_BASE, params, client=self._http, timeout=self._timeout)
        if not isinstance(data, dict):
            raise ProviderError(PROVIDER, "unexpected response shape")
        error = data.get("error")
        if error:
            if _NO_RESULTS_MARKER in str(error):
                return []
            raise ProviderError(PROVIDER, str(error))

        results = []
        for item in data.get("organic_results") or []:
            if isinstance(item, dict):
                parsed = _parse_organic_result(item)
                if parsed:
                    results.append(parsed)
        logger.info("SerpAPI query '%s' returned %s results", query[:50], len(results))
        return results
