"""Hunter.io domain-search adapter (email enrichment)."""

from typing import Any, Optional

import httpx

from lead_signal_ai.config import HTTP_TIMEOUT_SECONDS, HUNTER_CONTACTS_PER_DOMAIN
from lead_signal_ai.errors import ProviderError
from lead_signal_ai.services.http_client import get_json
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)

PROVIDER = "hunter"
HUNTER_DOMAIN_SEARCH = "https://api.hunter.io/v2/domain-search"


class HunterClient:
    """Look up contacts for one company domain per call."""

    def __init__(
        self,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._timeout = timeout

    async def domain_search(self, domain: str, limit: int = HUNTER_CONTACTS_PER_DOMAIN) -> list[dict[str, Any]]:
        """
        Return contacts as dicts with first_name, last_name, email, position,
        confidence, plus the organization name Hunter reports for the domain.
        """
        params = {"domain": domain, "api_key": self._api_key, "limit": limit}
        data = await get_json(PROVIDER, HUNTER_DOMAIN_SEARCH, params, client=self._http, timeout=self._timeout)
        payload = data.get("data") if isinstance(data, dict) else None
        if not isinstance(payload, dict):
            raise ProviderError(PROVIDER, f"unexpected response shape for {domain}")

        organization = payload.get("organization") or ""
        contacts = []
        for item in payload.get("emails") or []:
            if not isinstance(item, dict):
                continue
            contacts.append(
                {
                    "first_name": item.get("first_name") or "",
                    "last_name": item.get("last_name") or "",
                    "email": item.get("value") or item.get("email") or "",
                    "position": item.get("position") or "",
                    "confidence": item.get("confidence"),
                    "organization": organization,
                    "domain": domain,
                }
            )
        logger.info("Hunter domain %s returned %s contacts", domain, len(contacts))
        return contacts
