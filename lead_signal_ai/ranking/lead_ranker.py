"""Deduplicate candidate records and rank them by relevance."""

from typing import Callable, Hashable, Iterable, List, Optional

from lead_signal_ai.schemas.lead import Company, Lead
from lead_signal_ai.utils.helpers import normalize_url
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)

KeyFunc = Callable[[Lead], Hashable]


def name_company_key(lead: Lead) -> Hashable:
    """Case-insensitive (name, company)."""
    return ("person", lead.name.strip().lower(), lead.company.strip().lower())


def contact_key(lead: Lead) -> Hashable:
    """Normalized email or profile URL when present, else (name, company)."""
    contact = (lead.contact_url_or_email or "").strip().lower()
    if contact:
        if "@" in contact and "/" not in contact:
            return ("contact", contact)
        return ("contact", normalize_url(contact))
    return name_company_key(lead)


class Deduplicator:
    """
    Keeps one lead per identity key. A later duplicate replaces the kept one only
    with a strictly greater relevance_score, so first-seen wins on ties.
    """

    def __init__(self, key: KeyFunc = name_company_key) -> None:
        self._key = key
        self._best: dict[Hashable, Lead] = {}

    def add(self, lead: Lead) -> bool:
        """Offer a lead; return True when its key was not seen before."""
        key = self._key(lead)
        current = self._best.get(key)
        if current is None:
            self._best[key] = lead
            return True
        if lead.relevance_score > current.relevance_score:
            self._best[key] = lead
        return False

    def __len__(self) -> int:
        return len(self._best)

    def records(self) -> List[Lead]:
        return list(self._best.values())


def deduplicate_leads(leads: Iterable[Lead], key: KeyFunc = name_company_key) -> List[Lead]:
    dedup = Deduplicator(key)
    for lead in leads:
        dedup.add(lead)
    return dedup.records()


def deduplicate_companies(companies: Iterable[Company]) -> List[Company]:
    """One company per case-insensitive name; first seen wins."""
    seen: dict[str, Company] = {}
    for c in companies:
        key = c.company_name.strip().lower()
        if key and key not in seen:
            seen[key] = c
    return list(seen.values())


def rank_leads(leads: Iterable[Lead], limit: int) -> List[Lead]:
    """Sort by relevance_score descending (stable) and keep at most limit."""
    ranked = sorted(leads, key=lambda lead: -lead.relevance_score)
    result = ranked[: max(0, limit)]
    logger.info("Ranked %s leads, returning %s", len(ranked), len(result))
    return result


def rank_companies(companies: Iterable[Company], limit: Optional[int] = None) -> List[Company]:
    """Alphabetical by name; companies carry no numeric relevance."""
    ranked = sorted(companies, key=lambda c: c.company_name.casefold())
    return ranked if limit is None else ranked[: max(0, limit)]
