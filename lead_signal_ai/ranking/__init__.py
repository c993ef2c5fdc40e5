"""Deduplication and ranking of lead records."""

from .lead_ranker import (
    Deduplicator,
    contact_key,
    deduplicate_companies,
    deduplicate_leads,
    name_company_key,
    rank_companies,
    rank_leads,
)

__all__ = [
    "Deduplicator",
    "name_company_key",
    "contact_key",
    "deduplicate_leads",
    "deduplicate_companies",
    "rank_leads",
    "rank_companies",
]
