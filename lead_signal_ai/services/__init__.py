"""Service exports."""

from .hunter_service import HunterClient
from .normalizer import (
    clamp_score,
    coerce_company,
    coerce_lead,
    extract_json_array,
    leads_from_text,
    normalize_leads,
)
from .perplexity_service import PerplexityClient, build_lead_messages
from .serp_service import SerpClient

__all__ = [
    "PerplexityClient",
    "SerpClient",
    "HunterClient",
    "build_lead_messages",
    "extract_json_array",
    "clamp_score",
    "coerce_lead",
    "coerce_company",
    "normalize_leads",
    "leads_from_text",
]
