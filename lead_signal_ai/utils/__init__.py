"""Utility exports."""

from .csv_export import export_leads_csv
from .helpers import clamp_limit, extract_domain, normalize_url, registrable_domain, truncate
from .logger import get_logger

__all__ = [
    "get_logger",
    "normalize_url",
    "extract_domain",
    "registrable_domain",
    "clamp_limit",
    "truncate",
    "export_leads_csv",
]
