"""Turn raw provider payloads into canonical Lead and Company records."""

import json
import math
import re
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from lead_signal_ai.errors import ParseError
from lead_signal_ai.schemas.lead import Company, Lead
from lead_signal_ai.utils.logger import get_logger

logger = get_logger(__name__)

# canonical field -> keys accepted from upstream, in priority order
LEAD_FIELD_ALIASES: dict[str, tuple] = {
    "name": ("name", "full_name", "contact_name", "person"),
    "title": ("title", "job_title", "position", "role"),
    "company": ("company", "organization", "organisation", "company_name", "employer"),
    "location": ("location", "city", "region"),
    "contact_url_or_email": (
        "contact_url_or_email",
        "profile_url",
        "linkedin_url",
        "linkedin",
        "url",
        "email",
        "contact",
    ),
    "relevance_score": ("relevance_score", "score", "rating", "confidence"),
}

COMPANY_FIELD_ALIASES: dict[str, tuple] = {
    "company_name": ("company_name", "company", "organization", "name"),
    "industry": ("industry", "sector"),
    "headquarters_location": ("headquarters_location", "headquarters", "hq", "location"),
    "careers_page_url": ("careers_page_url", "careers_url", "careers", "url"),
    "linkedin_or_domain": ("linkedin_or_domain", "domain", "website", "linkedin_url", "linkedin"),
}

_FENCE_RE = re.compile(r"```[a-zA-Z]*")


def _parse_json_array(text: str) -> list:
    """Strict parse of the outermost [...] span; raises ParseError."""
    raw = _FENCE_RE.sub("", text or "")
    start = raw.find("[")
    end = raw.rfind("]")
    if start == -1 or end <= start:
        raise ParseError("no JSON array in text")
    try:
        parsed = json.loads(raw[start:end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON array: {e.msg}") from e
    if not isinstance(parsed, list):
        raise ParseError("JSON value is not an array")
    return parsed


def extract_json_array(text: str) -> list:
    """
    Locate and parse the JSON array embedded in free text (prose, code fences).
    Never raises: anything unparseable yields [].
    """
    try:
        return _parse_json_array(text)
    except ParseError as e:
        logger.warning("JSON extraction failed: %s (text starts %r)", e, (text or "")[:80])
        return []


def clamp_score(value: Any) -> int:
    """Round half up and clamp into [0, 100]; missing or non-numeric gives 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return 100 if number > 0 else 0
    return max(0, min(100, math.floor(number + 0.5)))


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, tuple, bool)):
        return ""
    return " ".join(str(value).split())


def _pick(raw: dict, aliases: Iterable[str]) -> Any:
    """First alias whose value is present and non-blank."""
    for key in aliases:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _coerce(raw: dict, table: dict[str, tuple]) -> dict[str, Any]:
    return {field: _pick(raw, aliases) for field, aliases in table.items()}


def coerce_lead(raw: Any, source: str = "") -> Optional[Lead]:
    """Map a loosely typed object to a Lead, or None when name/company are missing."""
    if not isinstance(raw, dict):
        return None
    fields = _coerce(raw, LEAD_FIELD_ALIASES)
    name = _text(fields["name"])
    if not name:
        name = " ".join(p for p in (_text(raw.get("first_name")), _text(raw.get("last_name"))) if p)
    company = _text(fields["company"])
    if not name or not company:
        return None
    try:
        return Lead(
            name=name,
            title=_text(fields["title"]),
            company=company,
            location=_text(fields["location"]),
            contact_url_or_email=_text(fields["contact_url_or_email"]),
            relevance_score=clamp_score(fields["relevance_score"]),
            source=_text(raw.get("source")) or source,
        )
    except ValidationError as e:
        logger.debug("Rejected lead %r: %s", raw, e)
        return None


def coerce_company(raw: Any) -> Optional[Company]:
    """Map a loosely typed object to a Company, or None without a company name."""
    if not isinstance(raw, dict):
        return None
    fields = {k: _text(v) for k, v in _coerce(raw, COMPANY_FIELD_ALIASES).items()}
    if not fields["company_name"]:
        return None
    return Company(**fields)


def normalize_leads(raw_records: Iterable[Any], source: str = "") -> list[Lead]:
    """Coerce each record, dropping the invalid ones."""
    leads = []
    for raw in raw_records:
        lead = coerce_lead(raw, source)
        if lead is not None:
            leads.append(lead)
    return leads


def leads_from_text(text: str, source: str = "") -> list[Lead]:
    """Extract the JSON array from LLM text and coerce it into Leads."""
    return normalize_leads(extract_json_array(text), source)
