"""Helper utilities for the lead signal pipeline."""

import math
from typing import Any
from urllib.parse import urlparse

from lead_signal_ai.config import LIMIT_DEFAULT, LIMIT_MAX, LIMIT_MIN


def normalize_url(url: str) -> str:
    """Normalize URL for deduplication (lowercase, strip trailing slashes, query and fragment)."""
    if not url:
        return ""
    url = url.strip().rstrip("/")
    if "#" in url:
        url = url.split("#")[0]
    if "?" in url:
        url = url.split("?", 1)[0]
    url = url.rstrip("/").lower()
    for prefix in ("https://", "http://"):
        if url.startswith(prefix):
            url = url[len(prefix):]
    if url.startswith("www."):
        url = url[4:]
    return url


def extract_domain(url: str) -> str:
    """Host of a URL without scheme, port or leading www. Accepts bare hosts."""
    if not url:
        return ""
    value = url.strip()
    if "://" not in value:
        value = "https://" + value
    host = (urlparse(value).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def clamp_limit(value: Any) -> int:
    """Clamp the requested result size into [LIMIT_MIN, LIMIT_MAX]; non-numeric means default."""
    if value is None or value == "" or isinstance(value, bool):
        return LIMIT_DEFAULT
    try:
        number = float(value)
    except (TypeError, ValueError):
        return LIMIT_DEFAULT
    if math.isnan(number) or number == 0:
        return LIMIT_DEFAULT
    if math.isinf(number):
        return LIMIT_MAX if number > 0 else LIMIT_MIN
    return max(LIMIT_MIN, min(int(number), LIMIT_MAX))


def truncate(text: str, length: int) -> str:
    """Cut text at a word boundary so it fits in length characters."""
    text = " ".join((text or "").split())
    if len(text) <= length:
        return text
    cut = text[:length]
    if " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,.;:")


# Second-level labels that sit under a country code (acme.co.uk)
_SECOND_LEVEL = {"co", "com", "org", "net", "ac", "gov", "edu"}


def registrable_domain(host: str) -> str:
    """careers.acme.com -> acme.com, jobs.acme.co.uk -> acme.co.uk."""
    labels = [p for p in extract_domain(host).split(".") if p]
    if len(labels) <= 2:
        return ".".join(labels)
    if len(labels[-1]) == 2 and labels[-2] in _SECOND_LEVEL:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])
