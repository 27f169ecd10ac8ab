"""Validate submitted event URLs before fetching them."""

from typing import Optional
from urllib.parse import urlparse

ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: Optional[str]) -> tuple[bool, Optional[str]]:
    """Check a submitted URL is something we can fetch.

    Returns:
        (is_valid, reason) where reason is None for valid URLs
    """
    if not url or not url.strip():
        return False, "empty_url"

    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False, "invalid_url"

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return False, "unsupported_scheme"
    if not parsed.netloc:
        return False, "invalid_url"

    return True, None
