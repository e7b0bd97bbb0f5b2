"""Input validation helpers for resource configuration."""
from __future__ import annotations
from urllib.parse import urlparse

VALID_URL_SCHEMES = ("http", "https")


def validate_url(raw: str, schemes: tuple[str, ...] = VALID_URL_SCHEMES) -> str:
    """Validate an absolute URL.

    Args:
        raw: URL to validate
        schemes: Accepted URL schemes

    Returns:
        The URL, stripped of surrounding whitespace

    Raises:
        ValueError: If the URL is invalid
    """
    url = raw.strip()
    if not url:
        raise ValueError("URL is required")

    parsed = urlparse(url)
    if parsed.scheme not in schemes:
        raise ValueError(f"URL scheme must be one of {', '.join(schemes)}: {url}")
    if not parsed.netloc:
        raise ValueError(f"URL must have a host: {url}")

    return url


def validate_identifier(raw: str, field: str) -> str:
    """Validate a remote object ID (non-empty, no slashes or whitespace).

    Args:
        raw: ID to validate
        field: Field name for error messages (e.g., "app_id")

    Returns:
        Trimmed ID

    Raises:
        ValueError: If ID is invalid
    """
    value = raw.strip()
    if not value:
        raise ValueError(f"{field} is required")
    if "/" in value or any(char.isspace() for char in value):
        raise ValueError(f"{field} contains invalid characters")
    return value


def validate_non_empty(raw: str, field: str) -> str:
    value = raw.strip()
    if not value:
        raise ValueError(f"{field} is required")
    return value


def parse_import_id(import_id: str, hint: str) -> tuple[str, str]:
    """Split "<parent_id>/<value>" on the first slash.

    Values are usually URLs, so only the first slash separates the parts.

    Raises:
        ValueError: If either part is missing
    """
    parent_id, sep, value = import_id.partition("/")
    if not sep or not parent_id or not value:
        raise ValueError(f"invalid import id {import_id!r}. Expecting the following format: {hint}")
    return parent_id, value
