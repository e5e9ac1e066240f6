"""URL-shape validation for measurement targets."""

from __future__ import annotations

import re
from typing import Final

_TARGET_URL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:https?://)?"
    r"(?:"
    r"localhost"
    r"|(?:(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)\.){3}(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)"
    r"|(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}"
    r")"
    r"(?::\d{1,5})?"
    r"(?:/[^\s?#]*)?"
    r"(?:\?[^\s#]*)?"
    r"(?:#\S*)?$",
    re.IGNORECASE,
)


class TargetValidationError(ValueError):
    """Raised when a target string does not look like a URL."""


def domain_target_url_is_valid(target_url: str) -> bool:
    """Return whether the value has a URL shape acceptable for submission.

    The scheme is optional. The host must be a domain name, an IPv4 address,
    or `localhost`; port, path, query, and fragment are optional.

    Args:
        target_url: Candidate target URL.

    Returns:
        bool: True when the value passes the URL-shape check.
    """

    normalized_url = target_url.strip()
    if not normalized_url:
        return False
    match = _TARGET_URL_PATTERN.match(normalized_url)
    if match is None:
        return False

    port_match = re.search(r"^(?:https?://)?[^/:?#]+:(\d+)", normalized_url, re.IGNORECASE)
    if port_match is not None and not 0 < int(port_match.group(1)) <= 65535:
        return False
    return True


def domain_target_require_valid(target_url: str) -> str:
    """Return the stripped URL or raise when it fails the URL-shape check.

    Raises:
        TargetValidationError: Raised when the URL shape is invalid.
    """

    if not domain_target_url_is_valid(target_url):
        raise TargetValidationError(f"target is not a valid URL: {target_url!r}")
    return target_url.strip()
