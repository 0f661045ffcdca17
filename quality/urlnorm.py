"""URL validation, normalization, exclusion and dedup for submission lists."""

from __future__ import annotations

from typing import Iterable, Sequence
from urllib.parse import urlsplit, urlunsplit

from core.config import IndexNowConfig


def validate_url(url: object, domain: str) -> str | None:
    """
    Validate a URL against the site domain and normalize it for submission.

    Rules:
    - Must be absolute with a network scheme and a hostname
    - Hostname must equal ``domain`` exactly (case-insensitive, no subdomains)
    - Scheme becomes https, host is lowercased, any port is dropped
    - Path always ends with "/"; query string and fragment are preserved

    Returns None for anything that cannot be submitted. Idempotent.
    """
    if not isinstance(url, str) or not domain:
        return None

    try:
        parsed = urlsplit(url.strip())
        # Malformed ports raise here even though the port itself is dropped.
        parsed.port
    except ValueError:
        return None

    if parsed.scheme.lower() not in IndexNowConfig.NETWORK_SCHEMES:
        return None

    hostname = (parsed.hostname or "").lower()
    if not hostname or hostname != domain.strip().lower():
        return None

    path = parsed.path or "/"
    if not path.startswith("/"):
        path = "/" + path
    if not path.endswith("/"):
        path += "/"

    return urlunsplit(("https", hostname, path, parsed.query, parsed.fragment))


def should_index(url: str, exclude_paths: Sequence[str] | str) -> bool:
    """Return False when the URL path contains any excluded path fragment."""
    if isinstance(exclude_paths, str):
        exclude_paths = (exclude_paths,)
    try:
        path = urlsplit(url).path
    except (TypeError, ValueError):
        return False
    return not any(excluded and excluded in path for excluded in exclude_paths)


def dedupe_urls(urls: Iterable[str]) -> list[str]:
    """Drop exact duplicates, keeping first-occurrence order."""
    seen: set[str] = set()
    unique: list[str] = []
    for url in urls:
        if url in seen:
            continue
        seen.add(url)
        unique.append(url)
    return unique
