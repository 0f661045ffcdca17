"""API key format checks, key-location URLs and secret redaction."""

from __future__ import annotations

import re
from typing import TypeVar
from urllib.parse import urlsplit

from core.config import IndexNowConfig


_API_KEY_PATTERN = re.compile(
    rf"[0-9a-fA-F]{{{IndexNowConfig.API_KEY_MIN_LENGTH},{IndexNowConfig.API_KEY_MAX_LENGTH}}}"
)

# Any maximal hex run long enough to be a key. Runs longer than the key limit
# are redacted too, so no key can hide inside a longer hex string.
_HEX_RUN_PATTERN = re.compile(
    rf"(?<![0-9a-fA-F])[0-9a-fA-F]{{{IndexNowConfig.API_KEY_MIN_LENGTH},}}(?![0-9a-fA-F])"
)

T = TypeVar("T")


def validate_api_key(key: object) -> bool:
    """Return True iff ``key`` is a string of 8-128 hexadecimal characters."""
    if not isinstance(key, str):
        return False
    return _API_KEY_PATTERN.fullmatch(key) is not None


def redact_api_key(text: T) -> T:
    """
    Replace every hex run of 8+ characters with the redaction marker.

    Non-string input is returned unchanged. Shorter runs (colours, short
    ids) are preserved.
    """
    if not isinstance(text, str):
        return text
    return _HEX_RUN_PATTERN.sub(IndexNowConfig.REDACTION_MARKER, text)


def build_key_location(domain: str, key: str) -> str:
    """
    Return the HTTPS URL where the key file ``<key>.txt`` is served.

    ``domain`` may be a bare host or a URL with any scheme or path; only its
    network location is kept.
    """
    value = domain.strip()
    if "://" not in value:
        value = "//" + value.lstrip("/")
    host = urlsplit(value).netloc.lower()
    return f"https://{host}/{key}.txt"
