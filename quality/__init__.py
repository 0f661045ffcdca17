"""Shared validation helpers: URL normalization and API key handling."""

from quality.keys import build_key_location, redact_api_key, validate_api_key
from quality.urlnorm import dedupe_urls, should_index, validate_url

__all__ = [
    "build_key_location",
    "redact_api_key",
    "validate_api_key",
    "dedupe_urls",
    "should_index",
    "validate_url",
]
