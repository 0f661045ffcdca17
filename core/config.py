"""
Default configuration for IndexNow submission and auditing.

These settings are the defaults every component starts from. Components take
explicit overrides through their constructor/function arguments (log paths,
thresholds, timeouts) so tests and operators never have to patch globals.

Design: protocol limits (batch size, key format) are fixed by IndexNow and
are not meant to be tuned; log housekeeping values are.
"""

from typing import Tuple


class IndexNowConfig:
    """
    Default settings for the submission + audit subsystem.

    Protocol reference: https://www.indexnow.org/documentation
    """

    # ========================================================================
    # Submission Protocol
    # ========================================================================

    ENDPOINT: str = "https://api.indexnow.org/indexnow"
    """Shared IndexNow endpoint (fans out to Bing, Yandex, Seznam, Naver)."""

    MAX_URLS_PER_REQUEST: int = 10_000
    """Hard per-request URL limit imposed by the API."""

    SUCCESS_STATUS_CODES: frozenset[int] = frozenset({200, 202})
    """Only these HTTP statuses count as an accepted submission."""

    REQUEST_TIMEOUT_MS: int = 30_000
    """Default per-request timeout (milliseconds)."""

    API_KEY_MIN_LENGTH: int = 8
    API_KEY_MAX_LENGTH: int = 128
    """Key must be 8-128 hexadecimal characters."""

    ERROR_BODY_MAX_CHARS: int = 200
    """Raw response bodies longer than this are truncated in error messages."""

    USER_AGENT: str = "indexnow-submit/0.1 (+https://www.indexnow.org/)"
    """User-Agent header sent with every submission."""

    # ========================================================================
    # URL Collection
    # ========================================================================

    SITEMAP_PATH: str = "out/sitemap.xml"
    """Static-export sitemap location relative to the project root."""

    DEFAULT_EXCLUDE_PATHS: Tuple[str, ...] = ("/thank-you/",)
    """Path substrings never submitted (conversion pages etc.)."""

    NETWORK_SCHEMES: frozenset[str] = frozenset({"http", "https", "ftp", "ftps", "ws", "wss"})
    """Schemes accepted (and rewritten to https) during URL validation."""

    SITEMAP_FETCH_TIMEOUT_SECONDS: int = 30
    """Timeout when the sitemap is loaded over HTTP(S)."""

    # ========================================================================
    # Audit Log
    # ========================================================================

    LOG_FILE_PATH: str = "logs/indexnow-submissions.json"
    """JSON Lines audit log, relative to the working directory."""

    MAX_LOG_BYTES: int = 10 * 1024 * 1024
    """Rotate once the audit log reaches this size (10 MiB)."""

    SUCCESS_RATE_THRESHOLD: float = 0.9
    """Warn when the rolling success rate drops below this."""

    SUCCESS_RATE_MIN_SAMPLE: int = 10
    """Never warn on fewer entries than this."""

    STATISTICS_DEFAULT_LIMIT: int = 10
    """Default rolling window for statistics."""

    REDACTION_MARKER: str = "***REDACTED***"
    """Replacement for anything that looks like an API key."""

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration at startup.

        Raises:
            AssertionError: If any constraint is violated.
        """
        assert cls.ENDPOINT.startswith("https://"), "ENDPOINT must use https"

        assert (
            0 < cls.MAX_URLS_PER_REQUEST <= 10_000
        ), "MAX_URLS_PER_REQUEST must be within the API limit"

        assert cls.REQUEST_TIMEOUT_MS > 0, "REQUEST_TIMEOUT_MS must be > 0"

        assert (
            0 < cls.API_KEY_MIN_LENGTH <= cls.API_KEY_MAX_LENGTH
        ), "API key length bounds are inconsistent"

        assert cls.MAX_LOG_BYTES > 0, "MAX_LOG_BYTES must be > 0"

        assert (
            0.0 <= cls.SUCCESS_RATE_THRESHOLD <= 1.0
        ), "SUCCESS_RATE_THRESHOLD must be within [0, 1]"

        assert cls.SUCCESS_RATE_MIN_SAMPLE >= 1, "SUCCESS_RATE_MIN_SAMPLE must be ≥1"

        assert cls.STATISTICS_DEFAULT_LIMIT >= 1, "STATISTICS_DEFAULT_LIMIT must be ≥1"

        assert (
            "https" in cls.NETWORK_SCHEMES
        ), "NETWORK_SCHEMES must include https"


# Validate at module import time
IndexNowConfig.validate()
