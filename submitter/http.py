"""IndexNow submission over HTTPS with a fixed failure taxonomy."""

from __future__ import annotations

import json
import time
from typing import Sequence

import requests

from core.config import IndexNowConfig
from core.errors import ConfigError, ValidationError
from core.models import SubmissionErrorCode, SubmissionResult
from core.structured_logging import emit_json_event, utc_timestamp
from quality.keys import redact_api_key, validate_api_key


_STATUS_LABELS: dict[int, tuple[str, SubmissionErrorCode]] = {
    400: ("Bad request", SubmissionErrorCode.BAD_REQUEST),
    403: ("Forbidden — invalid API key", SubmissionErrorCode.FORBIDDEN),
    422: ("Unprocessable entity", SubmissionErrorCode.UNPROCESSABLE_ENTITY),
    429: ("Rate limit exceeded", SubmissionErrorCode.RATE_LIMITED),
}

# Labels that never carry response details.
_NO_DETAIL_STATUSES = {403, 429}


def batch_urls(urls: Sequence[str], max_size: int = IndexNowConfig.MAX_URLS_PER_REQUEST) -> list[list[str]]:
    """
    Partition URLs into consecutive batches of at most ``max_size``.

    Order is preserved and only the final batch may be short. An empty list
    yields no batches.
    """
    if not isinstance(urls, (list, tuple)):
        raise ConfigError("URLs must be an array")
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
        raise ConfigError("Batch size must be positive")

    return [list(urls[index : index + max_size]) for index in range(0, len(urls), max_size)]


def _extract_detail(body: str) -> str | None:
    """Pull a human-readable detail out of an error response body."""
    text = (body or "").strip()
    if not text:
        return None

    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict) and parsed.get("message"):
        return str(parsed["message"])

    limit = IndexNowConfig.ERROR_BODY_MAX_CHARS
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def classify_response(status_code: int, body: str = "") -> tuple[bool, str | None, SubmissionErrorCode | None]:
    """Map an HTTP response to (success, error message, error code)."""
    if status_code in IndexNowConfig.SUCCESS_STATUS_CODES:
        return True, None, None

    if status_code in _STATUS_LABELS:
        label, code = _STATUS_LABELS[status_code]
    elif status_code >= 500:
        label, code = "Server error", SubmissionErrorCode.SERVER_ERROR
    else:
        label, code = f"HTTP {status_code}", SubmissionErrorCode.HTTP_ERROR

    if status_code not in _NO_DETAIL_STATUSES:
        detail = _extract_detail(body)
        if detail:
            label = f"{label}: {detail}"
    return False, redact_api_key(label), code


def validate_submission(host: str, key: str, key_location: str, url_list: object) -> None:
    """Fail fast on caller mistakes, before any network I/O."""
    if not host:
        raise ConfigError("Host is required")
    if not key:
        raise ConfigError("API key is required")
    if not validate_api_key(key):
        raise ValidationError("Invalid API key format (must be hexadecimal, 8-128 characters)")
    if not key_location:
        raise ConfigError("Key location URL is required")
    if not isinstance(url_list, (list, tuple)):
        raise ConfigError("URL list must be an array")


def submit_urls(
    host: str,
    key: str,
    key_location: str,
    url_list: Sequence[str],
    timeout_ms: int = IndexNowConfig.REQUEST_TIMEOUT_MS,
    deployment_id: str | None = None,
    endpoint: str = IndexNowConfig.ENDPOINT,
    session: requests.Session | None = None,
    run_id: str | None = None,
) -> SubmissionResult:
    """
    Submit one batch of URLs to IndexNow with exactly one HTTPS POST.

    Transport and protocol failures are returned as unsuccessful results
    (status_code 0 for transport failures); nothing is retried here.

    Raises:
        ConfigError: If host, key, key_location or url_list is missing/invalid.
        ValidationError: If the key is not 8-128 hex characters.
    """
    validate_submission(host, key, key_location, url_list)

    urls = list(url_list[: IndexNowConfig.MAX_URLS_PER_REQUEST])
    if len(url_list) > IndexNowConfig.MAX_URLS_PER_REQUEST:
        emit_json_event(
            "submission_truncated",
            run_id=run_id,
            level="warning",
            component="submitter",
            requested=len(url_list),
            submitted=len(urls),
        )

    payload = {
        "host": host,
        "key": key,
        "keyLocation": key_location,
        "urlList": urls,
    }

    def _result(status_code: int, error: str | None, error_code: SubmissionErrorCode | None) -> SubmissionResult:
        return SubmissionResult(
            success=error_code is None and status_code in IndexNowConfig.SUCCESS_STATUS_CODES,
            status_code=status_code,
            url_count=len(urls),
            duration_ms=int((time.monotonic() - start) * 1000),
            timestamp=utc_timestamp(),
            error=error,
            error_code=error_code,
            deployment_id=deployment_id,
        )

    http_session = session or requests.Session()
    start = time.monotonic()
    try:
        response = http_session.post(
            endpoint,
            json=payload,
            headers={
                "Content-Type": "application/json; charset=utf-8",
                "User-Agent": IndexNowConfig.USER_AGENT,
            },
            timeout=timeout_ms / 1000,
        )
        try:
            _, error, error_code = classify_response(response.status_code, response.text)
            return _result(response.status_code, error, error_code)
        finally:
            response.close()

    except requests.Timeout:
        return _result(0, f"Request timeout ({timeout_ms}ms)", SubmissionErrorCode.TIMEOUT)
    except requests.RequestException as exc:
        return _result(0, redact_api_key(f"Network error: {exc}"), SubmissionErrorCode.NETWORK_ERROR)
    finally:
        if session is None:
            http_session.close()
