"""Tests for batching, pre-flight validation and IndexNow response handling."""

from __future__ import annotations

import json
import math
import re

import pytest
import requests

from core.config import IndexNowConfig
from core.errors import ConfigError, ValidationError
from core.models import ErrorCategory, SubmissionErrorCode
from quality.keys import build_key_location, validate_api_key
from submitter.http import batch_urls, classify_response, submit_urls


HOST = "vividmediacheshire.com"
KEY = "a1b2c3d4e5f6a7b8c9d0e1f2a3b4c5d6"
KEY_LOCATION = f"https://{HOST}/{KEY}.txt"
URLS = [f"https://{HOST}/", f"https://{HOST}/about/"]
TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class DummyResponse:
    """Minimal response object for exercising submission logic."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.text = body
        self.closed = False

    def close(self) -> None:
        self.closed = True


class DummySession:
    """Sequence-driven session for deterministic HTTP behavior."""

    def __init__(self, responses: list[object] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, object]] = []

    def post(self, url: str, **kwargs: object):
        self.calls.append({"url": url, **kwargs})
        if not self.responses:
            raise AssertionError("No more stubbed responses available")
        next_item = self.responses.pop(0)
        if isinstance(next_item, Exception):
            raise next_item
        return next_item

    def close(self) -> None:
        return None


def _submit(session: DummySession, **overrides):
    kwargs = {
        "host": HOST,
        "key": KEY,
        "key_location": KEY_LOCATION,
        "url_list": URLS,
        "session": session,
    }
    kwargs.update(overrides)
    return submit_urls(**kwargs)


# ============================================================================
# validate_api_key / build_key_location
# ============================================================================

@pytest.mark.integration
@pytest.mark.parametrize(
    "key",
    ["a1b2c3d4", "ABCDEF1234567890", "a" * 128, "0123456789abcdefABCDEF", KEY],
)
def test_validate_api_key_accepts_hex_8_to_128(key: str):
    assert validate_api_key(key) is True


@pytest.mark.integration
@pytest.mark.parametrize(
    "key",
    ["", "abc", "a1b2c3d", "a" * 129, "invalid!", "g1b2c3d4e5", "a1b2c3d4\n", " a1b2c3d4", None, 12345678, {}, []],
)
def test_validate_api_key_rejects_everything_else(key):
    assert validate_api_key(key) is False


@pytest.mark.integration
def test_build_key_location():
    assert build_key_location(HOST, KEY) == KEY_LOCATION
    assert build_key_location(f"https://{HOST}/", KEY) == KEY_LOCATION


@pytest.mark.integration
@pytest.mark.parametrize(
    "domain",
    ["http://cdn.example.com", "https://cdn.example.com/keys/", "//cdn.example.com", "  CDN.example.com  "],
)
def test_build_key_location_keeps_only_the_host(domain: str):
    assert build_key_location(domain, KEY) == f"https://cdn.example.com/{KEY}.txt"


# ============================================================================
# batch_urls
# ============================================================================

@pytest.mark.integration
@pytest.mark.parametrize(
    ("length", "size"),
    [(0, 10), (1, 10), (10, 10), (11, 10), (25, 10), (10_001, 10_000), (7, 1)],
)
def test_batch_urls_partition(length: int, size: int):
    urls = [f"https://{HOST}/page-{index}/" for index in range(length)]

    batches = batch_urls(urls, size)

    assert len(batches) == math.ceil(length / size)
    assert all(0 < len(batch) <= size for batch in batches)
    assert all(len(batch) == size for batch in batches[:-1])
    assert [url for batch in batches for url in batch] == urls


@pytest.mark.integration
def test_batch_urls_default_size_is_api_limit():
    urls = [f"https://{HOST}/{index}/" for index in range(10_001)]

    batches = batch_urls(urls)

    assert [len(batch) for batch in batches] == [10_000, 1]


@pytest.mark.integration
@pytest.mark.parametrize("urls", ["https://a/", None, {"https://a/"}])
def test_batch_urls_rejects_non_list(urls):
    with pytest.raises(ConfigError, match="URLs must be an array"):
        batch_urls(urls, 10)


@pytest.mark.integration
@pytest.mark.parametrize("size", [0, -1, 2.5, True])
def test_batch_urls_rejects_non_positive_size(size):
    with pytest.raises(ConfigError, match="Batch size must be positive"):
        batch_urls(URLS, size)


# ============================================================================
# Pre-flight validation
# ============================================================================

@pytest.mark.integration
@pytest.mark.parametrize(
    ("overrides", "error_type", "message"),
    [
        ({"host": ""}, ConfigError, "Host is required"),
        ({"key": ""}, ConfigError, "API key is required"),
        ({"key": "not-hex!"}, ValidationError, "Invalid API key format"),
        ({"key_location": ""}, ConfigError, "Key location URL is required"),
        ({"url_list": "https://a/"}, ConfigError, "URL list must be an array"),
        ({"url_list": None}, ConfigError, "URL list must be an array"),
    ],
)
def test_submit_validates_before_network(overrides, error_type, message):
    session = DummySession()

    with pytest.raises(error_type, match=message):
        _submit(session, **overrides)

    assert session.calls == []


# ============================================================================
# Request + success handling
# ============================================================================

@pytest.mark.integration
@pytest.mark.parametrize("status_code", [200, 202])
def test_submit_success(status_code: int):
    response = DummyResponse(status_code)
    session = DummySession([response])

    result = _submit(session, deployment_id="deploy-42")

    assert result.success is True
    assert result.status_code == status_code
    assert result.url_count == 2
    assert result.error is None
    assert result.error_code is None
    assert result.deployment_id == "deploy-42"
    assert result.duration_ms >= 0
    assert TIMESTAMP_PATTERN.match(result.timestamp)
    assert response.closed is True


@pytest.mark.integration
def test_submit_sends_one_json_post():
    session = DummySession([DummyResponse(200)])

    _submit(session, timeout_ms=5000)

    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == IndexNowConfig.ENDPOINT
    assert call["json"] == {
        "host": HOST,
        "key": KEY,
        "keyLocation": KEY_LOCATION,
        "urlList": URLS,
    }
    assert call["headers"]["Content-Type"].startswith("application/json")
    assert call["timeout"] == 5.0


@pytest.mark.integration
def test_submit_truncates_oversized_list(capsys):
    urls = [f"https://{HOST}/{index}/" for index in range(10_001)]
    session = DummySession([DummyResponse(200)])

    result = _submit(session, url_list=urls)

    assert result.url_count == 10_000
    assert len(session.calls[0]["json"]["urlList"]) == 10_000
    events = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert events[0]["event_type"] == "submission_truncated"
    assert events[0]["requested"] == 10_001


# ============================================================================
# Failure classification
# ============================================================================

@pytest.mark.integration
@pytest.mark.parametrize(
    ("status_code", "body", "code", "fragments"),
    [
        (400, '{"message": "Invalid request format"}', SubmissionErrorCode.BAD_REQUEST, ["Bad request", "Invalid request format"]),
        (400, "plain text problem", SubmissionErrorCode.BAD_REQUEST, ["Bad request", "plain text problem"]),
        (422, '{"message": "URLs do not belong to host"}', SubmissionErrorCode.UNPROCESSABLE_ENTITY, ["Unprocessable entity", "URLs do not belong to host"]),
        (429, "slow down", SubmissionErrorCode.RATE_LIMITED, ["Rate limit exceeded"]),
        (500, '{"message": "upstream failure"}', SubmissionErrorCode.SERVER_ERROR, ["Server error", "upstream failure"]),
        (503, "", SubmissionErrorCode.SERVER_ERROR, ["Server error"]),
        (404, "nope", SubmissionErrorCode.HTTP_ERROR, ["HTTP 404", "nope"]),
    ],
)
def test_submit_classifies_http_failures(status_code, body, code, fragments):
    session = DummySession([DummyResponse(status_code, body)])

    result = _submit(session)

    assert result.success is False
    assert result.status_code == status_code
    assert result.error_code == code
    assert result.error_code.category == ErrorCategory.PROTOCOL
    for fragment in fragments:
        assert fragment in result.error


@pytest.mark.integration
def test_submit_forbidden_never_echoes_key():
    body = json.dumps({"message": f"key {KEY} not verified"})
    session = DummySession([DummyResponse(403, body)])

    result = _submit(session)

    assert result.success is False
    assert result.status_code == 403
    assert "Forbidden" in result.error
    assert KEY not in result.error
    assert result.error_code == SubmissionErrorCode.FORBIDDEN
    assert result.retryable is False


@pytest.mark.integration
def test_submit_redacts_key_echoed_in_error_body():
    body = json.dumps({"message": f"key {KEY} does not match keyLocation"})
    session = DummySession([DummyResponse(422, body)])

    result = _submit(session)

    assert KEY not in result.error
    assert "***REDACTED***" in result.error


@pytest.mark.integration
def test_classify_truncates_long_raw_body():
    _, error, _ = classify_response(502, "x" * 500)

    assert error.startswith("Server error: ")
    assert error.endswith("...")
    assert len(error) == len("Server error: ") + 200 + 3


@pytest.mark.integration
def test_classify_json_without_message_falls_back_to_raw_body():
    _, error, _ = classify_response(400, '{"code": 7}')

    assert error == 'Bad request: {"code": 7}'


@pytest.mark.integration
def test_submit_timeout_resolves_with_status_zero():
    session = DummySession([requests.Timeout("read timed out")])

    result = _submit(session, timeout_ms=1500)

    assert result.success is False
    assert result.status_code == 0
    assert result.error == "Request timeout (1500ms)"
    assert result.error_code == SubmissionErrorCode.TIMEOUT
    assert result.error_code.category == ErrorCategory.TRANSPORT
    assert result.retryable is True


@pytest.mark.integration
def test_submit_network_error_resolves_with_status_zero():
    session = DummySession([requests.ConnectionError("ECONNREFUSED")])

    result = _submit(session)

    assert result.success is False
    assert result.status_code == 0
    assert result.error == "Network error: ECONNREFUSED"
    assert result.error_code == SubmissionErrorCode.NETWORK_ERROR
    assert result.url_count == 2


@pytest.mark.integration
@pytest.mark.parametrize(
    ("code", "retryable"),
    [
        (SubmissionErrorCode.RATE_LIMITED, True),
        (SubmissionErrorCode.SERVER_ERROR, True),
        (SubmissionErrorCode.TIMEOUT, True),
        (SubmissionErrorCode.NETWORK_ERROR, True),
        (SubmissionErrorCode.FORBIDDEN, False),
        (SubmissionErrorCode.BAD_REQUEST, False),
        (SubmissionErrorCode.UNPROCESSABLE_ENTITY, False),
    ],
)
def test_error_codes_retryability(code: SubmissionErrorCode, retryable: bool):
    assert code.retryable is retryable
