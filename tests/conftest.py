"""
Shared pytest fixtures and configuration for indexnow-submit tests.
"""

from pathlib import Path

import pytest

from audit.logger import AuditLogger
from core.models import LogEntry, SubmissionErrorCode, SubmissionResult


# ============================================================================
# Fixtures: Site + Credentials
# ============================================================================

@pytest.fixture
def domain() -> str:
    """Configured site domain."""
    return "vividmediacheshire.com"


@pytest.fixture
def api_key() -> str:
    """Valid 32-character hex IndexNow key."""
    return "a1b2c3d4e5f6a7b8c9d0e1f2a3b4c5d6"


# ============================================================================
# Fixtures: Submission Results
# ============================================================================

@pytest.fixture
def result_factory():
    """Build SubmissionResult objects with sensible defaults."""

    def _make(success: bool = True, url_count: int = 5, **overrides) -> SubmissionResult:
        fields = {
            "success": success,
            "status_code": 200 if success else 429,
            "url_count": url_count,
            "duration_ms": 120,
            "timestamp": "2026-02-22T10:30:00.000Z",
            "error": None if success else "Rate limit exceeded",
            "error_code": None if success else SubmissionErrorCode.RATE_LIMITED,
        }
        fields.update(overrides)
        return SubmissionResult(**fields)

    return _make


@pytest.fixture
def success_entry(result_factory) -> LogEntry:
    """Successful submission in on-disk form."""
    return LogEntry.from_result(result_factory(success=True), deployment_id="deploy-1")


@pytest.fixture
def failure_entry(result_factory) -> LogEntry:
    """Rate-limited submission in on-disk form."""
    return LogEntry.from_result(result_factory(success=False))


# ============================================================================
# Fixtures: File Paths
# ============================================================================

@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    """Audit log location inside the test's temp directory."""
    return tmp_path / "logs" / "indexnow-submissions.json"


@pytest.fixture
def audit_logger(log_path: Path) -> AuditLogger:
    """AuditLogger writing to the temp log path."""
    return AuditLogger(log_path)


@pytest.fixture
def sitemap_file(tmp_path: Path):
    """Write a sitemap with the given <loc> values and return its path."""

    def _write(locs: list[str], name: str = "sitemap.xml") -> Path:
        body = "\n".join(f"  <url><loc>{loc}</loc></url>" for loc in locs)
        path = tmp_path / name
        path.write_text(
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
            f"{body}\n"
            "</urlset>\n",
            encoding="utf-8",
        )
        return path

    return _write


@pytest.fixture
def schemas_dir() -> Path:
    """Path to schemas directory."""
    return Path(__file__).parent.parent / "schemas"


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "contract: contract schema compliance tests")
    config.addinivalue_line("markers", "integration: end-to-end integration tests")
    config.addinivalue_line("markers", "unit: unit tests")
