"""
Core Pydantic models for IndexNow submission and auditing.

Design principles:
- Results are immutable once produced (one per HTTP attempt)
- On-disk log entries keep the camelCase field names of the log format
- Failures are values: transport/protocol errors live on the result, not in exceptions
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================

class ErrorCategory(str, Enum):
    """Where did a submission fail?"""
    TRANSPORT = "TRANSPORT"  # No HTTP response (status 0)
    PROTOCOL = "PROTOCOL"  # Non-success HTTP response


class SubmissionErrorCode(str, Enum):
    """Why did a submission fail?"""
    BAD_REQUEST = "BAD_REQUEST"  # 400
    FORBIDDEN = "FORBIDDEN"  # 403, key not verified for host
    UNPROCESSABLE_ENTITY = "UNPROCESSABLE_ENTITY"  # 422, URLs don't belong to host
    RATE_LIMITED = "RATE_LIMITED"  # 429
    SERVER_ERROR = "SERVER_ERROR"  # 5xx
    HTTP_ERROR = "HTTP_ERROR"  # Any other non-success status
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"

    @property
    def category(self) -> ErrorCategory:
        if self in (SubmissionErrorCode.TIMEOUT, SubmissionErrorCode.NETWORK_ERROR):
            return ErrorCategory.TRANSPORT
        return ErrorCategory.PROTOCOL

    @property
    def retryable(self) -> bool:
        """Whether a caller may reasonably retry the same batch later."""
        return self in {
            SubmissionErrorCode.TIMEOUT,
            SubmissionErrorCode.NETWORK_ERROR,
            SubmissionErrorCode.RATE_LIMITED,
            SubmissionErrorCode.SERVER_ERROR,
        }


# ============================================================================
# Submission Result
# ============================================================================

class SubmissionResult(BaseModel):
    """
    Outcome of exactly one HTTPS submission attempt.

    status_code is 0 when no HTTP response was received (timeout, DNS,
    connection refused). error is already redacted.
    """
    model_config = ConfigDict(frozen=True)

    success: bool
    status_code: int = Field(ge=0)
    url_count: int = Field(ge=0)
    duration_ms: int = Field(ge=0)
    timestamp: str  # ISO-8601 UTC, millisecond precision

    error: Optional[str] = None
    error_code: Optional[SubmissionErrorCode] = None
    deployment_id: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return bool(self.error_code and self.error_code.retryable)


# ============================================================================
# Audit Log Entry
# ============================================================================

class LogEntry(BaseModel):
    """
    One line of the JSON Lines audit log.

    Field names on disk: timestamp, deploymentId, urlCount, success,
    statusCode, error, duration. Optional fields are omitted when unset.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    timestamp: str
    deployment_id: Optional[str] = Field(default=None, alias="deploymentId")
    url_count: int = Field(alias="urlCount", ge=0)
    success: bool
    status_code: int = Field(alias="statusCode", ge=0)
    error: Optional[str] = None
    duration: int = Field(ge=0)

    @classmethod
    def from_result(
        cls,
        result: SubmissionResult,
        deployment_id: Optional[str] = None,
    ) -> "LogEntry":
        """Build the on-disk form of a submission result."""
        return cls(
            timestamp=result.timestamp,
            deployment_id=deployment_id or result.deployment_id,
            url_count=result.url_count,
            success=result.success,
            status_code=result.status_code,
            error=result.error,
            duration=result.duration_ms,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LogEntry":
        """Accept either the on-disk (camelCase) or Python (snake_case) keys."""
        payload = dict(data)
        if "duration" not in payload and "duration_ms" in payload:
            payload["duration"] = payload.pop("duration_ms")
        return cls.model_validate(payload)

    def to_record(self) -> Dict[str, Any]:
        """Return the on-disk dict (camelCase, None fields dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json_line(self) -> str:
        """Serialize to exactly one line (no trailing newline)."""
        return json.dumps(self.to_record(), ensure_ascii=False, separators=(",", ":"))


# ============================================================================
# Statistics
# ============================================================================

class SubmissionStatistics(BaseModel):
    """Aggregate over the most recent N audit log entries."""
    total_submissions: int = 0
    successful_submissions: int = 0
    failed_submissions: int = 0
    success_rate: float = 0.0
    average_url_count: float = 0.0
    last_successful_submission: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """camelCase rendering used by the CLI and reports."""
        return {
            "totalSubmissions": self.total_submissions,
            "successfulSubmissions": self.successful_submissions,
            "failedSubmissions": self.failed_submissions,
            "successRate": self.success_rate,
            "averageUrlCount": self.average_url_count,
            "lastSuccessfulSubmission": self.last_successful_submission,
        }


# ============================================================================
# Pipeline Run
# ============================================================================

class SubmissionRun(BaseModel):
    """
    Summary of one pipeline run (all batches for one URL list).
    """
    run_id: str = Field(default_factory=lambda: str(uuid4()))
    dry_run: bool = False

    url_count: int = 0
    batch_count: int = 0
    failed_batches: int = 0

    results: List[SubmissionResult] = Field(default_factory=list)
    statistics: Optional[SubmissionStatistics] = None

    @property
    def success(self) -> bool:
        """True when every attempted batch was accepted (vacuously true for dry runs)."""
        return self.failed_batches == 0
