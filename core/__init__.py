"""Core module for indexnow-submit."""

from core.models import (
    ErrorCategory,
    LogEntry,
    SubmissionErrorCode,
    SubmissionResult,
    SubmissionRun,
    SubmissionStatistics,
)
from core.config import IndexNowConfig
from core.errors import ConfigError, IndexNowError, IoError, ValidationError

__all__ = [
    "ErrorCategory",
    "LogEntry",
    "SubmissionErrorCode",
    "SubmissionResult",
    "SubmissionRun",
    "SubmissionStatistics",
    "IndexNowConfig",
    "ConfigError",
    "IndexNowError",
    "IoError",
    "ValidationError",
]
