"""Audit trail for IndexNow submissions (JSON Lines log + statistics)."""

from audit.logger import AuditLogger, compute_statistics
from quality.keys import redact_api_key

__all__ = ["AuditLogger", "compute_statistics", "redact_api_key"]
