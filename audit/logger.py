"""JSON Lines audit log for IndexNow submissions: append, rotate, statistics."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Mapping

from core.config import IndexNowConfig
from core.errors import ConfigError
from core.models import LogEntry, SubmissionResult, SubmissionStatistics
from core.structured_logging import emit_json_event
from quality.keys import redact_api_key


class AuditLogger:
    """
    Append-only submission log with size-based rotation.

    Single-writer: appends from several processes may interleave lines and
    rotation is a non-atomic size check followed by a rename.
    """

    def __init__(
        self,
        log_path: str | Path = IndexNowConfig.LOG_FILE_PATH,
        max_bytes: int = IndexNowConfig.MAX_LOG_BYTES,
        success_rate_threshold: float = IndexNowConfig.SUCCESS_RATE_THRESHOLD,
        warning_min_sample: int = IndexNowConfig.SUCCESS_RATE_MIN_SAMPLE,
        run_id: str | None = None,
    ) -> None:
        """Initialize log location and housekeeping thresholds."""
        if max_bytes <= 0:
            raise ConfigError("max_bytes must be positive")
        if not 0.0 <= success_rate_threshold <= 1.0:
            raise ConfigError("success_rate_threshold must be within [0, 1]")
        if warning_min_sample < 1:
            raise ConfigError("warning_min_sample must be ≥1")

        self.log_path = Path(log_path)
        self.max_bytes = max_bytes
        self.success_rate_threshold = success_rate_threshold
        self.warning_min_sample = warning_min_sample
        self.run_id = run_id

    def _emit(self, event_type: str, level: str = "info", **payload: Any) -> None:
        emit_json_event(
            event_type,
            run_id=self.run_id,
            level=level,
            component="audit",
            log_file=str(self.log_path),
            **payload,
        )

    # ------------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------------

    def log_submission(self, entry: LogEntry | SubmissionResult | Mapping[str, Any]) -> bool:
        """
        Append one redacted entry as a single JSON line.

        Never raises: on any failure the entry is echoed to the console and
        False is returned so an audit fault cannot abort a deployment.
        """
        try:
            if isinstance(entry, SubmissionResult):
                log_entry = LogEntry.from_result(entry)
            elif isinstance(entry, LogEntry):
                log_entry = entry
            else:
                log_entry = LogEntry.from_mapping(entry)

            if log_entry.error is not None:
                log_entry = log_entry.model_copy(update={"error": redact_api_key(log_entry.error)})
            line = log_entry.to_json_line() + "\n"

            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self.rotate_log_file()
            with self.log_path.open("a", encoding="utf-8") as handle:
                handle.write(line)
            return True

        except Exception as exc:
            self._emit(
                "audit_log_write_failed",
                level="error",
                error_type=type(exc).__name__,
                error=redact_api_key(str(exc)),
                fallback_entry=_fallback_record(entry),
            )
            return False

    def rotate_log_file(self, force: bool = False) -> Path | None:
        """
        Rename the log to ``<stem>-<unixMillis><suffix>`` once it reaches max_bytes.

        Returns the rotated path, or None when nothing was rotated. Rename
        failures are reported and logging continues on the current file.
        """
        try:
            size = self.log_path.stat().st_size
        except FileNotFoundError:
            return None
        except OSError as exc:
            self._emit("audit_log_rotation_failed", level="warning", error=str(exc))
            return None

        if not force and size < self.max_bytes:
            return None

        millis = int(time.time() * 1000)
        rotated = self._rotated_path(millis)
        while rotated.exists():
            millis += 1
            rotated = self._rotated_path(millis)

        try:
            self.log_path.rename(rotated)
        except OSError as exc:
            self._emit("audit_log_rotation_failed", level="warning", error=str(exc))
            return None

        self._emit(
            "audit_log_rotated",
            rotated_file=rotated.name,
            size_mb=round(size / 1024 / 1024, 2),
            message=f"Log file rotated: {rotated.name} ({size / 1024 / 1024:.2f}MB)",
        )
        return rotated

    def _rotated_path(self, millis: int) -> Path:
        return self.log_path.with_name(f"{self.log_path.stem}-{millis}{self.log_path.suffix}")

    def list_rotated_files(self) -> list[Path]:
        """Rotated siblings of the log file, oldest first."""
        directory = self.log_path.parent
        if not directory.is_dir():
            return []

        prefix = f"{self.log_path.stem}-"
        rotated: list[tuple[int, Path]] = []
        for candidate in directory.glob(f"{prefix}*{self.log_path.suffix}"):
            stamp = candidate.name[len(prefix) : len(candidate.name) - len(self.log_path.suffix)]
            if stamp.isdigit():
                rotated.append((int(stamp), candidate))
        return [path for _, path in sorted(rotated)]

    # ------------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------------

    def read_entries(self) -> list[dict[str, Any]]:
        """Return every well-formed entry in file order; malformed lines are skipped."""
        if not self.log_path.exists():
            return []

        entries: list[dict[str, Any]] = []
        with self.log_path.open("r", encoding="utf-8", errors="replace") as handle:
            for line_number, line in enumerate(handle, start=1):
                text = line.strip()
                if not text:
                    continue
                try:
                    record = json.loads(text)
                except ValueError as exc:
                    self._emit(
                        "audit_log_malformed_line",
                        level="warning",
                        line_number=line_number,
                        error=str(exc),
                    )
                    continue
                if not isinstance(record, dict):
                    self._emit(
                        "audit_log_malformed_line",
                        level="warning",
                        line_number=line_number,
                        error="entry is not a JSON object",
                    )
                    continue
                entries.append(record)
        return entries

    def get_statistics(self, limit: int = IndexNowConfig.STATISTICS_DEFAULT_LIMIT) -> SubmissionStatistics:
        """
        Compute the rolling snapshot over the most recent ``limit`` entries.

        Emits a warning when the sample holds at least ``warning_min_sample``
        entries and the success rate is below the threshold.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ConfigError("limit must be a positive integer")

        try:
            entries = self.read_entries()
        except OSError as exc:
            self._emit("audit_statistics_failed", level="error", error=str(exc))
            return SubmissionStatistics()

        recent = entries[-limit:]
        stats = compute_statistics(recent)

        if (
            stats.total_submissions >= self.warning_min_sample
            and stats.success_rate < self.success_rate_threshold
        ):
            self._emit(
                "submission_success_rate_low",
                level="warning",
                success_rate=stats.success_rate,
                sample_size=stats.total_submissions,
                message=(
                    f"IndexNow success rate ({stats.success_rate * 100:.1f}%) has fallen below "
                    f"{self.success_rate_threshold * 100:g}% over the last "
                    f"{stats.total_submissions} submissions"
                ),
            )
        return stats


def compute_statistics(entries: list[Mapping[str, Any]]) -> SubmissionStatistics:
    """Aggregate raw log records (oldest first) into a statistics snapshot."""
    successful = 0
    total_urls = 0
    last_success: str | None = None

    for entry in entries:
        if entry.get("success") is True:
            successful += 1
            last_success = entry.get("timestamp")
        url_count = entry.get("urlCount")
        if isinstance(url_count, (int, float)) and not isinstance(url_count, bool):
            total_urls += url_count

    total = len(entries)
    return SubmissionStatistics(
        total_submissions=total,
        successful_submissions=successful,
        failed_submissions=total - successful,
        success_rate=successful / total if total else 0.0,
        average_url_count=total_urls / total if total else 0.0,
        last_successful_submission=last_success,
    )


def _fallback_record(entry: object) -> object:
    """Best-effort, redacted rendering of an entry that could not be written."""
    if isinstance(entry, LogEntry):
        record: Any = entry.to_record()
    elif isinstance(entry, SubmissionResult):
        record = entry.model_dump(mode="json")
    elif isinstance(entry, Mapping):
        record = dict(entry)
    else:
        return repr(entry)

    if isinstance(record, dict) and "error" in record:
        record["error"] = redact_api_key(record["error"])
    return record
