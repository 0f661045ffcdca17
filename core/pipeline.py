"""
Submission pipeline for IndexNow.

Moves a URL list through the stages:
batch → submit (one HTTPS POST per batch) → audit log → statistics

This is intentionally minimal and prescriptive:
- Batches run sequentially so the audit log order matches submission order
- A failed batch never stops the run (transport/protocol failures are values)
- No retries (the caller decides whether to run again)
"""

from __future__ import annotations

from typing import Callable, Sequence
from uuid import uuid4

from audit.logger import AuditLogger
from core.config import IndexNowConfig
from core.models import LogEntry, SubmissionResult, SubmissionRun
from core.structured_logging import emit_json_event
from submitter.http import batch_urls, submit_urls, validate_submission


Submitter = Callable[..., SubmissionResult]


class SubmissionPipeline:
    """
    Orchestrates batching, submission and auditing for one site.

    Usage:
        pipeline = SubmissionPipeline(host, key, key_location, AuditLogger())
        run = pipeline.run(urls, deployment_id="deploy-123")
    """

    def __init__(
        self,
        host: str,
        key: str,
        key_location: str,
        audit_logger: AuditLogger,
        batch_size: int = IndexNowConfig.MAX_URLS_PER_REQUEST,
        timeout_ms: int = IndexNowConfig.REQUEST_TIMEOUT_MS,
        submitter: Submitter = submit_urls,
        statistics_limit: int = IndexNowConfig.STATISTICS_DEFAULT_LIMIT,
    ):
        """Initialize credentials, audit sink and submission settings."""
        self.host = host
        self.key = key
        self.key_location = key_location
        self.audit_logger = audit_logger
        self.batch_size = batch_size
        self.timeout_ms = timeout_ms
        self.submitter = submitter
        self.statistics_limit = statistics_limit

    @staticmethod
    def _emit_pipeline_event(event_type: str, *, run_id: str, **payload: object) -> None:
        emit_json_event(event_type, run_id=run_id, component="pipeline", **payload)

    def run(
        self,
        urls: Sequence[str],
        deployment_id: str | None = None,
        dry_run: bool = False,
        run_id: str | None = None,
    ) -> SubmissionRun:
        """
        Submit every URL, batch by batch, and audit each attempt.

        Args:
            urls: Normalized, deduplicated URL list
            deployment_id: Optional identifier written to every log entry
            dry_run: Batch only; no HTTP requests and no log writes
            run_id: Run ID for structured events

        Returns:
            SubmissionRun with one result per attempted batch

        Raises:
            ConfigError / ValidationError: Credentials or input unusable (before any I/O)
        """
        run_id = run_id or str(uuid4())
        if not dry_run:
            validate_submission(self.host, self.key, self.key_location, urls)

        batches = batch_urls(list(urls), self.batch_size)
        run = SubmissionRun(
            run_id=run_id,
            dry_run=dry_run,
            url_count=sum(len(batch) for batch in batches),
            batch_count=len(batches),
        )

        if dry_run:
            self._emit_pipeline_event(
                "submission_run_completed",
                run_id=run_id,
                dry_run=True,
                batches=run.batch_count,
                urls=run.url_count,
                failed_batches=0,
            )
            return run

        for index, batch in enumerate(batches, start=1):
            result = self.submitter(
                host=self.host,
                key=self.key,
                key_location=self.key_location,
                url_list=batch,
                timeout_ms=self.timeout_ms,
                deployment_id=deployment_id,
                run_id=run_id,
            )
            run.results.append(result)
            if not result.success:
                run.failed_batches += 1

            self.audit_logger.log_submission(LogEntry.from_result(result, deployment_id=deployment_id))
            self._emit_pipeline_event(
                "submission_batch_completed",
                level="info" if result.success else "warning",
                run_id=run_id,
                batch=index,
                batches=len(batches),
                success=result.success,
                status_code=result.status_code,
                url_count=result.url_count,
                duration_ms=result.duration_ms,
                error=result.error,
                error_code=result.error_code.value if result.error_code else None,
                retryable=result.retryable,
            )

        run.statistics = self.audit_logger.get_statistics(self.statistics_limit)
        self._emit_pipeline_event(
            "submission_run_completed",
            level="info" if run.success else "warning",
            run_id=run_id,
            dry_run=False,
            batches=run.batch_count,
            urls=run.url_count,
            failed_batches=run.failed_batches,
            success_rate=run.statistics.success_rate,
        )
        return run
