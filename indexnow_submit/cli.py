"""Operator CLI entrypoint for indexnow-submit."""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any
from typing import Sequence
from uuid import uuid4

import jsonschema

from audit.logger import AuditLogger
from collector.sitemap import collect_urls
from core.config import IndexNowConfig
from core.errors import ConfigError, IoError
from core.models import SubmissionResult
from core.pipeline import SubmissionPipeline
from core.structured_logging import emit_json_event
from quality.keys import build_key_location, redact_api_key
from quality.urlnorm import dedupe_urls, validate_url


PROJECT_ROOT = Path(__file__).resolve().parent.parent
SCHEMAS_DIR = PROJECT_ROOT / "schemas"
LOG_SCHEMA_PATH = SCHEMAS_DIR / "submission-log.schema.json"

DEFAULT_SITE_DOMAIN = "example.com"
PREVIEW_COUNT = 10


def _emit_cli_event(
    event_type: str,
    *,
    run_id: str,
    command: str,
    **payload: Any,
) -> str:
    """Emit one structured CLI event line with standard fields."""
    return emit_json_event(
        event_type=event_type,
        run_id=run_id,
        command=command,
        **payload,
    )


def _site_domain() -> str:
    return os.environ.get("SITE_DOMAIN") or DEFAULT_SITE_DOMAIN


def _audit_logger(args: argparse.Namespace, run_id: str) -> AuditLogger:
    log_file = args.log_file or os.environ.get("INDEXNOW_LOG_FILE") or IndexNowConfig.LOG_FILE_PATH
    return AuditLogger(log_file, run_id=run_id)


def read_urls_from_file(path: str | Path) -> list[str]:
    """Read newline-separated URLs, ignoring blank lines and # comments."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IoError(f"Failed to read file {path}: {exc}") from exc
    urls = []
    for line in content.splitlines():
        value = line.strip()
        if value and not value.startswith("#"):
            urls.append(value)
    return urls


def result_summary(result: SubmissionResult) -> dict[str, Any]:
    """Operator-facing SUCCESS/FAILURE summary of one batch result."""
    if result.success:
        return {
            "status": "SUCCESS",
            "status_code": result.status_code,
            "url_count": result.url_count,
            "duration_ms": result.duration_ms,
        }
    return {
        "status": "FAILURE",
        "status_code": result.status_code or "N/A",
        "url_count": result.url_count,
        "duration_ms": result.duration_ms,
        "error": result.error or "Unknown error",
        "retryable": result.retryable,
    }


def _cmd_submit(args: argparse.Namespace) -> int:
    """Collect or read URLs, then submit them batch by batch."""
    run_id = args.run_id or str(uuid4())
    domain = _site_domain()
    key = os.environ.get("INDEXNOW_API_KEY", "")
    if not args.dry_run and not key:
        raise ConfigError("INDEXNOW_API_KEY environment variable is required")

    if args.file:
        raw_urls = read_urls_from_file(args.file)
        normalized = [validate_url(url, domain) for url in raw_urls]
        invalid = [raw for raw, url in zip(raw_urls, normalized) if url is None]
        if invalid:
            _emit_cli_event(
                "cli_invalid_urls_dropped",
                run_id=run_id,
                command="submit",
                level="warning",
                domain=domain,
                dropped=len(invalid),
                examples=invalid[:PREVIEW_COUNT],
            )
        urls = dedupe_urls([url for url in normalized if url is not None])
        source = str(args.file)
    else:
        urls = collect_urls(
            domain,
            sitemap_path=args.sitemap,
            exclude_paths=args.exclude or IndexNowConfig.DEFAULT_EXCLUDE_PATHS,
            run_id=run_id,
        )
        source = str(args.sitemap)

    if not urls:
        raise ConfigError("No URLs to submit")

    _emit_cli_event(
        "cli_urls_ready",
        run_id=run_id,
        command="submit",
        domain=domain,
        source=source,
        mode="DRY RUN" if args.dry_run else "LIVE SUBMISSION",
        total=len(urls),
        preview=urls[:PREVIEW_COUNT],
        remaining=max(0, len(urls) - PREVIEW_COUNT),
    )

    key_domain = os.environ.get("KEY_LOCATION_DOMAIN") or domain
    pipeline = SubmissionPipeline(
        host=domain,
        key=key,
        key_location=build_key_location(key_domain, key) if key else "",
        audit_logger=_audit_logger(args, run_id),
        batch_size=args.batch_size,
        timeout_ms=args.timeout_ms,
    )
    run = pipeline.run(urls, deployment_id=args.deployment_id, dry_run=args.dry_run, run_id=run_id)

    if run.dry_run:
        _emit_cli_event(
            "cli_dry_run_completed",
            run_id=run_id,
            command="submit",
            total=run.url_count,
            batches=run.batch_count,
            message="No submission made (dry-run mode)",
        )
        return 0

    for index, result in enumerate(run.results, start=1):
        _emit_cli_event(
            "cli_submission_result",
            run_id=run_id,
            command="submit",
            level="info" if result.success else "error",
            batch=index,
            batches=run.batch_count,
            **result_summary(result),
        )
    return 0 if run.success else 1


def _cmd_stats(args: argparse.Namespace) -> int:
    """Report rolling success statistics from the audit log."""
    run_id = args.run_id or str(uuid4())
    audit_logger = _audit_logger(args, run_id)
    stats = audit_logger.get_statistics(args.limit)
    _emit_cli_event(
        "cli_stats_completed",
        run_id=run_id,
        command="stats",
        log_file=str(audit_logger.log_path),
        limit=args.limit,
        statistics=stats.to_dict(),
        rotated_files=[path.name for path in audit_logger.list_rotated_files()],
    )
    return 0


def _cmd_rotate_log(args: argparse.Namespace) -> int:
    """Force rotation of the audit log."""
    run_id = args.run_id or str(uuid4())
    audit_logger = _audit_logger(args, run_id)
    rotated = audit_logger.rotate_log_file(force=True)
    _emit_cli_event(
        "cli_rotate_log_completed",
        run_id=run_id,
        command="rotate-log",
        log_file=str(audit_logger.log_path),
        rotated_file=str(rotated) if rotated else None,
        rotated=rotated is not None,
    )
    return 0


def _cmd_validate_log(args: argparse.Namespace) -> int:
    """Validate every audit log line against the log-entry JSON schema."""
    run_id = args.run_id or str(uuid4())
    schema = json.loads(LOG_SCHEMA_PATH.read_text(encoding="utf-8"))
    log_path = Path(args.log_file or os.environ.get("INDEXNOW_LOG_FILE") or IndexNowConfig.LOG_FILE_PATH)
    if not log_path.exists():
        raise FileNotFoundError(f"Log file not found: {log_path}")

    checked = 0
    problems: list[dict[str, Any]] = []
    for line_number, line in enumerate(log_path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        checked += 1
        try:
            jsonschema.validate(json.loads(line), schema)
        except ValueError as exc:
            problems.append({"line": line_number, "error": f"invalid JSON: {exc}"})
        except jsonschema.ValidationError as exc:
            problems.append({"line": line_number, "error": redact_api_key(exc.message)})

    _emit_cli_event(
        "cli_validate_log_completed",
        run_id=run_id,
        command="validate-log",
        level="info" if not problems else "error",
        log_file=str(log_path),
        checked=checked,
        invalid=len(problems),
        problems=problems[:PREVIEW_COUNT],
    )
    return 0 if not problems else 1


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--log-file", help="Audit log path (default: $INDEXNOW_LOG_FILE or logs/indexnow-submissions.json)")
    parser.add_argument("--run-id", help="Optional explicit run ID for logging")


def build_parser() -> argparse.ArgumentParser:
    """Create argument parser for the indexnow-submit CLI."""
    parser = argparse.ArgumentParser(
        prog="indexnow-submit",
        description=(
            "Submit site URLs to IndexNow and audit the results. "
            "Environment: INDEXNOW_API_KEY (required for live submission), "
            "SITE_DOMAIN, KEY_LOCATION_DOMAIN, INDEXNOW_LOG_FILE."
        ),
    )
    parser.add_argument("--version", action="version", version="indexnow-submit 0.1.0")

    subparsers = parser.add_subparsers(dest="command")

    submit_parser = subparsers.add_parser(
        "submit",
        help="Submit URLs from a file or from the site sitemap",
    )
    source_group = submit_parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument("--file", "-f", help="Newline-separated URL file (# comments allowed)")
    source_group.add_argument("--all", "-a", action="store_true", help="Submit every indexable sitemap URL")
    submit_parser.add_argument(
        "--sitemap",
        default=IndexNowConfig.SITEMAP_PATH,
        help="Sitemap path or HTTP(S) URL used with --all",
    )
    submit_parser.add_argument(
        "--exclude",
        action="append",
        help="Path fragment to exclude with --all (repeatable, default: /thank-you/)",
    )
    submit_parser.add_argument("--dry-run", "-d", action="store_true", help="Validate URLs without submitting")
    submit_parser.add_argument("--deployment-id", help="Deployment identifier written to the audit log")
    submit_parser.add_argument(
        "--timeout-ms",
        type=int,
        default=IndexNowConfig.REQUEST_TIMEOUT_MS,
        help="Per-request timeout in milliseconds",
    )
    submit_parser.add_argument(
        "--batch-size",
        type=int,
        default=IndexNowConfig.MAX_URLS_PER_REQUEST,
        help="Maximum URLs per request",
    )
    _add_common_arguments(submit_parser)
    submit_parser.set_defaults(func=_cmd_submit)

    stats_parser = subparsers.add_parser(
        "stats",
        help="Show rolling submission statistics",
    )
    stats_parser.add_argument(
        "--limit",
        type=int,
        default=IndexNowConfig.STATISTICS_DEFAULT_LIMIT,
        help="Number of most recent submissions to analyze",
    )
    _add_common_arguments(stats_parser)
    stats_parser.set_defaults(func=_cmd_stats)

    rotate_parser = subparsers.add_parser(
        "rotate-log",
        help="Rotate the audit log now",
    )
    _add_common_arguments(rotate_parser)
    rotate_parser.set_defaults(func=_cmd_rotate_log)

    validate_parser = subparsers.add_parser(
        "validate-log",
        help="Validate audit log lines against the JSON schema",
    )
    _add_common_arguments(validate_parser)
    validate_parser.set_defaults(func=_cmd_validate_log)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Execute CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        return int(args.func(args))
    except Exception as exc:
        _emit_cli_event(
            "cli_error",
            run_id=getattr(args, "run_id", None) or str(uuid4()),
            command=str(getattr(args, "command", "unknown")),
            level="error",
            error_type=type(exc).__name__,
            error=redact_api_key(str(exc)),
        )
        return 1


def cli() -> None:
    """Console-script entrypoint."""
    raise SystemExit(main())


if __name__ == "__main__":
    raise SystemExit(main())
