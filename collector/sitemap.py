"""Sitemap URL collector: extract, validate, exclude, dedupe and sort."""

from __future__ import annotations

import html
import re
from pathlib import Path
from typing import Sequence
from urllib.parse import urlparse

import requests

from core.config import IndexNowConfig
from core.errors import ConfigError, IoError
from core.structured_logging import emit_json_event
from quality.urlnorm import dedupe_urls, should_index, validate_url


# Single-line and non-greedy: an unclosed <loc> never swallows the next entry.
_LOC_PATTERN = re.compile(r"<loc>(.*?)</loc>", re.IGNORECASE)
_CDATA_PATTERN = re.compile(r"^<!\[CDATA\[(.*)\]\]>$", re.DOTALL)


def parse_sitemap_xml(xml_content: str) -> list[str]:
    """
    Extract the text of every <loc> element.

    This is a tolerant matcher, not an XML parser: broken markup around an
    entry is ignored and well-formed <loc> values elsewhere are still found.
    """
    urls: list[str] = []
    for match in _LOC_PATTERN.finditer(xml_content or ""):
        value = match.group(1).strip()
        cdata = _CDATA_PATTERN.match(value)
        if cdata:
            value = cdata.group(1).strip()
        value = html.unescape(value)
        if value:
            urls.append(value)
    return urls


def _is_http_url(value: str) -> bool:
    """Return True when value uses HTTP(S)."""
    parsed = urlparse(value)
    return parsed.scheme.lower() in {"http", "https"} and bool(parsed.netloc)


def load_sitemap(
    source: str | Path,
    session: requests.Session | None = None,
    timeout_seconds: int = IndexNowConfig.SITEMAP_FETCH_TIMEOUT_SECONDS,
) -> str:
    """Load sitemap XML from a local file path or an HTTP(S) URL."""
    source_text = str(source)
    if _is_http_url(source_text):
        http_session = session or requests.Session()
        try:
            response = http_session.get(
                source_text,
                headers={"User-Agent": IndexNowConfig.USER_AGENT},
                timeout=timeout_seconds,
            )
            response.raise_for_status()
            return response.text
        except requests.RequestException as exc:
            raise IoError(f"Failed to fetch sitemap {source_text}: {exc}") from exc
        finally:
            if session is None:
                http_session.close()

    try:
        return Path(source_text).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IoError(f"Failed to read sitemap {source_text}: {exc}") from exc


def collect_urls(
    domain: str,
    sitemap_path: str | Path = IndexNowConfig.SITEMAP_PATH,
    exclude_paths: Sequence[str] = IndexNowConfig.DEFAULT_EXCLUDE_PATHS,
    session: requests.Session | None = None,
    run_id: str | None = None,
) -> list[str]:
    """
    Collect every indexable URL of ``domain`` listed in the sitemap.

    Returned URLs are https, trailing-slash normalized, on exactly ``domain``,
    not excluded, unique and sorted. An empty or all-invalid sitemap yields [].

    Raises:
        ConfigError: If domain is empty.
        IoError: If the sitemap cannot be read.
    """
    if not domain or not str(domain).strip():
        raise ConfigError("Domain is required")

    raw_urls = parse_sitemap_xml(load_sitemap(sitemap_path, session=session))

    invalid = 0
    excluded = 0
    candidates: list[str] = []
    for raw in raw_urls:
        normalized = validate_url(raw, domain)
        if normalized is None:
            invalid += 1
            continue
        if not should_index(normalized, exclude_paths):
            excluded += 1
            continue
        candidates.append(normalized)

    unique = dedupe_urls(candidates)
    emit_json_event(
        "sitemap_urls_collected",
        run_id=run_id,
        component="collector",
        domain=domain,
        sitemap=str(sitemap_path),
        extracted=len(raw_urls),
        invalid=invalid,
        excluded=excluded,
        duplicates=len(candidates) - len(unique),
        collected=len(unique),
    )
    return sorted(unique)
