"""Link health checks for bookmark URLs.

HEAD is tried first and GET used as a fallback. 404/410 means dead unless
the host is on the exclusion list (private repositories answer 404 to
anonymous clients); any other failure counts as unreachable.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from http import HTTPStatus
from urllib.parse import urlsplit

import requests

from .model import Bookmark

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT_SECONDS = 10
MAX_REDIRECTS = 10


class LinkStatus(enum.Enum):
    HEALTHY = "healthy"
    DEAD = "dead"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class LinkResult:
    bookmark: Bookmark
    status: LinkStatus
    status_code: int = 0
    error: str = ""

    @property
    def reason(self) -> str:
        if self.status is LinkStatus.DEAD:
            return f"HTTP {self.status_code}"
        return self.error or "Unreachable"


def normalize_error(message: str) -> str:
    """Collapse verbose transport errors into short categories."""
    lower = message.lower()
    if "name or service not known" in lower or "nodename nor servname" in lower or "no such host" in lower:
        return "DNS failure"
    if "timed out" in lower or "timeout" in lower:
        return "Timeout"
    if "connection refused" in lower:
        return "Connection refused"
    if "certificate" in lower:
        return "TLS/certificate error"
    if "network is unreachable" in lower:
        return "Network unreachable"
    if "ssl" in lower or "tls" in lower:
        return "TLS error"
    return message


def is_excluded_domain(url: str, exclude_domains: list[str]) -> bool:
    host = (urlsplit(url).hostname or "").lower()
    if not host:
        return False
    for domain in exclude_domains:
        domain = domain.lower()
        if host == domain or host.endswith("." + domain):
            return True
    return False


def _status_text(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return f"HTTP {code}"


def check_url(
    session: requests.Session,
    bookmark: Bookmark,
    exclude_domains: list[str],
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> LinkResult:
    try:
        response = session.head(bookmark.url, timeout=timeout, allow_redirects=True)
    except requests.RequestException:
        try:
            response = session.get(bookmark.url, timeout=timeout, allow_redirects=True, stream=True)
        except requests.RequestException as exc:
            return LinkResult(bookmark, LinkStatus.UNREACHABLE, error=normalize_error(str(exc)))
    try:
        code = response.status_code
    finally:
        response.close()

    if 200 <= code < 400:
        return LinkResult(bookmark, LinkStatus.HEALTHY, status_code=code)
    if code in (404, 410):
        if is_excluded_domain(bookmark.url, exclude_domains):
            return LinkResult(
                bookmark,
                LinkStatus.UNREACHABLE,
                status_code=code,
                error="Possibly private (auth required)",
            )
        return LinkResult(bookmark, LinkStatus.DEAD, status_code=code)
    return LinkResult(bookmark, LinkStatus.UNREACHABLE, status_code=code, error=_status_text(code))


def check_urls(
    bookmarks: list[Bookmark],
    exclude_domains: list[str],
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    on_progress: Callable[[int, int], None] | None = None,
    session: requests.Session | None = None,
) -> list[LinkResult]:
    """Check every bookmark concurrently; results keep input order."""
    if not bookmarks:
        return []
    http = session or requests.Session()
    http.max_redirects = MAX_REDIRECTS
    total = len(bookmarks)
    results: list[LinkResult] = []
    with ThreadPoolExecutor(max_workers=max(1, concurrency), thread_name_prefix="lazymarks-cull") as executor:
        futures = [executor.submit(check_url, http, bookmark, exclude_domains, timeout) for bookmark in bookmarks]
        for completed, future in enumerate(futures, start=1):
            results.append(future.result())
            if on_progress is not None:
                on_progress(completed, total)
    logger.info(
        "checked %d links: %d dead, %d unreachable",
        total,
        sum(1 for r in results if r.status is LinkStatus.DEAD),
        sum(1 for r in results if r.status is LinkStatus.UNREACHABLE),
    )
    return results


@dataclass
class CullGroup:
    """Problem links sharing one status, or one error category."""

    label: str
    description: str
    status: LinkStatus
    error: str
    results: list[LinkResult]


def group_results(results: list[LinkResult]) -> list[CullGroup]:
    """Group problem results: all dead links together, unreachable ones by error.

    Healthy results are dropped. The dead group comes first, then the rest by
    size, largest first; equal sizes keep first-seen order.
    """
    groups: dict[str, CullGroup] = {}
    for result in results:
        if result.status is LinkStatus.HEALTHY:
            continue
        if result.status is LinkStatus.DEAD:
            key, label, description = "dead", "DEAD", "404/410 responses"
        else:
            key, label, description = f"unreachable:{result.error}", result.reason, "Could not reach"
        group = groups.get(key)
        if group is None:
            group = groups[key] = CullGroup(label, description, result.status, result.error, [])
        group.results.append(result)
    return sorted(
        groups.values(),
        key=lambda group: (group.status is not LinkStatus.DEAD, -len(group.results)),
    )
