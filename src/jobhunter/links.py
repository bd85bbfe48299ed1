from __future__ import annotations

from typing import Iterable, List
from urllib.parse import urljoin, urlparse

from .sources.weworkremotely import WWR, SiteProfile


def _segments(path: str) -> List[str]:
    return [p for p in (path or "").split("/") if p]


def is_candidate(raw_url: str, base_origin: str, profile: SiteProfile = WWR) -> bool:
    """True when `raw_url` looks like a job detail page on the listing site."""

    if not raw_url:
        return False
    try:
        u = urlparse(urljoin(base_origin, raw_url.strip()))
    except ValueError:
        return False

    if u.scheme not in ("http", "https") or not u.netloc:
        return False
    if profile.listings_segment not in u.path:
        return False
    if u.query or u.fragment:
        return False
    parts = _segments(u.path)
    if any(seg in profile.excluded_segments for seg in parts):
        return False
    # Slugged detail pages have a hyphen; category/index pages usually don't.
    return bool(parts) and "-" in parts[-1]


def filter_candidates(raw_urls: Iterable[str], base_origin: str, profile: SiteProfile = WWR) -> List[str]:
    """Dedupe (order preserving) and keep only detail-page candidates."""
    out: List[str] = []
    seen: set[str] = set()
    for raw in raw_urls:
        url = urljoin(base_origin, (raw or "").strip())
        if url in seen:
            continue
        seen.add(url)
        if is_candidate(url, base_origin, profile):
            out.append(url)
    return out


def derive_job_id(url: str, source: str = WWR.source) -> str:
    """Stable record id: `<source>-<last path segment>`."""
    parts = _segments(urlparse(url).path)
    raw_id = parts[-1] if parts else url
    return f"{source}-{raw_id}"
