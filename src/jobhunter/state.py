from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Set, Tuple

from .config import CrawlConfig
from .links import derive_job_id
from .models import JobRecord
from .retry import retry_async
from .sources.weworkremotely import WWR


logger = logging.getLogger(__name__)

STOP_MAX_PAGES = "max_pages"
STOP_NO_NEW_PAGES = "no_new_pages"


@dataclass
class CrawlSession:
    """Per-invocation crawl state.

    Only the session's controlling coroutine mutates `seen_urls` and
    `known_ids`; extraction tasks just return values.
    """

    start_url: str
    max_pages: int
    max_consecutive_no_new_pages: int
    concurrency: int
    source: str = WWR.source

    page_index: int = 0
    consecutive_no_new: int = 0
    seen_urls: Set[str] = field(default_factory=set)
    known_ids: Set[str] = field(default_factory=set)
    stop_reason: str = ""

    def __post_init__(self) -> None:
        for name in ("max_pages", "max_consecutive_no_new_pages", "concurrency"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValueError(f"{name} must be an integer >= 1, got {value!r}")

    def is_new(self, url: str) -> bool:
        return url not in self.seen_urls and derive_job_id(url, self.source) not in self.known_ids

    def classify(self, urls: Iterable[str]) -> List[str]:
        """Return the new subset of `urls` and mark it as seen.

        Two URLs that map to the same id keep only the first one.
        """

        new: List[str] = []
        claimed: Set[str] = set()
        for url in urls:
            if not self.is_new(url):
                continue
            job_id = derive_job_id(url, self.source)
            if job_id in claimed:
                continue
            claimed.add(job_id)
            self.seen_urls.add(url)
            new.append(url)
        return new

    def remember(self, record: JobRecord) -> None:
        self.known_ids.add(record.id)

    def end_page(self, new_count: int) -> bool:
        """Advance past the current listing page. Returns False when the session must stop."""
        self.page_index += 1
        if new_count == 0:
            self.consecutive_no_new += 1
            if self.consecutive_no_new >= self.max_consecutive_no_new_pages:
                self.stop_reason = STOP_NO_NEW_PAGES
                return False
        else:
            self.consecutive_no_new = 0

        if self.page_index >= self.max_pages:
            self.stop_reason = STOP_MAX_PAGES
            return False
        return True


async def load_known_ids(store, cfg: CrawlConfig) -> Tuple[Set[str], int]:
    """Walk the whole store with `scan_page`. Returns (ids, pages visited)."""

    ids: Set[str] = set()
    pages = 0
    cursor = None
    while True:
        items, cursor = await retry_async(
            lambda c=cursor: store.scan_page(cfg.scan_page_limit, c),
            max_attempts=cfg.retry_attempts,
            base_delay_s=cfg.retry_base_delay_s,
            jitter_s=cfg.retry_jitter_s,
            label="scan_page",
        )
        pages += 1
        for item in items:
            ids.add(item.id if isinstance(item, JobRecord) else item["id"])
        if cursor is None:
            break
    logger.info("known ids loaded count=%d pages=%d", len(ids), pages)
    return ids, pages
