from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from .config import CrawlConfig
from .db import JobStore
from .errors import NavigationFailure, PolicyDenied
from .extract import extract_job
from .flush import FlushPipeline
from .listing import next_page
from .models import CrawlSummary, ExtractOutcome
from .render import PlaywrightRenderer
from .robots import is_allowed
from .scheduler import pace, run_batches
from .sources.weworkremotely import WWR, SiteProfile
from .state import CrawlSession, load_known_ids


logger = logging.getLogger(__name__)


async def _extract_outcome(renderer, url: str, cfg: CrawlConfig, profile: SiteProfile) -> ExtractOutcome:
    try:
        async with renderer.tab() as tab:
            record = await extract_job(tab, url, cfg, profile)
    except NavigationFailure as e:
        logger.warning("detail skipped kind=navigation url=%s error=%s", url, e)
        return ExtractOutcome(url=url, failure="navigation")
    except Exception as e:
        logger.error("detail skipped kind=extract_error url=%s error=%s", url, e)
        return ExtractOutcome(url=url, failure="error")
    if record is None:
        return ExtractOutcome(url=url, failure="not_detail")
    return ExtractOutcome(url=url, record=record)


async def crawl(
    start_url: str,
    max_pages: int,
    max_consecutive_no_new_pages: int,
    concurrency: int,
    *,
    config: Optional[CrawlConfig] = None,
    store=None,
    renderer=None,
    policy: Optional[Callable[[str, str], bool]] = None,
    profile: SiteProfile = WWR,
) -> CrawlSummary:
    """One incremental crawl session.

    Raises PolicyDenied, LaunchFailure, or PersistenceFailure; every
    per-page and per-item failure is logged and absorbed.
    """

    cfg = (config or CrawlConfig()).with_overrides(
        start_url=start_url,
        max_pages=max_pages,
        max_consecutive_no_new_pages=max_consecutive_no_new_pages,
        concurrency=concurrency,
    )
    session = CrawlSession(
        start_url=start_url,
        max_pages=max_pages,
        max_consecutive_no_new_pages=max_consecutive_no_new_pages,
        concurrency=concurrency,
        source=profile.source,
    )
    summary = CrawlSummary(start_url=start_url)
    logger.info(
        "crawl start url=%s max_pages=%d max_no_new=%d concurrency=%d",
        start_url,
        max_pages,
        max_consecutive_no_new_pages,
        concurrency,
    )

    policy = policy or is_allowed
    allowed = await asyncio.to_thread(policy, profile.base_origin, cfg.user_agent)
    if not allowed:
        raise PolicyDenied(profile.base_origin, cfg.user_agent)

    own_store = store is None
    store = store if store is not None else JobStore(cfg.db_path)
    try:
        session.known_ids, _pages = await load_known_ids(store, cfg)
        summary.known_ids_loaded = len(session.known_ids)

        pipeline = FlushPipeline(store, cfg)
        renderer = renderer if renderer is not None else PlaywrightRenderer(cfg)
        async with renderer:
            async with renderer.tab() as listing_tab:
                while True:
                    links = await next_page(listing_tab, start_url, session.page_index, cfg, profile)
                    summary.links_found += len(links)

                    new_urls = session.classify(links)
                    summary.new_candidates += len(new_urls)
                    logger.info(
                        "page=%d links=%d new=%d known=%d",
                        session.page_index + 1,
                        len(links),
                        len(new_urls),
                        len(session.known_ids),
                    )

                    async for outcomes in run_batches(
                        new_urls,
                        lambda url: _extract_outcome(renderer, url, cfg, profile),
                        concurrency=concurrency,
                        delay_s=cfg.batch_delay_s,
                    ):
                        for outcome in outcomes:
                            if outcome.record is None:
                                summary.records_skipped += 1
                                if outcome.failure == "not_detail":
                                    summary.not_detail += 1
                                continue
                            session.remember(outcome.record)
                            summary.records_extracted += 1
                            await pipeline.push(outcome.record)

                    if not session.end_page(len(new_urls)):
                        break
                    await pace(cfg.page_delay_s)

        summary.pages_visited = session.page_index
        summary.stop_reason = session.stop_reason
        try:
            await pipeline.drain()
        finally:
            summary.records_flushed = pipeline.flushed
            summary.flush_sizes = list(pipeline.flush_sizes)
            summary.flush_requeues = pipeline.requeues
    finally:
        if own_store:
            store.close()

    logger.info(
        "crawl done pages=%d extracted=%d flushed=%d skipped=%d stop=%s",
        summary.pages_visited,
        summary.records_extracted,
        summary.records_flushed,
        summary.records_skipped,
        summary.stop_reason,
    )
    return summary


def run_crawl(
    start_url: str,
    max_pages: int,
    max_consecutive_no_new_pages: int,
    concurrency: int,
    **kwargs,
) -> CrawlSummary:
    """Synchronous entry point for CLIs and schedulers."""
    return asyncio.run(crawl(start_url, max_pages, max_consecutive_no_new_pages, concurrency, **kwargs))
