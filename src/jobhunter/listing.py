from __future__ import annotations

import logging
from typing import List
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from selectolax.parser import HTMLParser

from .config import CrawlConfig
from .errors import NavigationFailure
from .links import filter_candidates
from .retry import retry_async
from .sources.weworkremotely import WWR, SiteProfile


logger = logging.getLogger(__name__)


def listing_url(start_url: str, page_index: int) -> str:
    """Page 0 is `start_url` verbatim; later pages set the `page` query param.

    A `page` already present in `start_url` is taken as the first page number.
    """

    if page_index <= 0:
        return start_url

    parts = urlsplit(start_url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    first = 1
    kept = []
    for k, v in query:
        if k == "page":
            try:
                first = max(1, int(v))
            except ValueError:
                pass
            continue
        kept.append((k, v))
    kept.append(("page", str(first + page_index)))
    return urlunsplit(parts._replace(query=urlencode(kept)))


def collect_links(tree: HTMLParser, page_url: str, profile: SiteProfile = WWR) -> List[str]:
    hrefs = []
    for a in tree.css("a[href]"):
        href = (a.attributes.get("href") or "").strip()
        if href:
            hrefs.append(urljoin(page_url, href))
    return filter_candidates(hrefs, profile.base_origin, profile)


async def next_page(
    tab,
    start_url: str,
    page_index: int,
    cfg: CrawlConfig,
    profile: SiteProfile = WWR,
) -> List[str]:
    """Candidate detail URLs on listing page `page_index`.

    An empty list means the page is exhausted or could not be rendered.
    """

    url = listing_url(start_url, page_index)
    logger.info("fetching listing page=%d url=%s", page_index + 1, url)

    async def _attempt() -> HTMLParser:
        await tab.render(url)
        await tab.settle(cfg.listing_settle_ms)
        return await tab.snapshot()

    try:
        tree = await retry_async(
            _attempt,
            max_attempts=cfg.retry_attempts,
            base_delay_s=cfg.retry_base_delay_s,
            jitter_s=cfg.retry_jitter_s,
            retry_on=(NavigationFailure,),
            label=f"listing {url}",
        )
    except NavigationFailure as e:
        logger.error("listing failed kind=navigation url=%s error=%s", url, e)
        return []

    links = collect_links(tree, url, profile)
    logger.info("links found page=%d count=%d", page_index + 1, len(links))
    return links
