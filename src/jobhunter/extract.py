from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse

from selectolax.parser import HTMLParser, Node

from .config import CrawlConfig
from .errors import NavigationFailure, NotADetailPage
from .links import derive_job_id
from .models import JobRecord
from .retry import retry_async
from .sources.weworkremotely import WWR, SiteProfile
from .text_utils import (
    DESCRIPTION_MAX_CHARS,
    PREVIEW_CHARS,
    clean_text,
    is_remote,
    title_from_slug,
    truncate,
)


logger = logging.getLogger(__name__)

# Header anchors with this text are navigation, not a company name.
_TRIVIAL_ANCHOR_TEXT = {"apply", "apply now", "back", "home", "log in", "login", "sign up", "post a job"}


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _css_first(tree: HTMLParser | Node, selector: str) -> Optional[Node]:
    try:
        return tree.css_first(selector)
    except Exception as e:
        logger.debug("bad selector %r: %s", selector, e)
        return None


def _node_text(node: Node, drop: Iterable[str] = ()) -> str:
    drop = list(drop)
    if not drop:
        return clean_text(node.text(separator=" "))
    # Work on a copy so the page tree stays intact for other fields.
    frag = HTMLParser(node.html or "")
    for sel in drop:
        for child in frag.css(sel):
            child.decompose()
    root = frag.body if frag.body is not None else frag.root
    return clean_text(root.text(separator=" ")) if root is not None else ""


def first_text(tree: HTMLParser, selectors: Iterable[str], drop: Iterable[str] = ()) -> str:
    """Text of the first selector that matches a node with non-empty text."""
    for sel in selectors:
        node = _css_first(tree, sel)
        if node is None:
            continue
        text = _node_text(node, drop)
        if text:
            return text
    return ""


def has_detail(tree: HTMLParser, profile: SiteProfile = WWR) -> bool:
    return any(_css_first(tree, sel) is not None for sel in profile.detail_selectors)


def extract_title(tree: HTMLParser, profile: SiteProfile = WWR) -> str:
    return first_text(tree, profile.title_selectors)


def extract_company(tree: HTMLParser, url: str, profile: SiteProfile = WWR) -> str:
    # 1) Known company containers, minus icons/buttons/apply links.
    company = first_text(tree, profile.company_selectors, drop=profile.company_noise_selectors)
    if company:
        return company

    # 2) Company profile link: /company/acme-corp -> "Acme Corp"
    link = _css_first(tree, profile.company_link_selector)
    if link is not None:
        href = urljoin(url, link.attributes.get("href") or "")
        parts = [p for p in urlparse(href).path.split("/") if p]
        if parts:
            name = title_from_slug(parts[-1])
            if name:
                return name

    # 3) Any meaningful anchor text in the header region.
    for sel in profile.header_anchor_selectors:
        try:
            anchors = tree.css(sel)
        except Exception:
            continue
        for a in anchors:
            text = clean_text(a.text(separator=" "))
            if len(text) >= 2 and text.lower() not in _TRIVIAL_ANCHOR_TEXT and "apply" not in text.lower():
                return text
    return ""


def extract_location(tree: HTMLParser, title: str, company: str, profile: SiteProfile = WWR) -> str:
    location = first_text(tree, profile.location_selectors)
    if not location and is_remote(title, company):
        location = "Remote"
    return location


def extract_description(tree: HTMLParser, profile: SiteProfile = WWR) -> str:
    text = first_text(tree, profile.description_selectors, drop=("script", "style", "noscript"))
    return truncate(text, DESCRIPTION_MAX_CHARS)


def _safe(field: str, url: str, fn, *args) -> str:
    try:
        return fn(*args)
    except Exception as e:
        logger.warning("field extraction failed kind=extract_error field=%s url=%s error=%s", field, url, e)
        return ""


def parse_job_detail(
    tree: HTMLParser,
    url: str,
    profile: SiteProfile = WWR,
    now: Optional[str] = None,
    require_marker: bool = True,
) -> JobRecord:
    """Build a JobRecord from a rendered detail page.

    Raises NotADetailPage when none of the detail markers is present, unless
    `require_marker` is False (the caller already saw a title element).
    """

    if require_marker and not has_detail(tree, profile):
        raise NotADetailPage(url)

    title = _safe("title", url, extract_title, tree, profile)
    company = _safe("company", url, extract_company, tree, url, profile)
    location = _safe("location", url, extract_location, tree, title, company, profile)
    description = _safe("description", url, extract_description, tree, profile)

    return JobRecord(
        id=derive_job_id(url, profile.source),
        title=title,
        company=company,
        location=location,
        description=description,
        description_preview=truncate(description, PREVIEW_CHARS) if description else "",
        apply_url=url,
        source=profile.source,
        remote_ok=is_remote(location, title),
        posted_at=now or _utcnow_iso(),
    )


async def extract_job(tab, url: str, cfg: CrawlConfig, profile: SiteProfile = WWR) -> Optional[JobRecord]:
    """Render `url` in `tab` and parse it.

    Returns None when the page is not a job posting. NavigationFailure is
    retried and re-raised once attempts are exhausted.
    """

    async def _attempt() -> JobRecord:
        tree = await tab.render(url)
        if not has_detail(tree, profile):
            if not await tab.wait_for(", ".join(profile.title_selectors), cfg.title_wait_ms):
                raise NotADetailPage(url)
        await tab.settle(cfg.detail_settle_ms)
        # A title that showed up during the wait is enough to treat the page as a posting.
        return parse_job_detail(await tab.snapshot(), url, profile, require_marker=False)

    try:
        return await retry_async(
            _attempt,
            max_attempts=cfg.retry_attempts,
            base_delay_s=cfg.retry_base_delay_s,
            jitter_s=cfg.retry_jitter_s,
            retry_on=(NavigationFailure,),
            label=f"extract {url}",
        )
    except NotADetailPage:
        logger.info("skip kind=not_detail url=%s", url)
        return None
