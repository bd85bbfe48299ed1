from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode


BASE_ORIGIN = "https://weworkremotely.com"
DEFAULT_START_URL = f"{BASE_ORIGIN}/remote-jobs/search?term=node"


@dataclass(frozen=True)
class SiteProfile:
    source: str
    base_origin: str
    listings_segment: str
    # Whole path segments that mark non-detail pages.
    excluded_segments: tuple[str, ...]

    # Any of these present means the rendered page is a job detail page.
    detail_selectors: tuple[str, ...]
    title_selectors: tuple[str, ...]
    company_selectors: tuple[str, ...]
    # Stripped from a company node before its text is read.
    company_noise_selectors: tuple[str, ...]
    company_link_selector: str
    header_anchor_selectors: tuple[str, ...]
    location_selectors: tuple[str, ...]
    description_selectors: tuple[str, ...]


WWR = SiteProfile(
    source="weworkremotely",
    base_origin=BASE_ORIGIN,
    listings_segment="/remote-jobs/",
    excluded_segments=("new", "all-jobs", "search"),
    detail_selectors=(
        ".listing-container",
        ".lis-container",
        ".listing-body",
        ".content",
        "article",
        "main",
    ),
    title_selectors=(
        "h1",
        ".listing-header h1",
        ".lis-container__header__hero__company-info__title",
        ".job-title",
    ),
    company_selectors=(
        ".company",
        ".company a",
        ".listing-header .company",
        ".lis-container__job__sidebar__companyDetails__info__title h3",
        ".company-card h2",
    ),
    company_noise_selectors=(
        "svg",
        "img",
        "i",
        "button",
        ".icon",
        ".apply",
        ".lis-container__job__sidebar__companyDetails__info__apply",
        "a[href*='apply']",
    ),
    company_link_selector="a[href*='/company/']",
    header_anchor_selectors=(
        ".listing-header a",
        ".lis-container__header a",
        "header a",
    ),
    location_selectors=(
        ".region",
        ".location",
        ".listing-header .location",
        ".lis-container__job__sidebar__job-about__list__item--full span",
    ),
    description_selectors=(
        ".listing-container",
        ".lis-container__job__content__description",
        ".listing-body",
        ".content",
        "article",
        "main",
    ),
)


def search_url(term: str, page: int = 1) -> str:
    params = {"term": term}
    if page > 1:
        params["page"] = str(page)
    return f"{BASE_ORIGIN}/remote-jobs/search?{urlencode(params)}"
