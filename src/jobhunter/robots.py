from __future__ import annotations

import logging
from typing import Callable, Optional
from urllib.parse import urljoin

import requests


logger = logging.getLogger(__name__)

ROBOTS_TIMEOUT_S = 5


def fetch_text(url: str, user_agent: str = "*", timeout_s: int = ROBOTS_TIMEOUT_S) -> str:
    """GET `url` and return its body. Raises on network errors and non-2xx."""
    resp = requests.get(url, headers={"User-Agent": user_agent}, timeout=timeout_s)
    resp.raise_for_status()
    return resp.text or ""


def _agent_matches(declared: str, user_agent: str) -> bool:
    declared = declared.strip().lower()
    if not declared:
        return False
    if declared == "*":
        return True
    # Product token only: "JobHunterBot/1.0 (+mail)" is matched by a "jobhunterbot" group.
    token = user_agent.strip().split("/", 1)[0].split(" ", 1)[0].lower()
    return declared.split("/", 1)[0].strip() == token


def disallows_everything(robots_txt: str, user_agent: str) -> bool:
    """True when a group that applies to `user_agent` has `Disallow: /`.

    Consecutive User-agent lines share one group; the group closes at the
    next User-agent line that follows a rule.
    """

    group: list[str] = []
    group_has_rules = False
    for raw in robots_txt.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip().lower()
        value = value.strip()

        if key == "user-agent":
            if group_has_rules:
                group = []
                group_has_rules = False
            group.append(value)
            continue

        if not group:
            continue
        group_has_rules = True
        if key == "disallow" and value == "/":
            if any(_agent_matches(ua, user_agent) for ua in group):
                return True
    return False


def is_allowed(
    base_origin: str,
    user_agent: str,
    fetch: Optional[Callable[[str], str]] = None,
) -> bool:
    """Advisory robots check for a whole origin. Fails open on any error."""

    robots_url = urljoin(base_origin, "/robots.txt")
    fetch = fetch or (lambda url: fetch_text(url, user_agent=user_agent))
    try:
        text = fetch(robots_url)
    except Exception as e:
        logger.warning("robots fetch failed kind=policy url=%s error=%s (allowing)", robots_url, e)
        return True

    try:
        denied = disallows_everything(text, user_agent)
    except Exception as e:
        logger.warning("robots parse failed kind=policy url=%s error=%s (allowing)", robots_url, e)
        return True

    if denied:
        logger.error("robots disallows origin kind=policy url=%s user_agent=%s", robots_url, user_agent)
    return not denied
