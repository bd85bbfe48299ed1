from __future__ import annotations

import importlib.util
import sqlite3
from dataclasses import dataclass
from urllib.parse import urljoin

from .config import CrawlConfig
from .robots import fetch_text
from .sources.weworkremotely import WWR


@dataclass(frozen=True)
class CheckResult:
    name: str
    ok: bool
    detail: str = ""


def smoke_checks(cfg: CrawlConfig) -> list[CheckResult]:
    results: list[CheckResult] = []

    # SQLite
    db_path = cfg.db_path
    if not db_path.exists():
        results.append(CheckResult("sqlite", False, f"missing {db_path} (created on first crawl)"))
    else:
        try:
            con = sqlite3.connect(str(db_path))
            n = con.execute("SELECT COUNT(*) FROM jobs").fetchone()[0]
            con.close()
            results.append(CheckResult("sqlite", True, f"jobs={n}"))
        except sqlite3.Error as e:
            results.append(CheckResult("sqlite", False, f"error: {e}"))

    # robots.txt
    robots_url = urljoin(WWR.base_origin, "/robots.txt")
    try:
        text = fetch_text(robots_url, user_agent=cfg.user_agent)
        results.append(CheckResult("robots", True, f"{len(text.splitlines())} lines"))
    except Exception as e:
        results.append(CheckResult("robots", False, f"{e}"))

    # Playwright
    if importlib.util.find_spec("playwright") is None:
        results.append(CheckResult("playwright", False, "not installed (pip install playwright)"))
    else:
        results.append(CheckResult("playwright", True, "importable (run `playwright install chromium` once)"))

    return results
