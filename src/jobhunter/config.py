from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from .sources.weworkremotely import DEFAULT_START_URL


DEFAULT_USER_AGENT = "JobHunterBot/1.0 (+you@example.com)"
DEFAULT_MAX_PAGES = 2
DEFAULT_MAX_CONSECUTIVE_NO_NEW_PAGES = 3
DEFAULT_CONCURRENCY = 3
DEFAULT_NAVIGATION_TIMEOUT_MS = 30_000
DEFAULT_FLUSH_THRESHOLD = 20
DEFAULT_MAX_BATCH_SIZE = 25
DEFAULT_SCAN_PAGE_LIMIT = 500
DEFAULT_DB_PATH = Path("data") / "jobhunter.sqlite3"


def _default_env_paths() -> list[Path]:
    """Search order for config.env: explicit override, repo-local, user-local."""

    p = (os.getenv("JOBHUNTER_CONFIG") or "").strip()
    if p:
        return [Path(p)]

    local = Path.cwd() / "data" / "config.env"
    home = Path.home() / ".jobhunter" / "config.env"
    xdg = Path(os.getenv("XDG_CONFIG_HOME") or (Path.home() / ".config")) / "jobhunter" / "config.env"
    return [local, home, xdg]


def find_config_env() -> Optional[Path]:
    for p in _default_env_paths():
        if p.exists():
            return p
    return None


@dataclass(frozen=True)
class CrawlConfig:
    user_agent: str = DEFAULT_USER_AGENT
    start_url: str = DEFAULT_START_URL
    max_pages: int = DEFAULT_MAX_PAGES
    max_consecutive_no_new_pages: int = DEFAULT_MAX_CONSECUTIVE_NO_NEW_PAGES
    concurrency: int = DEFAULT_CONCURRENCY
    headless: bool = True
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS

    flush_threshold: int = DEFAULT_FLUSH_THRESHOLD
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    flush_cooldown_s: float = 5.0
    # Cooldown cycles allowed per session before the store is declared down.
    max_flush_requeues: int = 5

    retry_attempts: int = 3
    retry_base_delay_s: float = 0.5
    retry_jitter_s: float = 0.2

    # Politeness pacing, seconds.
    batch_delay_s: tuple[float, float] = (0.7, 1.5)
    page_delay_s: tuple[float, float] = (1.5, 3.0)
    # Post-navigation settle before reading the DOM, milliseconds.
    detail_settle_ms: tuple[float, float] = (700.0, 1300.0)
    listing_settle_ms: tuple[float, float] = (900.0, 900.0)
    title_wait_ms: int = 3_000

    db_path: Path = DEFAULT_DB_PATH
    scan_page_limit: int = DEFAULT_SCAN_PAGE_LIMIT

    def __post_init__(self) -> None:
        for name in (
            "max_pages",
            "max_consecutive_no_new_pages",
            "concurrency",
            "navigation_timeout_ms",
            "flush_threshold",
            "max_batch_size",
            "retry_attempts",
            "scan_page_limit",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValueError(f"{name} must be an integer >= 1, got {value!r}")

        if self.max_flush_requeues < 0:
            raise ValueError("max_flush_requeues must be >= 0")
        for name in ("flush_cooldown_s", "retry_base_delay_s", "retry_jitter_s", "title_wait_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        for name in ("batch_delay_s", "page_delay_s", "detail_settle_ms", "listing_settle_ms"):
            lo, hi = getattr(self, name)
            if lo < 0 or hi < lo:
                raise ValueError(f"{name} must be an ordered non-negative range, got {(lo, hi)!r}")
        if not self.user_agent.strip():
            raise ValueError("user_agent must not be empty")
        if not self.start_url.strip():
            raise ValueError("start_url must not be empty")

    def with_overrides(self, **overrides) -> "CrawlConfig":
        known = {f.name for f in fields(self)}
        return replace(self, **{k: v for k, v in overrides.items() if k in known and v is not None})


def _load_envfile(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        os.environ.setdefault(k.strip(), v.strip())


def load_config(env_path: Optional[Path] = None, **overrides) -> CrawlConfig:
    env_path = env_path or find_config_env()
    if env_path is not None:
        _load_envfile(env_path)

    def geti(name: str, default: int) -> int:
        v = (os.getenv(name) or "").strip()
        if not v:
            return default
        try:
            return int(v)
        except ValueError:
            return default

    def gets(name: str, default: str) -> str:
        return (os.getenv(name) or "").strip() or default

    cfg = CrawlConfig(
        user_agent=gets("CRAWL_USER_AGENT", DEFAULT_USER_AGENT),
        start_url=gets("CRAWL_START_URL", DEFAULT_START_URL),
        max_pages=geti("CRAWL_MAX_PAGES", DEFAULT_MAX_PAGES),
        max_consecutive_no_new_pages=geti("CRAWL_MAX_NO_NEW_PAGES", DEFAULT_MAX_CONSECUTIVE_NO_NEW_PAGES),
        concurrency=geti("CRAWL_CONCURRENCY", DEFAULT_CONCURRENCY),
        headless=(os.getenv("CRAWL_HEADLESS") or "").strip().lower() != "false",
        navigation_timeout_ms=geti("CRAWL_NAV_TIMEOUT_MS", DEFAULT_NAVIGATION_TIMEOUT_MS),
        db_path=Path(gets("JOBHUNTER_DB", str(DEFAULT_DB_PATH))),
    )
    return cfg.with_overrides(**overrides)
