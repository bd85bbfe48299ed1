from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .errors import CrawlError
from .models import CrawlSummary


app = typer.Typer(add_completion=False)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _run_crawl(cfg, start_url: str) -> CrawlSummary:
    from .crawler import run_crawl

    try:
        return run_crawl(
            start_url,
            cfg.max_pages,
            cfg.max_consecutive_no_new_pages,
            cfg.concurrency,
            config=cfg,
        )
    except CrawlError as e:
        console.print(f"crawl failed: {type(e).__name__}: {e}", markup=False)
        raise typer.Exit(2)


@app.command()
def crawl(
    start_url: str = typer.Option("", help="Listing URL to start from (or CRAWL_START_URL)."),
    max_pages: int = typer.Option(0, help="Max listing pages (or CRAWL_MAX_PAGES)."),
    max_no_new: int = typer.Option(0, help="Stop after this many pages without new postings."),
    concurrency: int = typer.Option(0, help="Detail pages rendered at once."),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window."),
    db: Optional[Path] = typer.Option(None, help="SQLite path (or JOBHUNTER_DB)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Crawl listing pages and store new postings."""
    from .config import load_config

    _configure_logging(verbose)
    cfg = load_config(
        start_url=start_url or None,
        max_pages=max_pages or None,
        max_consecutive_no_new_pages=max_no_new or None,
        concurrency=concurrency or None,
        headless=False if headed else None,
        db_path=db,
    )

    summary = _run_crawl(cfg, cfg.start_url)
    console.print(summary.line("weworkremotely"))


def _print_jobs(jobs, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps([j.to_item() for j in jobs], indent=2, ensure_ascii=False))
        return

    table = Table(title=f"Jobs ({len(jobs)})", expand=True)
    table.add_column("Posted", no_wrap=True)
    table.add_column("Title")
    table.add_column("Company")
    table.add_column("Location")
    table.add_column("URL", overflow="fold")
    for j in jobs:
        table.add_row(j.posted_at[:10], escape(j.title), escape(j.company), escape(j.location), j.apply_url)
    console.print(table)


@app.command()
def jobs(
    source: str = typer.Option("weworkremotely", help="Only jobs from this source ('' for all)."),
    limit: int = typer.Option(0, help="Max rows (0 = all)."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON items."),
    db: Optional[Path] = typer.Option(None, help="SQLite path (or JOBHUNTER_DB)."),
) -> None:
    """List stored postings, newest first."""
    from .config import load_config
    from .db import JobStore

    cfg = load_config(db_path=db)
    store = JobStore(cfg.db_path)
    try:
        rows = store.list_jobs(source=source or None, limit=limit or None)
    finally:
        store.close()
    _print_jobs(rows, as_json)


@app.command()
def search(
    term: str = typer.Argument(..., help="Keyword matched against title, company and description."),
    live: bool = typer.Option(False, "--live", help="Crawl the site search for TERM first."),
    page: int = typer.Option(1, help="First search results page for --live."),
    pages: int = typer.Option(1, help="Search result pages to crawl with --live."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON items."),
    db: Optional[Path] = typer.Option(None, help="SQLite path (or JOBHUNTER_DB)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Search stored postings, optionally refreshing them from the site first."""
    from .config import load_config
    from .db import JobStore
    from .sources.weworkremotely import WWR, search_url

    term = term.strip()
    if not term:
        console.print("term is required")
        raise typer.Exit(2)

    cfg = load_config(db_path=db)
    if live:
        _configure_logging(verbose)
        live_cfg = cfg.with_overrides(max_pages=max(1, pages))
        summary = _run_crawl(live_cfg, search_url(term, page=max(1, page)))
        console.print(summary.line(WWR.source))

    store = JobStore(cfg.db_path)
    try:
        rows = store.search(term, source=WWR.source)
    finally:
        store.close()
    _print_jobs(rows, as_json)


@app.command()
def doctor() -> None:
    """Quick dependency check: SQLite store, robots.txt reachability, Playwright."""
    from .config import load_config
    from .smoke import smoke_checks

    cfg = load_config()
    results = smoke_checks(cfg)

    bad = 0
    for r in results:
        status = "OK" if r.ok else "FAIL"
        console.print(f"{status} {r.name}: {r.detail}")
        if not r.ok:
            bad += 1

    raise typer.Exit(1 if bad else 0)


if __name__ == "__main__":
    app()
