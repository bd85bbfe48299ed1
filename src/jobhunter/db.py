from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .models import JobRecord


SCHEMA = """
CREATE TABLE IF NOT EXISTS jobs (
  id TEXT PRIMARY KEY,
  title TEXT NOT NULL,
  company TEXT NOT NULL,
  location TEXT NOT NULL,
  description TEXT NOT NULL,
  description_preview TEXT NOT NULL,
  apply_url TEXT NOT NULL,
  source TEXT NOT NULL,
  remote_ok INTEGER NOT NULL,
  posted_at TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_jobs_source_posted_at
  ON jobs(source, posted_at);
"""

_COLUMNS = (
    "id, title, company, location, description, description_preview, apply_url, "
    "source, remote_ok, posted_at, created_at, updated_at"
)

_clock_lock = threading.Lock()
_last_ts: Optional[datetime] = None


def _utcnow_iso() -> str:
    """UTC timestamp that never repeats or goes backwards within this process."""
    global _last_ts
    with _clock_lock:
        now = datetime.now(timezone.utc)
        if _last_ts is not None and now <= _last_ts:
            now = _last_ts + timedelta(microseconds=1)
        _last_ts = now
    return now.isoformat(timespec="microseconds").replace("+00:00", "Z")


def _row_to_record(row: sqlite3.Row) -> JobRecord:
    return JobRecord(
        id=row["id"],
        title=row["title"],
        company=row["company"],
        location=row["location"],
        description=row["description"],
        description_preview=row["description_preview"],
        apply_url=row["apply_url"],
        source=row["source"],
        remote_ok=bool(row["remote_ok"]),
        posted_at=row["posted_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class JobStore:
    """SQLite persistence for job records, upserted by `id`."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        if str(path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(path))
        self.conn.row_factory = sqlite3.Row
        try:
            self.conn.execute("PRAGMA journal_mode=WAL;")
            self.conn.execute("PRAGMA busy_timeout=3000;")
        except sqlite3.DatabaseError:
            pass
        self._init()

    def _init(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def _write(self, cur: sqlite3.Cursor, job: JobRecord, now: str) -> None:
        if not job.id:
            raise ValueError("job id required")
        values = (
            job.title,
            job.company,
            job.location,
            job.description,
            job.description_preview,
            job.apply_url,
            job.source,
            int(job.remote_ok),
            job.posted_at,
        )
        # Try insert. If the id exists, overwrite everything but created_at.
        try:
            cur.execute(
                f"INSERT INTO jobs ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (job.id, *values, now, now),
            )
        except sqlite3.IntegrityError:
            cur.execute(
                """
                UPDATE jobs
                SET title = ?, company = ?, location = ?, description = ?,
                    description_preview = ?, apply_url = ?, source = ?,
                    remote_ok = ?, posted_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (*values, now, job.id),
            )

    def upsert(self, job: JobRecord) -> None:
        cur = self.conn.cursor()
        try:
            self._write(cur, job, _utcnow_iso())
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

    def batch_upsert(self, jobs: Sequence[JobRecord], max_batch_size: int = 25) -> int:
        """Upsert in chunks of `max_batch_size`, one transaction per chunk.

        Returns: number of records written.
        """
        if max_batch_size < 1:
            raise ValueError("max_batch_size must be >= 1")
        written = 0
        for i in range(0, len(jobs), max_batch_size):
            chunk = jobs[i : i + max_batch_size]
            cur = self.conn.cursor()
            try:
                for job in chunk:
                    self._write(cur, job, _utcnow_iso())
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
            written += len(chunk)
        return written

    def scan_page(self, limit: int, cursor: Optional[str] = None) -> Tuple[List[JobRecord], Optional[str]]:
        """Keyset scan ordered by id. `next_cursor is None` marks the last page."""
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if cursor is None:
            rows = self.conn.execute(
                f"SELECT {_COLUMNS} FROM jobs ORDER BY id LIMIT ?", (limit + 1,)
            ).fetchall()
        else:
            rows = self.conn.execute(
                f"SELECT {_COLUMNS} FROM jobs WHERE id > ? ORDER BY id LIMIT ?", (cursor, limit + 1)
            ).fetchall()

        items = [_row_to_record(r) for r in rows[:limit]]
        next_cursor = items[-1].id if len(rows) > limit else None
        return items, next_cursor

    def get(self, job_id: str) -> Optional[JobRecord]:
        row = self.conn.execute(f"SELECT {_COLUMNS} FROM jobs WHERE id = ?", (job_id,)).fetchone()
        return _row_to_record(row) if row else None

    def count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM jobs").fetchone()[0]

    def list_jobs(self, source: Optional[str] = None, limit: Optional[int] = None) -> List[JobRecord]:
        q = f"SELECT {_COLUMNS} FROM jobs"
        args: list = []
        if source:
            q += " WHERE source = ?"
            args.append(source)
        q += " ORDER BY posted_at DESC, id"
        if limit:
            q += " LIMIT ?"
            args.append(limit)
        return [_row_to_record(r) for r in self.conn.execute(q, args).fetchall()]

    def search(self, term: str, source: Optional[str] = None) -> List[JobRecord]:
        """Case-insensitive substring match over title, company and description."""
        q = (term or "").strip().lower()
        if not q:
            return []
        return [
            job
            for job in self.list_jobs(source=source)
            if q in " ".join([job.title, job.company, job.description, job.description_preview]).lower()
        ]

    def close(self) -> None:
        self.conn.close()
