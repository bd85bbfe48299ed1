from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List

from .config import CrawlConfig
from .errors import PersistenceFailure
from .models import JobRecord
from .retry import retry_async


logger = logging.getLogger(__name__)


def unique_by_id(records: Iterable[JobRecord]) -> List[JobRecord]:
    seen: set[str] = set()
    out: List[JobRecord] = []
    for r in records:
        if not r or not r.id or r.id in seen:
            continue
        seen.add(r.id)
        out.append(r)
    return out


class FlushPipeline:
    """Buffers records and writes them to the store in fixed-size chunks.

    A chunk that still fails after retries goes back to the front of the
    buffer and the pipeline cools down. More than `max_requeues` such
    cycles in one session raises PersistenceFailure.
    """

    def __init__(self, store, cfg: CrawlConfig):
        self.store = store
        self.cfg = cfg
        self.threshold = cfg.flush_threshold
        self.buffer: List[JobRecord] = []
        self.flushed = 0
        self.flush_sizes: List[int] = []
        self.requeues = 0

    async def push(self, record: JobRecord) -> None:
        self.buffer.append(record)
        if len(self.buffer) >= self.threshold:
            await self.flush()

    async def flush(self) -> int:
        if not self.buffer:
            return 0

        chunk = self.buffer[: self.threshold]
        del self.buffer[: self.threshold]
        unique = unique_by_id(chunk)
        if not unique:
            return 0

        try:
            await retry_async(
                lambda: self.store.batch_upsert(unique, self.cfg.max_batch_size),
                max_attempts=self.cfg.retry_attempts,
                base_delay_s=self.cfg.retry_base_delay_s,
                jitter_s=self.cfg.retry_jitter_s,
                label="batch_upsert",
            )
        except Exception as e:
            self.buffer[:0] = unique
            self.requeues += 1
            logger.error(
                "batch upsert failed kind=persistence size=%d requeues=%d ids=%s error=%s",
                len(unique),
                self.requeues,
                ",".join(r.id for r in unique[:5]),
                e,
            )
            if self.requeues > self.cfg.max_flush_requeues:
                raise PersistenceFailure(
                    f"store unavailable after {self.requeues} requeue cycles ({len(self.buffer)} records unflushed)"
                ) from e
            await asyncio.sleep(self.cfg.flush_cooldown_s)
            return 0

        self.flushed += len(unique)
        self.flush_sizes.append(len(unique))
        logger.info("batch upsert ok size=%d total=%d", len(unique), self.flushed)
        return len(unique)

    async def drain(self) -> None:
        """Flush until the buffer is empty (raises once the requeue budget is spent)."""
        while self.buffer:
            await self.flush()
