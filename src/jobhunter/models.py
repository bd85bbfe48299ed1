from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class JobRecord:
    id: str
    title: str
    company: str
    location: str
    description: str
    description_preview: str
    apply_url: str
    source: str
    remote_ok: bool
    posted_at: str
    # Filled in by the store.
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_item(self) -> Dict[str, Any]:
        item = {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "description": self.description,
            "descriptionPreview": self.description_preview,
            "applyUrl": self.apply_url,
            "source": self.source,
            "remoteOk": self.remote_ok,
            "postedAt": self.posted_at,
        }
        if self.created_at is not None:
            item["createdAt"] = self.created_at
        if self.updated_at is not None:
            item["updatedAt"] = self.updated_at
        return item

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "JobRecord":
        return cls(
            id=item["id"],
            title=item.get("title") or "",
            company=item.get("company") or "",
            location=item.get("location") or "",
            description=item.get("description") or "",
            description_preview=item.get("descriptionPreview") or "",
            apply_url=item.get("applyUrl") or "",
            source=item.get("source") or "",
            remote_ok=bool(item.get("remoteOk")),
            posted_at=item.get("postedAt") or "",
            created_at=item.get("createdAt"),
            updated_at=item.get("updatedAt"),
        )


@dataclass(frozen=True)
class ExtractOutcome:
    """Result of one detail-page task. `failure` is None on success."""

    url: str
    record: Optional[JobRecord] = None
    failure: Optional[str] = None  # navigation|not_detail|error


@dataclass
class CrawlSummary:
    start_url: str
    pages_visited: int = 0
    links_found: int = 0
    new_candidates: int = 0
    records_extracted: int = 0
    records_flushed: int = 0
    records_skipped: int = 0
    not_detail: int = 0
    flush_requeues: int = 0
    known_ids_loaded: int = 0
    stop_reason: str = ""
    flush_sizes: List[int] = field(default_factory=list)

    def line(self, source: str) -> str:
        return (
            f"{source}: pages={self.pages_visited} scraped={self.records_extracted} "
            f"new={self.new_candidates} flushed={self.records_flushed} "
            f"skipped={self.records_skipped} stop={self.stop_reason}"
        )
