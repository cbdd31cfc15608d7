"""Data models for link ingestion."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Bucket(str, Enum):
    PROJECT = "Project"
    AREA = "Area"
    RESOURCE = "Resource"
    ARCHIVE = "Archive"


@dataclass
class Para:
    """Category assignment. `bucket` is always set."""

    bucket: Bucket
    name: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class PageMetadata:
    """Best-effort title and description for a URL."""

    title: Optional[str] = None
    description: Optional[str] = None


@dataclass
class LinkRecord:
    """Stored link record."""

    id: Optional[int]
    url: str
    normalized_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    source_note: Optional[str] = None

    # Classification data
    para: Optional[Para] = None
    tags: Optional[list[str]] = None
    subcategory: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "normalizedUrl": self.normalized_url,
            "title": self.title,
            "description": self.description,
            "sourceNote": self.source_note,
            "para": (
                {
                    "bucket": self.para.bucket.value,
                    "name": self.para.name,
                    "reason": self.para.reason,
                }
                if self.para
                else None
            ),
            "tags": self.tags,
            "subcategory": self.subcategory,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class IngestResult:
    """Outcome of ingesting a single submitted URL."""

    success: bool
    link_id: Optional[int] = None
    error: Optional[str] = None
    expanded_urls: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data: dict = {"success": self.success}
        if self.link_id is not None:
            data["linkId"] = self.link_id
        if self.error is not None:
            data["error"] = self.error
        if self.expanded_urls:
            data["extractedUrls"] = self.expanded_urls
        return data


@dataclass
class BatchItemResult:
    """Per-URL entry of a batch ingestion, in submission order."""

    url: str
    result: IngestResult

    def to_dict(self) -> dict:
        return {"url": self.url, **self.result.to_dict()}


@dataclass
class DedupReport:
    """Counts returned by the bulk dedup maintenance pass."""

    removed: int
    remaining: int
