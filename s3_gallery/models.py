from __future__ import annotations
"""Data models representing bucket listings and gallery entries."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class FileObject:
    """A single object entry returned by the listing endpoint."""

    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


@dataclass
class ListingPage:
    """Represents one page of a cursor-paginated bucket listing."""

    objects: list[FileObject] = field(default_factory=list)
    is_truncated: bool = False
    next_token: Optional[str] = None

    @property
    def has_more(self) -> bool:
        # A truncated page without a token cannot be continued.
        return bool(self.is_truncated and self.next_token)


@dataclass(frozen=True)
class RemovedEntry:
    """Snapshot of entries taken out of a projection by key."""

    key: str
    positions: tuple[tuple[int, FileObject], ...] = ()

    @property
    def objects(self) -> list[FileObject]:
        return [obj for _, obj in self.positions]
