from __future__ import annotations
"""Client-side projection of a paginated, filtered bucket listing."""
import logging
from typing import Callable

from .models import FileObject, ListingPage, RemovedEntry
from .ui_utils import filter_images, is_image_key

FetchPageFn = Callable[[str | None, int], ListingPage]

LOGGER = logging.getLogger(__name__)


class ViewProjection:
    """Ordered, filtered view over successive listing pages.

    The projection is owned by a single writer. ``load_initial`` replaces the
    held entries, ``load_more`` appends the next page and ``remove``/``take``
    drop entries by key without touching the pagination cursor. A failed fetch
    propagates its exception and leaves the projection unchanged.
    """

    def __init__(
        self,
        fetch_page: FetchPageFn,
        *,
        predicate: Callable[[str], bool] = is_image_key,
        deduplicate_keys: bool = False,
    ) -> None:
        self._fetch_page = fetch_page
        self._predicate = predicate
        self.deduplicate_keys = deduplicate_keys
        self._items: list[FileObject] = []
        self._cursor: str | None = None
        self._has_more = False

    @property
    def items(self) -> tuple[FileObject, ...]:
        return tuple(self._items)

    @property
    def cursor(self) -> str | None:
        return self._cursor

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def can_load_more(self) -> bool:
        return self._has_more and self._cursor is not None

    def __len__(self) -> int:
        return len(self._items)

    def reset(self) -> None:
        self._items = []
        self._cursor = None
        self._has_more = False

    def load_initial(self, page_size: int) -> int:
        page = self._fetch_page(None, page_size)
        self.apply_initial(page)
        return len(self._items)

    def load_more(self, page_size: int) -> bool:
        """Append the next page; return ``False`` when there is nothing to load."""
        if not self.can_load_more:
            return False
        page = self._fetch_page(self._cursor, page_size)
        self.apply_more(page)
        return True

    def apply_initial(self, page: ListingPage) -> None:
        entries = self._filter(page)
        if self.deduplicate_keys:
            entries = self._unique(entries, set())
        self._items = entries
        self._update_cursor(page)
        LOGGER.debug("Projection reset with %d of %d entries", len(entries), len(page.objects))

    def apply_more(self, page: ListingPage) -> None:
        entries = self._filter(page)
        if self.deduplicate_keys:
            entries = self._unique(entries, {obj.key for obj in self._items})
        self._items.extend(entries)
        self._update_cursor(page)
        LOGGER.debug("Projection appended %d entries (total %d)", len(entries), len(self._items))

    def remove(self, key: str) -> bool:
        return self.take(key) is not None

    def take(self, key: str) -> RemovedEntry | None:
        """Remove every entry with ``key`` and return a snapshot for restoring."""
        positions = tuple((idx, obj) for idx, obj in enumerate(self._items) if obj.key == key)
        if not positions:
            return None
        self._items = [obj for obj in self._items if obj.key != key]
        return RemovedEntry(key=key, positions=positions)

    def restore(self, removed: RemovedEntry) -> bool:
        """Reinsert a snapshot taken by :meth:`take` at its former positions."""
        if any(obj.key == removed.key for obj in self._items):
            return False
        for idx, obj in removed.positions:
            self._items.insert(min(idx, len(self._items)), obj)
        return bool(removed.positions)

    def _filter(self, page: ListingPage) -> list[FileObject]:
        return filter_images(page.objects, self._predicate)

    def _update_cursor(self, page: ListingPage) -> None:
        self._has_more = page.has_more
        self._cursor = page.next_token

    @staticmethod
    def _unique(entries: list[FileObject], seen: set[str]) -> list[FileObject]:
        unique: list[FileObject] = []
        for obj in entries:
            if obj.key in seen:
                continue
            seen.add(obj.key)
            unique.append(obj)
        return unique
