"""Bounded caches for rendered pages and per-page panel lists."""

from __future__ import annotations

from collections import OrderedDict
from threading import Lock
from typing import Generic, List, Optional, Tuple, TypeVar

from .geometry import Polygon

K = TypeVar('K')
V = TypeVar('V')


class LRUCache(Generic[K, V]):
    """Thread-safe mapping that forgets the least recently used entry.

    Rasterizers keep their last few page bitmaps here; `PanelCache` keeps
    ordered panels. Reads and writes both count as a use.
    """

    def __init__(self, capacity: int = 8):
        self.capacity = max(1, capacity)
        self._entries: "OrderedDict[K, V]" = OrderedDict()
        self._lock = Lock()

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            value = self._entries.get(key)
            if value is not None:
                self._entries.move_to_end(key)
            return value

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


PanelEntry = Tuple[int, List[Polygon]]


class PanelCache:
    """Ordered panels per page index, tagged with the detector config hash.

    A lookup under a different hash than the entry was stored with misses,
    so retuning the detector never serves stale panels.
    """

    def __init__(self, max_pages: int = 64):
        self._pages: LRUCache[int, PanelEntry] = LRUCache(max_pages)

    def get(self, page_index: int, config_hash: int) -> Optional[List[Polygon]]:
        entry = self._pages.get(page_index)
        if entry is None or entry[0] != config_hash:
            return None
        return list(entry[1])

    def put(self, page_index: int, config_hash: int, panels: List[Polygon]) -> None:
        self._pages.put(page_index, (config_hash, list(panels)))

    def clear(self) -> None:
        self._pages.clear()
