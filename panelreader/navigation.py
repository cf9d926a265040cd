"""Panel navigation: the (page, panel) cursor and lazy per-page detection.

Detection and ordering only run when the cursor crosses a page boundary.
A transition completes (the cursor moves) only once the destination page is
rasterized and its panels are known; a rasterization failure propagates
and leaves the cursor where it was.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .cache import PanelCache
from .config import DetectorConfig
from .detector import PanelDetector
from .geometry import Polygon
from .page import LoadedPage, Page
from .rasterizer import Rasterizer
from .reading_order import sort_reading_order

log = logging.getLogger("Reader")


@dataclass(frozen=True)
class Cursor:
    """Position of the reader: 0-based page and panel indices."""
    page_index: int = 0
    panel_index: int = 0


class PageLoader:
    """Rasterizes a page and produces its ordered, non-empty panel list."""

    def __init__(self, rasterizer: Rasterizer, detector: PanelDetector,
                 cache: Optional[PanelCache] = None,
                 executor: Optional[Executor] = None):
        self.rasterizer = rasterizer
        self.detector = detector
        self.cache = cache or PanelCache()
        self._executor = executor

    @property
    def config(self) -> DetectorConfig:
        return self.detector.config

    @property
    def page_count(self) -> int:
        return self.rasterizer.page_count

    def panels_for(self, page: Page) -> List[Polygon]:
        """Detect and order the panels of a page (blocking)."""
        c = self.config
        is_first_pages = page.index < c.cover_pages
        polygons = self.detector.detect(page, is_first_pages)
        return sort_reading_order(polygons, page.height, c.row_tolerance_frac, c.reading_rtl)

    async def load(self, page_index: int) -> LoadedPage:
        """Rasterize `page_index` and fetch or compute its panels.

        Raises:
            RasterizationFailure: the page bitmap could not be produced
        """
        page = await self.rasterizer.rasterize(page_index)

        config_hash = self.config.config_hash()
        panels = self.cache.get(page_index, config_hash)
        if panels is None:
            executor = self._executor or PanelDetector.get_executor()
            loop = asyncio.get_running_loop()
            panels = await loop.run_in_executor(executor, self.panels_for, page)
            self.cache.put(page_index, config_hash, panels)
            log.info("page %d: %d panel(s)", page_index + 1, len(panels))
        return LoadedPage(page=page, panels=panels)


class Navigator:
    """Owns the reading cursor and moves it panel by panel.

    Overlapping transitions are rejected: while one `next()`/`previous()` is
    awaiting a page, further calls return False without touching the cursor.
    """

    def __init__(self, loader: PageLoader):
        self.loader = loader
        self._cursor = Cursor()
        self._current: Optional[LoadedPage] = None
        self._busy = False

    @property
    def page_count(self) -> int:
        return self.loader.page_count

    @property
    def cursor(self) -> Cursor:
        return self._cursor

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def current_page(self) -> Optional[Page]:
        return self._current.page if self._current else None

    @property
    def panels(self) -> List[Polygon]:
        return list(self._current.panels) if self._current else []

    @property
    def current_panel(self) -> Optional[Polygon]:
        if self._current is None:
            return None
        return self._current.panels[self._cursor.panel_index]

    def cursor_label(self) -> Tuple[int, int, int, int]:
        """(page number, page count, panel number, panel count), 1-based."""
        panel_count = self._current.panel_count if self._current else 0
        return (self._cursor.page_index + 1, self.page_count,
                self._cursor.panel_index + 1, panel_count)

    async def open(self) -> None:
        """Load the first page and place the cursor on its first panel."""
        await self._run(self._enter(0, first=True))

    async def next(self) -> bool:
        """Advance one panel, crossing to the next page when needed.

        Returns:
            True if the cursor moved, False at the end or while busy
        """
        if self._current is None or self._busy:
            return False
        cur = self._cursor
        if cur.panel_index < self._current.panel_count - 1:
            self._cursor = Cursor(cur.page_index, cur.panel_index + 1)
            return True
        if cur.page_index < self.page_count - 1:
            return await self._run(self._enter(cur.page_index + 1, first=True))
        return False

    async def previous(self) -> bool:
        """Step back one panel, crossing to the previous page's last panel."""
        if self._current is None or self._busy:
            return False
        cur = self._cursor
        if cur.panel_index > 0:
            self._cursor = Cursor(cur.page_index, cur.panel_index - 1)
            return True
        if cur.page_index > 0:
            return await self._run(self._enter(cur.page_index - 1, first=False))
        return False

    async def go_to_page(self, page_index: int) -> bool:
        """Jump to the first panel of `page_index`."""
        if not 0 <= page_index < self.page_count:
            return False
        return await self._run(self._enter(page_index, first=True))

    async def _run(self, transition) -> bool:
        if self._busy:
            transition.close()
            log.debug("navigation already in progress, ignoring request")
            return False
        self._busy = True
        try:
            await transition
        finally:
            self._busy = False
        return True

    async def _enter(self, page_index: int, first: bool) -> None:
        loaded = await self.loader.load(page_index)
        # Commit only after the page is fully loaded
        self._current = loaded
        panel_index = 0 if first else loaded.panel_count - 1
        self._cursor = Cursor(page_index, panel_index)
        log.debug("cursor -> page %d panel %d", page_index + 1, panel_index + 1)
