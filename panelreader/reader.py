"""PanelReader: navigation and presentation behind one facade.

This is the surface the UI talks to: async `next()`/`previous()`, a
snapshot of the focused panel and the cursor label for the status bar.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Optional, Tuple

from .cache import PanelCache
from .config import AppConfig
from .detector import PanelDetector
from .navigation import Cursor, Navigator, PageLoader
from .presenter import AnimationTask, PanelPresenter, PanelView
from .rasterizer import Rasterizer
from .vision import VisionCapability, load_vision

log = logging.getLogger("Reader")

_AUTO = object()


class PanelReader:
    """Reads a document one panel at a time."""

    def __init__(self, rasterizer: Rasterizer, config: Optional[AppConfig] = None,
                 vision=_AUTO, executor: Optional[Executor] = None):
        """Wire the reader.

        Args:
            rasterizer: Page source
            config: Application configuration, defaults if None
            vision: Contour capability; resolved with load_vision() when omitted,
                pass None to disable detection
            executor: Where detection runs, the shared detector pool if None
        """
        self.config = config or AppConfig()
        if vision is _AUTO:
            vision = load_vision()
        self.vision: Optional[VisionCapability] = vision
        self.rasterizer = rasterizer
        self.detector = PanelDetector(self.config.detector, vision)
        self.loader = PageLoader(rasterizer, self.detector,
                                 PanelCache(self.config.panel_cache_size), executor)
        self.navigator = Navigator(self.loader)
        self.presenter = PanelPresenter(self.config.presenter, self.config.viewport_size)

    @property
    def cursor(self) -> Cursor:
        return self.navigator.cursor

    @property
    def is_busy(self) -> bool:
        return self.navigator.is_busy

    async def open(self) -> Optional[AnimationTask]:
        await self.navigator.open()
        return self._activate()

    async def next(self) -> bool:
        moved = await self.navigator.next()
        if moved:
            self._activate()
        return moved

    async def previous(self) -> bool:
        moved = await self.navigator.previous()
        if moved:
            self._activate()
        return moved

    async def go_to_page(self, page_index: int) -> bool:
        moved = await self.navigator.go_to_page(page_index)
        if moved:
            self._activate()
        return moved

    def _activate(self) -> Optional[AnimationTask]:
        page = self.navigator.current_page
        panel = self.navigator.current_panel
        if page is None or panel is None:
            return None
        return self.presenter.activate(page, panel)

    def current_panel_view(self) -> Optional[PanelView]:
        return self.presenter.current_panel_view()

    def cursor_label(self) -> Tuple[int, int, int, int]:
        return self.navigator.cursor_label()

    def status_text(self) -> str:
        page, pages, panel, panels = self.cursor_label()
        return f"Page {page}/{pages} - Panel {panel}/{panels}"

    def close(self) -> None:
        """Stop the animation and release cached pages."""
        self.presenter.cancel()
        self.loader.cache.clear()
        close = getattr(self.rasterizer, "close", None)
        if close is not None:
            close()
