"""Page rasterizers: turn a document into per-page bitmaps.

Each rasterizer renders on its own single worker thread, the way
`QPdfPageRenderer` does in multi-threaded mode, so the event loop keeps
painting while a page is produced.
"""

from __future__ import annotations

import asyncio
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Protocol, Sequence

from PySide6.QtCore import QSizeF
from PySide6.QtGui import QImage
from PySide6.QtPdf import QPdfDocument

from .cache import LRUCache
from .config import AppConfig
from .errors import RasterizationFailure
from .page import Page

log = logging.getLogger("Reader")

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff")


class Rasterizer(Protocol):
    """Anything able to render page `i` of a document to a bitmap."""

    @property
    def page_count(self) -> int: ...

    async def rasterize(self, page_index: int) -> Page: ...


def _check_load_success(err) -> bool:
    """Check if a PDF loaded successfully (handles Qt version differences)."""
    for name in ("None_", "NoError"):
        value = getattr(QPdfDocument.Error, name, None)
        if value is not None and err == value:
            return True
    return err == 0 or getattr(err, "value", None) == 0


class PdfRasterizer:
    """Renders PDF pages through QtPdf at a fixed DPI."""

    def __init__(self, path: str, dpi: float = 108.0, max_pages: Optional[int] = None,
                 cache_size: int = 8):
        self.path = path
        self.dpi = dpi
        self._cache: LRUCache[int, Page] = LRUCache(cache_size)
        self._doc = QPdfDocument()
        err = self._doc.load(path)
        if not _check_load_success(err) or self._doc.pageCount() <= 0:
            raise RasterizationFailure(0, f"cannot open {os.path.basename(path)} ({err})")
        count = self._doc.pageCount()
        self._page_count = min(count, max_pages) if max_pages else count
        log.info("opened %s: %d pages (%d rendered max)", path, count, self._page_count)
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf-render")

    @property
    def page_count(self) -> int:
        return self._page_count

    async def rasterize(self, page_index: int) -> Page:
        if not 0 <= page_index < self._page_count:
            raise RasterizationFailure(page_index, "page out of range")
        cached = self._cache.get(page_index)
        if cached is not None:
            return cached

        loop = asyncio.get_running_loop()
        page = await loop.run_in_executor(self._worker, self._render, page_index)
        self._cache.put(page_index, page)
        return page

    def _render(self, page_index: int) -> Page:
        pts = self._doc.pagePointSize(page_index)
        scale = self.dpi / 72.0
        size = QSizeF(pts.width() * scale, pts.height() * scale).toSize()
        img = self._doc.render(page_index, size)
        if img.isNull():
            log.error("render failed for page %d of %s", page_index + 1, self.path)
            raise RasterizationFailure(page_index, "render returned a null image")

        page = Page.from_qimage(page_index, img.convertToFormat(QImage.Format.Format_RGBA8888))
        log.debug("rendered page %d at %dx%d", page_index + 1, page.width, page.height)
        return page

    def close(self) -> None:
        self._worker.shutdown(wait=True)
        self._cache.clear()
        self._doc.close()


class ImageRasterizer:
    """Serves a list of image files, one page per file."""

    def __init__(self, paths: Sequence[str], cache_size: int = 8):
        if not paths:
            raise RasterizationFailure(0, "no images to open")
        self._paths: List[str] = list(paths)
        self._cache: LRUCache[int, Page] = LRUCache(cache_size)
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="image-decode")

    @property
    def page_count(self) -> int:
        return len(self._paths)

    async def rasterize(self, page_index: int) -> Page:
        if not 0 <= page_index < len(self._paths):
            raise RasterizationFailure(page_index, "page out of range")
        cached = self._cache.get(page_index)
        if cached is not None:
            return cached

        loop = asyncio.get_running_loop()
        page = await loop.run_in_executor(self._worker, self._decode, page_index)
        self._cache.put(page_index, page)
        return page

    def _decode(self, page_index: int) -> Page:
        path = self._paths[page_index]
        img = QImage(path)
        if img.isNull():
            log.error("cannot decode image %s", path)
            raise RasterizationFailure(page_index, f"cannot decode {os.path.basename(path)}")

        return Page.from_qimage(page_index, img.convertToFormat(QImage.Format.Format_RGBA8888))

    def close(self) -> None:
        self._worker.shutdown(wait=True)
        self._cache.clear()


def open_document(path: str, config: Optional[AppConfig] = None) -> Rasterizer:
    """Pick a rasterizer for a PDF, a single image or a directory of images."""
    config = config or AppConfig()
    if os.path.isdir(path):
        images = sorted(
            os.path.join(path, name) for name in os.listdir(path)
            if name.lower().endswith(IMAGE_SUFFIXES)
        )
        if config.max_pages:
            images = images[: config.max_pages]
        return ImageRasterizer(images, cache_size=config.image_cache_size)

    lower = path.lower()
    if lower.endswith(".pdf"):
        return PdfRasterizer(path, dpi=config.render_dpi, max_pages=config.max_pages,
                             cache_size=config.image_cache_size)
    if lower.endswith(IMAGE_SUFFIXES):
        return ImageRasterizer([path], cache_size=config.image_cache_size)
    raise RasterizationFailure(0, f"unsupported file type: {os.path.basename(path)}")
