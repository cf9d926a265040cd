"""Contour-based comic panel detector.

Pipeline:
1. Grayscale + 5x5 Gaussian blur to suppress scan noise
2. Inverted Otsu threshold so ink and borders become foreground
3. Outer contours only, filtered by area relative to the page
4. Orthogonal regularization of each surviving contour

Any failure of the detection layer degrades to a single full-page panel:
reading must stay possible without panel intelligence.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from numpy.typing import NDArray

from .config import DetectorConfig
from .errors import DetectionUnavailable, NoPanelsFound
from .geometry import Polygon, full_page_polygon, regularize_orthogonal, simplify_orthogonal
from .image_utils import qimage_to_numpy_rgba
from .page import Page
from .vision import Contour, VisionCapability

log = logging.getLogger("Panels")

FALLBACK_COVER = "cover"
FALLBACK_SPLASH = "splash"
FALLBACK_UNAVAILABLE = "unavailable"
FALLBACK_EMPTY = "empty"
FALLBACK_ERROR = "error"


class PanelDetector:
    """Detects candidate panel polygons on one page (unordered).

    The vision capability is injected and may be None, in which case every
    page is a single full-page panel.
    """

    # Thread pool shared by every detector instance
    _executor: Optional[ThreadPoolExecutor] = None
    _executor_lock = threading.Lock()

    def __init__(self, config: Optional[DetectorConfig] = None,
                 vision: Optional[VisionCapability] = None):
        """Initialize detector.

        Args:
            config: Detection parameters. Uses defaults if None.
            vision: Contour-analysis capability, None when OpenCV is absent.
        """
        self.config = config or DetectorConfig()
        self.vision = vision
        self._lock = threading.Lock()
        self._last_fallback: Optional[str] = None

    @classmethod
    def get_executor(cls) -> ThreadPoolExecutor:
        """Get or create shared thread pool executor."""
        with cls._executor_lock:
            if cls._executor is None:
                cls._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="panel_detect")
            return cls._executor

    @property
    def available(self) -> bool:
        return self.vision is not None

    @property
    def last_fallback(self) -> Optional[str]:
        """Why the last pass returned the full page, or None (thread-safe)."""
        with self._lock:
            return self._last_fallback

    def _set_fallback(self, reason: Optional[str]) -> None:
        with self._lock:
            self._last_fallback = reason

    def detect(self, page: Page, is_first_pages: bool = False) -> List[Polygon]:
        """Detect panels on a rasterized page.

        Args:
            page: Page to analyse
            is_first_pages: Cover/title heuristic, forces the full page

        Returns:
            At least one polygon in page pixel coordinates, not yet ordered
        """
        if is_first_pages:
            return self._fallback(page.width, page.height, FALLBACK_COVER)
        if self.vision is None:
            return self._fallback(page.width, page.height, FALLBACK_UNAVAILABLE)
        arr = qimage_to_numpy_rgba(page.image)
        if arr is None:
            return self._fallback(page.width, page.height, FALLBACK_EMPTY)
        return self.detect_array(arr, page.width, page.height)

    def detect_array(self, rgba: NDArray, width: int, height: int,
                     is_first_pages: bool = False) -> List[Polygon]:
        """Detect panels on an HxWx4 RGBA array of size `width` x `height`."""
        if is_first_pages:
            return self._fallback(width, height, FALLBACK_COVER)
        self._set_fallback(None)
        try:
            polygons = self._detect(rgba, width, height)
        except DetectionUnavailable:
            return self._fallback(width, height, FALLBACK_UNAVAILABLE)
        except NoPanelsFound:
            return self._fallback(width, height, FALLBACK_EMPTY)
        except Exception:
            log.exception("panel detection failed")
            return self._fallback(width, height, FALLBACK_ERROR)

        return polygons

    def _fallback(self, width: int, height: int, reason: str) -> List[Polygon]:
        log.info("full-page panel (%s) for %dx%d page", reason, width, height)
        self._set_fallback(reason)
        return [full_page_polygon(width, height)]

    def _detect(self, rgba: NDArray, width: int, height: int) -> List[Polygon]:
        vision = self.vision
        if vision is None:
            raise DetectionUnavailable("no contour capability")

        c = self.config
        log.debug("params: blur=%d min_area=%.3f splash=%.2f max_w=%d",
                  c.blur_kernel, c.min_area_pct, c.splash_area_pct, c.max_working_width)

        # Work on a downscaled copy of very large pages
        scale = 1.0
        work_w, work_h = width, height
        if c.max_working_width and width > c.max_working_width:
            scale = c.max_working_width / width
            work_w = int(width * scale)
            work_h = max(1, int(height * scale))
            log.debug("scaling %dx%d -> %dx%d for detection", width, height, work_w, work_h)
            rgba = vision.resize(rgba, work_w, work_h)

        gray = vision.to_gray(rgba)
        blur = vision.blur(gray, c.blur_kernel)
        mask = vision.threshold_inverted_otsu(blur)
        contours = vision.outer_contours(mask)
        log.debug("%d outer contours", len(contours))

        page_area = float(work_w * work_h)
        polygons: List[Polygon] = []
        for contour in contours:
            if contour.area < page_area * c.min_area_pct:
                continue
            if contour.area > page_area * c.splash_area_pct:
                log.debug("contour covers %.0f%% of page -> splash",
                          100.0 * contour.area / page_area)
                return self._fallback(width, height, FALLBACK_SPLASH)
            poly = self._polygon_from_contour(contour, scale, width, height)
            if poly is not None:
                polygons.append(poly)

        log.debug("%d panels after area filter", len(polygons))
        if not polygons:
            raise NoPanelsFound()
        return polygons

    def _polygon_from_contour(self, contour: Contour, scale: float,
                              width: int, height: int) -> Optional[Polygon]:
        pts = regularize_orthogonal(contour.points)
        if self.config.simplify:
            pts = simplify_orthogonal(pts)
        if len(pts) < 3:
            return None
        poly = Polygon(tuple(pts))
        if scale != 1.0:
            poly = poly.scaled(1.0 / scale)
        return poly.clamped(width, height)
