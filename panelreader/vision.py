"""Optional OpenCV contour-analysis capability.

The capability is resolved once per process. When OpenCV is not installed
`load_vision()` returns None and detection degrades to the full-page panel.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from numpy.typing import NDArray

log = logging.getLogger("Panels")


@dataclass
class Contour:
    """An outer contour: enclosed area (px²) and its traced points."""
    area: float
    points: List[Tuple[int, int]]


class VisionCapability:
    """Thin wrapper over the OpenCV calls used by the panel detector."""

    def __init__(self, cv2_module):
        self._cv2 = cv2_module

    @property
    def version(self) -> str:
        return getattr(self._cv2, "__version__", "unknown")

    def to_gray(self, rgba: NDArray) -> NDArray:
        return self._cv2.cvtColor(rgba, self._cv2.COLOR_RGBA2GRAY)

    def blur(self, gray: NDArray, ksize: int) -> NDArray:
        return self._cv2.GaussianBlur(gray, (ksize, ksize), 0)

    def threshold_inverted_otsu(self, gray: NDArray) -> NDArray:
        """Binarize with Otsu's threshold; ink becomes foreground (255)."""
        cv2 = self._cv2
        _, mask = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)
        return mask

    def outer_contours(self, mask: NDArray) -> List[Contour]:
        """Outer (non-nested) contours with every boundary point kept."""
        cv2 = self._cv2
        found = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
        # OpenCV 3 returns (image, contours, hierarchy), 4+ (contours, hierarchy)
        contours = found[0] if len(found) == 2 else found[1]
        result = []
        for c in contours:
            pts = [(int(p[0][0]), int(p[0][1])) for p in c]
            result.append(Contour(area=float(cv2.contourArea(c)), points=pts))
        return result

    def resize(self, arr: NDArray, width: int, height: int) -> NDArray:
        return self._cv2.resize(arr, (width, height), interpolation=self._cv2.INTER_AREA)


_vision: Optional[VisionCapability] = None
_vision_checked = False
_vision_lock = threading.Lock()


def load_vision() -> Optional[VisionCapability]:
    """Return the process-wide vision capability, or None if OpenCV is absent."""
    global _vision, _vision_checked
    with _vision_lock:
        if not _vision_checked:
            _vision_checked = True
            try:
                import cv2
            except ImportError:
                log.info("OpenCV not available -> panel detection disabled")
            else:
                _vision = VisionCapability(cv2)
                log.debug("OpenCV %s loaded", _vision.version)
        return _vision

