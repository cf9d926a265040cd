"""Image conversion utilities for PanelReader.

Optimized QImage <-> NumPy conversions with proper memory handling.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from PySide6.QtCore import Qt
from PySide6.QtGui import QImage

log = logging.getLogger("Panels")

RGB = Tuple[int, int, int]


def qimage_to_numpy_rgba(img: QImage) -> Optional[NDArray]:
    """Convert QImage to NumPy array (HxWx4 RGBA uint8).

    Handles PySide6 memoryview correctly and strips stride padding.

    Args:
        img: QImage to convert

    Returns:
        NumPy array of shape (height, width, 4) or None for a null image
    """
    if img.isNull():
        return None

    if img.format() != QImage.Format.Format_RGBA8888:
        img = img.convertToFormat(QImage.Format.Format_RGBA8888)

    w, h = img.width(), img.height()
    bpl = img.bytesPerLine()

    buf = bytes(img.constBits())
    arr = np.frombuffer(buf, dtype=np.uint8)[: h * bpl]

    # bytesPerLine may be > width * 4
    arr = arr.reshape((h, bpl))[:, : w * 4].reshape((h, w, 4))

    # Contiguous copy for OpenCV compatibility
    return np.ascontiguousarray(arr)


def average_color(img: QImage, sample: int = 50) -> RGB:
    """Mean RGB over a `sample` x `sample` smooth downsample of the image."""
    if img.isNull():
        return (0, 0, 0)
    small = img.scaled(
        sample, sample,
        Qt.AspectRatioMode.IgnoreAspectRatio,
        Qt.TransformationMode.SmoothTransformation,
    )
    arr = qimage_to_numpy_rgba(small)
    if arr is None:
        return (0, 0, 0)
    mean = arr[:, :, :3].reshape(-1, 3).mean(axis=0)
    r, g, b = (int(round(float(v))) for v in mean)
    log.debug("ambient color=(%d, %d, %d)", r, g, b)
    return (r, g, b)
