"""Rasterized page data shared by detection, navigation and rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from PySide6.QtGui import QImage

from .geometry import Polygon


@dataclass
class Page:
    """One rasterized page. The bitmap is owned by the rasterizer cache."""
    index: int
    image: QImage
    width: int
    height: int

    @classmethod
    def from_qimage(cls, index: int, image: QImage) -> "Page":
        return cls(index=index, image=image, width=image.width(), height=image.height())


@dataclass
class LoadedPage:
    """A page together with its panels in reading order (never empty)."""
    page: Page
    panels: List[Polygon]

    @property
    def panel_count(self) -> int:
        return len(self.panels)
