"""PanelReader - read comics one panel at a time.

Detects panels on each rasterized page with OpenCV contour analysis,
orders them in reading order and presents the focused panel zooming in
over an ambient glow. Without OpenCV every page is a single panel.
"""

__version__ = "1.0.0"

from .config import AppConfig, DetectorConfig, PresenterConfig
from .detector import PanelDetector
from .geometry import BoundingBox, Polygon, full_page_polygon
from .navigation import Cursor, Navigator, PageLoader
from .presenter import AnimationTask, PanelPresenter, PanelView
from .reader import PanelReader

__all__ = [
    "AppConfig",
    "DetectorConfig",
    "PresenterConfig",
    "PanelDetector",
    "BoundingBox",
    "Polygon",
    "full_page_polygon",
    "Cursor",
    "Navigator",
    "PageLoader",
    "AnimationTask",
    "PanelPresenter",
    "PanelView",
    "PanelReader",
]
