import numpy as np
import pytest

from panelreader.config import DetectorConfig
from panelreader.detector import (
    FALLBACK_COVER,
    FALLBACK_EMPTY,
    FALLBACK_SPLASH,
    FALLBACK_UNAVAILABLE,
    PanelDetector,
)
from panelreader.geometry import BoundingBox, full_page_polygon
from panelreader.reading_order import sort_reading_order

from conftest import FakeVision, make_page, rect_contour

W, H = 800, 1000
PAGE_AREA = W * H


def test_without_vision_every_page_is_one_panel():
    det = PanelDetector(DetectorConfig(), vision=None)
    panels = det.detect(make_page(5, W, H))
    assert panels == [full_page_polygon(W, H)]
    assert panels[0].bbox == BoundingBox(0, 0, W, H)
    assert det.last_fallback == FALLBACK_UNAVAILABLE


def test_first_pages_forced_to_full_page():
    vision = FakeVision([rect_contour(10, 10, 390, 480), rect_contour(410, 10, 790, 480)])
    det = PanelDetector(vision=vision)
    assert det.detect(make_page(0, W, H), is_first_pages=True) == [full_page_polygon(W, H)]
    assert det.last_fallback == FALLBACK_COVER
    assert vision.calls == 0


def test_splash_contour_short_circuits():
    # 5%, 15% and 75% of an 800x1000 page
    vision = FakeVision([
        rect_contour(0, 0, 200, 200, area=0.05 * PAGE_AREA),
        rect_contour(0, 300, 400, 600, area=0.15 * PAGE_AREA),
        rect_contour(0, 0, 800, 750, area=0.75 * PAGE_AREA),
    ])
    det = PanelDetector(vision=vision)
    assert det.detect(make_page(3, W, H)) == [full_page_polygon(W, H)]
    assert det.last_fallback == FALLBACK_SPLASH


def test_noise_only_falls_back_to_full_page():
    vision = FakeVision([rect_contour(0, 0, 50, 50), rect_contour(100, 100, 150, 200)])
    det = PanelDetector(vision=vision)
    assert det.detect(make_page(4, W, H)) == [full_page_polygon(W, H)]
    assert det.last_fallback == FALLBACK_EMPTY


def test_panels_are_orthogonal_and_inside_the_page():
    vision = FakeVision([rect_contour(20, 20, 380, 470), rect_contour(420, 20, 780, 470),
                         rect_contour(20, 520, 780, 980)])
    det = PanelDetector(vision=vision)
    panels = det.detect(make_page(2, W, H))
    assert len(panels) == 3
    assert det.last_fallback is None
    for poly in panels:
        assert poly.is_orthogonal()
        box = poly.bbox
        assert 0 <= box.min_x <= box.max_x <= W
        assert 0 <= box.min_y <= box.max_y <= H
    assert panels[0].bbox == BoundingBox(20, 20, 380, 470)


def test_detection_error_is_absorbed():
    class BrokenVision(FakeVision):
        def outer_contours(self, mask):
            raise RuntimeError("boom")

    det = PanelDetector(vision=BrokenVision())
    assert det.detect(make_page(2, W, H)) == [full_page_polygon(W, H)]


def test_large_pages_are_downscaled_and_mapped_back():
    vision = FakeVision([rect_contour(100, 100, 1000, 900)])
    det = PanelDetector(DetectorConfig(max_working_width=2400), vision=vision)
    rgba = np.full((2000, 4800, 4), 255, dtype=np.uint8)
    panels = det.detect_array(rgba, 4800, 2000)
    assert vision.resized_to == (2400, 1000)
    assert panels[0].bbox == BoundingBox(200, 200, 2000, 1800)


def _grid_page():
    cv2 = pytest.importorskip("cv2")
    img = np.full((H, W, 4), 255, dtype=np.uint8)
    black = (0, 0, 0, 255)
    for x0, y0, x1, y1 in [(30, 30, 380, 470), (420, 30, 770, 470),
                           (30, 520, 380, 970), (420, 520, 770, 970)]:
        cv2.rectangle(img, (x0, y0), (x1, y1), black, 6)
        cv2.circle(img, ((x0 + x1) // 2, (y0 + y1) // 2), 60, (90, 90, 90, 255), -1)
    return img


def test_opencv_detects_bordered_grid():
    from panelreader.vision import load_vision

    rgba = _grid_page()
    vision = load_vision()
    assert vision is not None
    det = PanelDetector(vision=vision)
    panels = det.detect_array(rgba, W, H)
    assert len(panels) == 4

    ordered = sort_reading_order(panels, H)
    expected = [(30, 30), (420, 30), (30, 520), (420, 520)]
    for poly, (ex, ey) in zip(ordered, expected):
        assert poly.is_orthogonal()
        assert abs(poly.left_x - ex) <= 10
        assert abs(poly.top_y - ey) <= 10
