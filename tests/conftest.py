"""Shared fixtures: offscreen Qt, synthetic pages, fake collaborators."""

import asyncio
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import numpy as np
import pytest
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

from panelreader.errors import RasterizationFailure
from panelreader.page import Page
from panelreader.vision import Contour


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


def make_image(w=800, h=1000, color=(255, 255, 255)):
    img = QImage(w, h, QImage.Format.Format_RGBA8888)
    img.fill(QColor(*color))
    return img


def make_page(index=0, w=800, h=1000, color=(255, 255, 255)):
    return Page.from_qimage(index, make_image(w, h, color))


def rect_contour(x0, y0, x1, y1, area=None):
    """Dense rectangle contour traced clockwise, one point per pixel."""
    pts = [(x, y0) for x in range(x0, x1)]
    pts += [(x1, y) for y in range(y0, y1)]
    pts += [(x, y1) for x in range(x1, x0, -1)]
    pts += [(x0, y) for y in range(y1, y0, -1)]
    if area is None:
        area = float((x1 - x0) * (y1 - y0))
    return Contour(area=area, points=pts)


class FakeVision:
    """Vision capability returning scripted contours."""

    def __init__(self, contours=None):
        self.contours = list(contours or [])
        self.calls = 0
        self.resized_to = None

    def to_gray(self, rgba):
        return rgba[:, :, 0].copy()

    def blur(self, gray, ksize):
        return gray

    def threshold_inverted_otsu(self, gray):
        return (gray < 128).astype(np.uint8) * 255

    def outer_contours(self, mask):
        self.calls += 1
        return list(self.contours)

    def resize(self, arr, width, height):
        self.resized_to = (width, height)
        return np.zeros((height, width, arr.shape[2]), dtype=arr.dtype)


class FakeRasterizer:
    """In-memory document of blank pages; selected pages fail to render."""

    def __init__(self, page_count=3, size=(800, 1000), failing=(), gate=None):
        self._count = page_count
        self.size = size
        self.failing = set(failing)
        self.gate = gate
        self.requests = []
        self.closed = False

    @property
    def page_count(self):
        return self._count

    async def rasterize(self, page_index):
        self.requests.append(page_index)
        if self.gate is not None:
            await self.gate.wait()
        if page_index in self.failing:
            raise RasterizationFailure(page_index, "scripted failure")
        w, h = self.size
        return make_page(page_index, w, h, color=(200, 40, 40))

    def close(self):
        self.closed = True


@pytest.fixture
def run():
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run
