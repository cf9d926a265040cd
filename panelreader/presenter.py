"""Focused-panel presentation: crop, ambient glow and zoom animation.

`PanelPresenter.activate()` prepares everything a panel needs once (padded
crop clipped to the panel outline, ambient color, target scale) and starts
a fresh `AnimationTask`. `tick()` advances the task by wall-clock time and
redraws the single render surface. Activating another panel cancels the
running task; a cancelled task never ticks or draws again.
"""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from PySide6.QtCore import QElapsedTimer, QObject, QPointF, QRectF, Qt, QTimer, Signal
from PySide6.QtGui import QBrush, QColor, QImage, QPainter, QPainterPath, QPen, QRadialGradient

from .config import PresenterConfig
from .geometry import BoundingBox, Polygon
from .image_utils import RGB, average_color
from .page import Page

log = logging.getLogger("Render")


@dataclass
class AnimationTask:
    """Per-activation animation state with its own cancellation flag."""
    target_scale: float
    current_scale: float = 0.1
    pulse_phase: float = 0.0
    ease_speed: float = 2.5
    epsilon: float = 0.001
    pulse_step: float = 0.05
    glow_base: float = 0.5
    glow_amplitude: float = 0.3
    cancelled: bool = False
    frames: int = 0

    @classmethod
    def from_config(cls, target_scale: float, config: PresenterConfig) -> "AnimationTask":
        return cls(
            target_scale=target_scale,
            current_scale=config.initial_scale,
            ease_speed=config.ease_speed,
            epsilon=config.snap_epsilon,
            pulse_step=config.pulse_step,
            glow_base=config.glow_base,
            glow_amplitude=config.glow_amplitude,
        )

    @property
    def converged(self) -> bool:
        return self.current_scale == self.target_scale

    @property
    def glow_opacity(self) -> float:
        return self.glow_base + self.glow_amplitude * math.sin(self.pulse_phase)

    def cancel(self) -> None:
        self.cancelled = True

    def advance(self, dt: float) -> bool:
        """Advance by `dt` seconds. Returns False once cancelled."""
        if self.cancelled:
            return False
        dt = max(0.0, dt)
        if not self.converged:
            # A stalled frame must not overshoot the target
            step = min(1.0, self.ease_speed * dt)
            self.current_scale += (self.target_scale - self.current_scale) * step
            if abs(self.target_scale - self.current_scale) < self.epsilon:
                self.current_scale = self.target_scale
        self.pulse_phase += self.pulse_step
        self.frames += 1
        return True


@dataclass
class PanelView:
    """Snapshot of what the viewport shows for the active panel."""
    cropped_image: QImage
    position: QPointF      # top-left of the scaled crop in viewport pixels
    scale: float
    ambient_color: RGB
    glow_opacity: float

    @property
    def size(self) -> Tuple[float, float]:
        return (self.cropped_image.width() * self.scale,
                self.cropped_image.height() * self.scale)


class RenderContext:
    """The one drawing surface of the presenter, sized like the viewport."""

    def __init__(self, width: int, height: int):
        self.surface = QImage(max(1, width), max(1, height),
                              QImage.Format.Format_ARGB32_Premultiplied)
        self.surface.fill(Qt.GlobalColor.black)

    @property
    def width(self) -> int:
        return self.surface.width()

    @property
    def height(self) -> int:
        return self.surface.height()

    def resize(self, width: int, height: int) -> None:
        if (width, height) == (self.width, self.height):
            return
        self.surface = QImage(max(1, width), max(1, height),
                              QImage.Format.Format_ARGB32_Premultiplied)
        self.surface.fill(Qt.GlobalColor.black)

    @contextmanager
    def painter(self) -> Iterator[QPainter]:
        p = QPainter(self.surface)
        try:
            p.setRenderHint(QPainter.RenderHint.Antialiasing)
            p.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
            yield p
        finally:
            p.end()


def build_panel_crop(page: Page, panel: Polygon, padding: int,
                     outline_width: int = 0) -> Tuple[QImage, BoundingBox]:
    """Cut the padded bounding box of `panel` out of the page.

    Pixels outside the panel outline are left white so neighbouring
    artwork does not leak into non-rectangular panels.
    """
    bbox = panel.bbox
    crop = bbox.padded(padding)
    img = QImage(max(1, crop.width), max(1, crop.height),
                 QImage.Format.Format_ARGB32_Premultiplied)
    img.fill(Qt.GlobalColor.white)

    dx, dy = padding - bbox.min_x, padding - bbox.min_y
    outline = QPainterPath()
    outline.addPolygon(panel.to_qpolygonf(dx, dy))
    outline.closeSubpath()

    p = QPainter(img)
    try:
        p.setRenderHint(QPainter.RenderHint.Antialiasing)
        p.save()
        p.setClipPath(outline)
        p.drawImage(QPointF(dx, dy), page.image)
        p.restore()
        if outline_width > 0:
            p.setPen(QPen(QColor(255, 255, 255), outline_width))
            p.setBrush(Qt.BrushStyle.NoBrush)
            p.drawPath(outline)
    finally:
        p.end()
    return img, crop


def fit_scale(content_w: float, content_h: float, view_w: float, view_h: float,
              utilization: float = 0.8) -> float:
    """Largest scale fitting the content in `utilization` of the viewport."""
    if content_w <= 0 or content_h <= 0:
        return 1.0
    return min(view_w / content_w, view_h / content_h) * utilization


class PanelPresenter:
    """Renders the active panel zooming in over a breathing ambient glow."""

    def __init__(self, config: Optional[PresenterConfig] = None,
                 viewport_size: Tuple[int, int] = (1280, 900)):
        self.config = config or PresenterConfig()
        self.context = RenderContext(*viewport_size)
        self._task: Optional[AnimationTask] = None
        self._crop: Optional[QImage] = None
        self._ambient: RGB = (0, 0, 0)

    @property
    def task(self) -> Optional[AnimationTask]:
        return self._task

    @property
    def ambient_color(self) -> RGB:
        return self._ambient

    def activate(self, page: Page, panel: Polygon) -> AnimationTask:
        """Prepare `panel` of `page` and start a new animation task."""
        self.cancel()
        c = self.config

        self._crop, crop_box = build_panel_crop(page, panel, c.padding, c.outline_width)
        self._ambient = average_color(page.image, c.ambient_sample)
        target = fit_scale(crop_box.width, crop_box.height,
                           self.context.width, self.context.height, c.fit_utilization)

        self._task = AnimationTask.from_config(target, c)
        log.debug("activate page %d panel bbox=%s target_scale=%.3f",
                  page.index + 1, panel.bbox, target)
        self.render()
        return self._task

    def cancel(self) -> None:
        """Stop the running animation, e.g. when the reader is torn down."""
        if self._task is not None:
            self._task.cancel()

    def tick(self, dt: float) -> bool:
        """Advance the animation by `dt` seconds and redraw.

        Returns:
            False when there is no live task
        """
        task = self._task
        if task is None or not task.advance(dt):
            return False
        self.render()
        return True

    def resize(self, width: int, height: int) -> None:
        """Follow a viewport resize; the zoom eases towards the new fit."""
        self.context.resize(width, height)
        if self._task is not None and self._crop is not None:
            self._task.target_scale = fit_scale(
                self._crop.width(), self._crop.height(), width, height,
                self.config.fit_utilization)
        self.render()

    def current_panel_view(self) -> Optional[PanelView]:
        if self._task is None or self._crop is None:
            return None
        scale = self._task.current_scale
        w = self._crop.width() * scale
        h = self._crop.height() * scale
        pos = QPointF(self.context.width / 2 - w / 2, self.context.height / 2 - h / 2)
        return PanelView(
            cropped_image=self._crop,
            position=pos,
            scale=scale,
            ambient_color=self._ambient,
            glow_opacity=self._task.glow_opacity,
        )

    def render(self) -> None:
        """Draw the current frame: black, ambient glow, then the scaled crop."""
        view = self.current_panel_view()
        with self.context.painter() as p:
            p.fillRect(QRectF(0, 0, self.context.width, self.context.height),
                       QColor(0, 0, 0))
            if view is None:
                return
            self._draw_glow(p, view)
            w, h = view.size
            p.drawImage(QRectF(view.position.x(), view.position.y(), w, h),
                        view.cropped_image,
                        QRectF(0, 0, view.cropped_image.width(), view.cropped_image.height()))

    def _draw_glow(self, p: QPainter, view: PanelView) -> None:
        c = self.config
        vw, vh = self.context.width, self.context.height
        short = min(vw, vh)
        outer = short * c.glow_outer_frac
        if outer <= 0:
            return
        center = QPointF(vw / 2, vh / 2)
        r, g, b = view.ambient_color
        gradient = QRadialGradient(center, outer)
        color = QColor(r, g, b)
        color.setAlphaF(c.ambient_alpha)
        gradient.setColorAt(0.0, color)
        gradient.setColorAt(min(1.0, c.glow_inner_frac / c.glow_outer_frac), color)
        gradient.setColorAt(1.0, QColor(0, 0, 0, 0))

        p.save()
        p.setOpacity(max(0.0, min(1.0, view.glow_opacity)))
        p.fillRect(QRectF(0, 0, vw, vh), QBrush(gradient))
        p.restore()


class FrameLoop(QObject):
    """Self-rescheduling per-frame driver for a presenter.

    Every scheduled frame is bound to the task it was started for and stops
    as soon as that task is cancelled or replaced.
    """

    frame = Signal()

    def __init__(self, presenter: PanelPresenter, interval_ms: int = 16, parent=None):
        super().__init__(parent)
        self._presenter = presenter
        self._interval = interval_ms
        self._clock = QElapsedTimer()

    def start(self, task: AnimationTask) -> None:
        self._clock.start()
        self._schedule(task)

    def stop(self) -> None:
        self._presenter.cancel()

    def _schedule(self, task: AnimationTask) -> None:
        QTimer.singleShot(self._interval, lambda: self._on_frame(task))

    def _on_frame(self, task: AnimationTask) -> None:
        if task.cancelled or task is not self._presenter.task:
            return
        dt = self._clock.restart() / 1000.0
        if self._presenter.tick(dt):
            self.frame.emit()
            self._schedule(task)
