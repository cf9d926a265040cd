"""Panel geometry: rectilinear polygons and their bounding boxes.

Coordinates are page pixels with the origin at the top-left corner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from PySide6.QtCore import QPointF
from PySide6.QtGui import QPolygonF

Point = Tuple[int, int]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box {min_x, min_y, max_x, max_y}."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    def padded(self, margin: int) -> "BoundingBox":
        """Grow the box by `margin` pixels on every side."""
        return BoundingBox(
            self.min_x - margin, self.min_y - margin,
            self.max_x + margin, self.max_y + margin,
        )


@dataclass(frozen=True)
class Polygon:
    """A panel outline: three or more points, ideally with orthogonal edges."""
    points: Tuple[Point, ...]

    def __post_init__(self) -> None:
        if len(self.points) < 3:
            raise ValueError(f"Polygon needs at least 3 points, got {len(self.points)}")

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "Polygon":
        return cls(tuple((int(round(p[0])), int(round(p[1]))) for p in points))

    @property
    def bbox(self) -> BoundingBox:
        xs = [p[0] for p in self.points]
        ys = [p[1] for p in self.points]
        return BoundingBox(min(xs), min(ys), max(xs), max(ys))

    @property
    def top_y(self) -> int:
        return min(p[1] for p in self.points)

    @property
    def left_x(self) -> int:
        return min(p[0] for p in self.points)

    def is_orthogonal(self) -> bool:
        """True if every edge, closing edge included, is horizontal or vertical."""
        n = len(self.points)
        for i in range(n):
            (x1, y1), (x2, y2) = self.points[i], self.points[(i + 1) % n]
            if x1 != x2 and y1 != y2:
                return False
        return True

    def clamped(self, width: int, height: int) -> "Polygon":
        """Clamp every point into the page bounds."""
        return Polygon(tuple(
            (min(max(x, 0), width), min(max(y, 0), height)) for x, y in self.points
        ))

    def scaled(self, factor: float) -> "Polygon":
        return Polygon.from_points((x * factor, y * factor) for x, y in self.points)

    def to_qpolygonf(self, dx: float = 0.0, dy: float = 0.0) -> QPolygonF:
        """Return the outline as a QPolygonF, optionally shifted by (dx, dy)."""
        return QPolygonF([QPointF(x + dx, y + dy) for x, y in self.points])


def full_page_polygon(width: int, height: int) -> Polygon:
    """The splash/fallback panel covering the whole page."""
    return Polygon(((0, 0), (width, 0), (width, height), (0, height)))


def snap_to_axis(prev: Point, point: Point) -> Point:
    """Align `point` with `prev` along the axis of larger displacement."""
    dx = point[0] - prev[0]
    dy = point[1] - prev[1]
    if abs(dx) > abs(dy):
        return (point[0], prev[1])  # horizontal edge
    return (prev[0], point[1])      # vertical edge


def regularize_orthogonal(points: Sequence[Point]) -> List[Point]:
    """Snap a traced contour so every edge is horizontal or vertical.

    Each point is snapped relative to the previous *snapped* point. The
    closing edge gets one extra snapped vertex, which makes both the edge
    into it and the edge back to the first point axis-aligned.
    """
    poly: List[Point] = []
    for p in points:
        p = (int(p[0]), int(p[1]))
        if not poly:
            poly.append(p)
        else:
            poly.append(snap_to_axis(poly[-1], p))
    if len(poly) > 1:
        poly.append(snap_to_axis(poly[-1], poly[0]))
    return poly


def simplify_orthogonal(points: Sequence[Point]) -> List[Point]:
    """Remove repeated and collinear vertices from a closed rectilinear path."""
    pts: List[Point] = []
    for p in points:
        if not pts or pts[-1] != p:
            pts.append(p)
    if len(pts) > 1 and pts[0] == pts[-1]:
        pts.pop()

    changed = True
    while changed and len(pts) >= 3:
        changed = False
        out: List[Point] = []
        n = len(pts)
        for i in range(n):
            a, b, c = pts[i - 1], pts[i], pts[(i + 1) % n]
            if (a[0] == b[0] == c[0]) or (a[1] == b[1] == c[1]) or b == c:
                changed = True
                continue
            out.append(b)
        if changed:
            pts = out
    return pts
