"""Row-banded reading order for detected panels.

Panels whose top edges lie within a tolerance band of a row's first panel
share that row. Rows go top to bottom and panels inside a row go left to
right (right to left for manga). Staggered or interleaved layouts are not
resolved: a panel that starts slightly lower than the band is pushed into
the next row even if it sits beside the previous ones.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from .geometry import Polygon

log = logging.getLogger("Panels")


def group_rows(polygons: Sequence[Polygon], page_height: float,
               tolerance_frac: float = 0.1) -> List[List[Polygon]]:
    """Group polygons into rows ordered by ascending top edge."""
    if not polygons:
        return []

    band = tolerance_frac * page_height
    sorted_by_top = sorted(polygons, key=lambda p: (p.top_y, p.left_x))

    rows: List[List[Polygon]] = []
    current_row = [sorted_by_top[0]]
    for poly in sorted_by_top[1:]:
        # Compare with the row's representative, not the last member
        if abs(poly.top_y - current_row[0].top_y) < band:
            current_row.append(poly)
        else:
            rows.append(current_row)
            current_row = [poly]
    rows.append(current_row)
    return rows


def sort_reading_order(polygons: Sequence[Polygon], page_height: float,
                       tolerance_frac: float = 0.1, rtl: bool = False) -> List[Polygon]:
    """Return polygons in reading order.

    Args:
        polygons: Unordered panels of one page
        page_height: Page height in the polygons' coordinate space
        tolerance_frac: Row band as a fraction of the page height
        rtl: Order panels right-to-left inside each row
    """
    rows = group_rows(polygons, page_height, tolerance_frac)
    result: List[Polygon] = []
    for row in rows:
        if rtl:
            row_sorted = sorted(row, key=lambda p: -p.bbox.max_x)
        else:
            row_sorted = sorted(row, key=lambda p: p.left_x)
        result.extend(row_sorted)

    log.debug("sorted %d panels into %d rows (rtl=%s)", len(result), len(rows), rtl)
    return result
