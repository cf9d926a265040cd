import asyncio

import pytest

from panelreader.cache import PanelCache
from panelreader.config import DetectorConfig
from panelreader.detector import PanelDetector
from panelreader.errors import RasterizationFailure
from panelreader.geometry import full_page_polygon
from panelreader.navigation import Cursor, Navigator, PageLoader

from conftest import FakeRasterizer, FakeVision, rect_contour

TWO_PANELS = [rect_contour(20, 20, 380, 470), rect_contour(420, 20, 780, 470)]


def make_navigator(pages=4, contours=TWO_PANELS, config=None, **raster_kwargs):
    rasterizer = FakeRasterizer(page_count=pages, **raster_kwargs)
    vision = FakeVision(contours)
    detector = PanelDetector(config or DetectorConfig(), vision)
    loader = PageLoader(rasterizer, detector, PanelCache())
    return Navigator(loader), rasterizer, vision


def test_open_places_cursor_on_first_panel(run):
    nav, raster, _ = make_navigator()
    run(nav.open())
    assert nav.cursor == Cursor(0, 0)
    assert nav.cursor_label() == (1, 4, 1, 1)
    # cover page
    assert nav.panels == [full_page_polygon(800, 1000)]


def test_next_walks_every_panel_then_stops(run):
    nav, _, _ = make_navigator()
    # pages 0-1 are covers, pages 2-3 have two panels each
    total = 1 + 1 + 2 + 2

    async def walk():
        await nav.open()
        moves = [await nav.next() for _ in range(total)]
        return moves

    moves = run(walk())
    assert nav.cursor == Cursor(3, 1)
    assert moves == [True] * (total - 1) + [False]

    assert run(nav.next()) is False
    assert nav.cursor == Cursor(3, 1)


def test_previous_at_start_is_noop(run):
    nav, _, _ = make_navigator()
    run(nav.open())
    assert run(nav.previous()) is False
    assert nav.cursor == Cursor(0, 0)


def test_previous_enters_last_panel_of_previous_page(run):
    nav, _, _ = make_navigator()

    async def scenario():
        await nav.open()
        await nav.go_to_page(3)
        assert nav.cursor == Cursor(3, 0)
        await nav.previous()

    run(scenario())
    assert nav.cursor == Cursor(2, 1)
    assert nav.cursor_label() == (3, 4, 2, 2)


def test_panels_follow_reading_order(run):
    nav, _, _ = make_navigator(contours=list(reversed(TWO_PANELS)))

    async def scenario():
        await nav.open()
        await nav.go_to_page(2)

    run(scenario())
    assert [p.left_x for p in nav.panels] == [20, 420]


def test_rasterization_failure_keeps_cursor(run):
    nav, _, _ = make_navigator(failing={2})

    async def scenario():
        await nav.open()
        await nav.next()
        with pytest.raises(RasterizationFailure):
            await nav.next()

    run(scenario())
    assert nav.cursor == Cursor(1, 0)
    assert nav.current_page.index == 1
    assert not nav.is_busy


def test_detection_runs_once_per_page(run):
    nav, raster, vision = make_navigator()

    async def scenario():
        await nav.open()
        for _ in range(3):
            await nav.next()        # page 2, panel 1
        await nav.previous()        # page 2, panel 0
        await nav.previous()        # back to page 1
        await nav.next()            # page 2 again, cached panels

    run(scenario())
    assert nav.cursor == Cursor(2, 0)
    assert vision.calls == 1
    assert raster.requests.count(2) == 2


def test_config_change_invalidates_cached_panels(run):
    nav, _, vision = make_navigator()

    async def scenario():
        await nav.open()
        await nav.go_to_page(2)
        nav.loader.detector.config.min_area_pct = 0.01
        await nav.go_to_page(2)

    run(scenario())
    assert vision.calls == 2


def test_overlapping_transitions_are_rejected():
    async def scenario():
        gate = asyncio.Event()
        gate.set()
        nav, raster, _ = make_navigator(gate=gate)
        await nav.open()

        gate.clear()
        first = asyncio.ensure_future(nav.next())
        await asyncio.sleep(0)
        assert nav.is_busy
        assert await nav.next() is False
        assert await nav.previous() is False
        assert nav.cursor == Cursor(0, 0)

        gate.set()
        assert await first is True
        return nav

    nav = asyncio.run(scenario())
    assert nav.cursor == Cursor(1, 0)
    assert not nav.is_busy


def test_go_to_page_out_of_range(run):
    nav, _, _ = make_navigator()
    run(nav.open())
    assert run(nav.go_to_page(10)) is False
    assert nav.cursor == Cursor(0, 0)
