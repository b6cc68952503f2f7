from __future__ import annotations

import threading
import time
from typing import Callable, List

import hypothesis.strategies as st
import pytest
from hypothesis import given, settings

from drawingpanel.core.colors import get_pixel_argb, get_pixel_rgb
from drawingpanel.core.errors import InvalidArgumentError, OutOfBoundsError
from drawingpanel.core.registry import SurfaceRegistry
from drawingpanel.panel import DrawingPanel, check_size
from drawingpanel.settings.schema import PanelSettings

from conftest import FakeBackend

argb = st.integers(min_value=0, max_value=0xFFFFFFFF)


def _panel(width: int, height: int, registry: SurfaceRegistry | None = None) -> DrawingPanel:
    return DrawingPanel(
        width,
        height,
        registry=registry or SurfaceRegistry(start_monitor=False),
        backend_factory=FakeBackend,
        settings=PanelSettings(),
    )


def _wait_for(cond: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if cond():
            return True
        time.sleep(0.01)
    return cond()


@settings(max_examples=25, deadline=None)
@given(w=st.integers(1, 256), h=st.integers(1, 256))
def test_valid_sizes_are_kept(w: int, h: int) -> None:
    panel = _panel(w, h)
    try:
        assert (panel.width, panel.height) == (w, h)
        assert panel.surface.get_size() == (w, h)
    finally:
        panel.close()


@pytest.mark.parametrize("w,h", [(1, 1), (7680, 1), (1, 7680)])
def test_size_limits_accepted(make_panel: Callable[..., DrawingPanel], w: int, h: int) -> None:
    panel = make_panel(w, h)
    assert panel.size == (w, h)


@pytest.mark.parametrize(
    "w,h", [(0, 10), (10, 0), (-1, 5), (7681, 10), (10, 7681), (2.5, 10), (True, 10)]
)
def test_invalid_sizes_rejected(w: object, h: object) -> None:
    reg = SurfaceRegistry(start_monitor=False)
    with pytest.raises(InvalidArgumentError):
        check_size(w, h)  # type: ignore[arg-type]
    with pytest.raises(InvalidArgumentError):
        DrawingPanel(w, h, registry=reg, backend_factory=FakeBackend)  # type: ignore[arg-type]
    # A rejected panel is never counted.
    assert reg.total_created == 0


def test_defaults_come_from_settings(
    registry: SurfaceRegistry, backends: List[FakeBackend], backend_factory
) -> None:
    cfg = PanelSettings(width=40, height=30, title="From settings", frame_rate=12)
    panel = DrawingPanel(registry=registry, backend_factory=backend_factory, settings=cfg)
    try:
        assert panel.size == (40, 30)
        assert panel.title == "From settings"
        assert panel.frame_rate == 12
        assert backends[0].title == "From settings"
        assert backends[0].size == (40, 30)
    finally:
        panel.close()


@settings(max_examples=25, deadline=None)
@given(data=st.data())
def test_set_then_get_pixel_roundtrips(data: st.DataObject) -> None:
    w = data.draw(st.integers(1, 40))
    h = data.draw(st.integers(1, 40))
    panel = _panel(w, h)
    try:
        writes = data.draw(
            st.lists(
                st.tuples(st.integers(0, w - 1), st.integers(0, h - 1), argb),
                min_size=1,
                max_size=20,
            )
        )
        final = {}
        for x, y, c in writes:
            panel.set_pixel(x, y, c)
            final[(x, y)] = c
        for (x, y), c in final.items():
            assert panel.get_pixel(x, y) == c
    finally:
        panel.close()


@settings(max_examples=25, deadline=None)
@given(
    x=st.integers(-50, 80),
    y=st.integers(-50, 80),
)
def test_out_of_bounds_pixels_rejected(x: int, y: int) -> None:
    panel = _panel(20, 30)
    try:
        if 0 <= x < 20 and 0 <= y < 30:
            panel.set_pixel(x, y, 0xFF123456)
            assert panel.get_pixel(x, y) == 0xFF123456
        else:
            with pytest.raises(OutOfBoundsError):
                panel.get_pixel(x, y)
            with pytest.raises(OutOfBoundsError):
                panel.set_pixel(x, y, 0xFF123456)
    finally:
        panel.close()


def test_new_panel_is_transparent(make_panel: Callable[..., DrawingPanel]) -> None:
    panel = make_panel(3, 2)
    assert panel.get_pixels() == [[0, 0, 0], [0, 0, 0]]


def test_get_and_set_pixels_grid(make_panel: Callable[..., DrawingPanel]) -> None:
    panel = make_panel(4, 4)
    grid = [[0xFF000001, 0x80FFFFFF, 0x00000000], [0x11223344, 0xFFFF0000, 0x7F00FF00]]
    panel.set_pixels(grid)
    assert panel.size == (3, 2)
    assert panel.get_pixels() == grid
    assert panel.get_pixel(1, 1) == 0xFFFF0000
    # graphics follows the new buffer
    assert panel.graphics.surface is panel.surface


def test_set_pixels_rejects_ragged_or_empty(make_panel: Callable[..., DrawingPanel]) -> None:
    panel = make_panel(4, 4)
    with pytest.raises(InvalidArgumentError):
        panel.set_pixels([])
    with pytest.raises(InvalidArgumentError):
        panel.set_pixels([[1, 2], [3]])
    assert panel.size == (4, 4)


def test_set_pixels_accepts_signed_values(make_panel: Callable[..., DrawingPanel]) -> None:
    panel = make_panel(1, 1)
    panel.set_pixels([[-1]])
    assert panel.get_pixel(0, 0) == 0xFFFFFFFF


@settings(max_examples=25, deadline=None)
@given(
    pixels=st.lists(argb, min_size=12, max_size=12),
    old=argb,
    new=argb,
    tolerance=st.integers(0, 255),
)
def test_replace_color_changes_exactly_matching_pixels(
    pixels: List[int], old: int, new: int, tolerance: int
) -> None:
    # Make sure some pixels are close to old.
    pixels[0] = old
    pixels[1] = get_pixel_argb(*(min(255, ((old >> s) & 0xFF) + 1) for s in (24, 16, 8, 0)))
    grid = [pixels[i : i + 4] for i in range(0, 12, 4)]
    panel = _panel(4, 3)
    try:
        panel.set_pixels(grid)
        changed = panel.replace_color(old, new, tolerance)
        after = panel.get_pixels()
    finally:
        panel.close()

    def _matches(p: int) -> bool:
        return all(abs(((p >> s) & 0xFF) - ((old >> s) & 0xFF)) <= tolerance for s in (24, 16, 8, 0))

    expected_changed = 0
    for row_before, row_after in zip(grid, after):
        for before, now in zip(row_before, row_after):
            if _matches(before):
                expected_changed += 1
                assert now == new
            else:
                assert now == before
    assert changed == expected_changed


def test_replace_color_exact_match_only(make_panel: Callable[..., DrawingPanel]) -> None:
    panel = make_panel(3, 1)
    red = get_pixel_rgb(255, 0, 0)
    near = get_pixel_rgb(254, 0, 0)
    blue = get_pixel_rgb(0, 0, 255)
    panel.set_pixels([[red, near, red]])
    assert panel.replace_color(red, blue) == 2
    assert panel.get_pixels() == [[blue, near, blue]]
    assert panel.replace_color(red, blue, tolerance=1) == 1
    with pytest.raises(InvalidArgumentError):
        panel.replace_color(red, blue, tolerance=-1)


def test_set_size_keeps_pixels_anchored(make_panel: Callable[..., DrawingPanel]) -> None:
    panel = make_panel(3, 3)
    panel.set_pixel(0, 0, 0xFF0000FF)
    panel.set_pixel(2, 2, 0xFF00FF00)
    panel.set_size(5, 2)
    assert panel.size == (5, 2)
    assert panel.get_pixel(0, 0) == 0xFF0000FF
    assert panel.get_pixel(4, 1) == 0
    with pytest.raises(OutOfBoundsError):
        panel.get_pixel(2, 2)
    panel.set_size(3, 3)
    assert panel.get_pixel(2, 2) == 0
    with pytest.raises(InvalidArgumentError):
        panel.set_size(0, 3)


def test_set_size_resizes_window(
    make_panel: Callable[..., DrawingPanel], backends: List[FakeBackend]
) -> None:
    panel = make_panel(3, 3)
    panel.set_size(10, 20)
    assert backends[0].size == (10, 20)


def test_clear_resets_to_transparent(make_panel: Callable[..., DrawingPanel]) -> None:
    panel = make_panel(2, 2)
    panel.graphics.fill_rect(0, 0, 2, 2, color=(1, 2, 3))
    assert panel.get_pixel(1, 1) == 0xFF010203
    panel.clear()
    assert panel.get_pixels() == [[0, 0], [0, 0]]


def test_save_png(make_panel: Callable[..., DrawingPanel], tmp_path) -> None:
    panel = make_panel(4, 4)
    out = tmp_path / "sub" / "shot.png"
    panel.save_png(str(out))
    assert out.exists()


def test_close_decrements_count_and_stops_repaints(
    registry: SurfaceRegistry, backend_factory, backends: List[FakeBackend]
) -> None:
    panel = DrawingPanel(8, 8, registry=registry, backend_factory=backend_factory)
    other = DrawingPanel(8, 8, registry=registry, backend_factory=backend_factory)
    try:
        assert registry.open_count == 2
        assert _wait_for(lambda: backends[0].presents > 0)
        panel.close()
        assert registry.open_count == 1
        assert panel.closed
        assert backends[0].closed
        assert not panel.scheduler.thread.is_alive()
        seen = backends[0].presents
        time.sleep(0.15)
        assert backends[0].presents == seen
        panel.close()
        assert registry.open_count == 1
    finally:
        other.close()
    assert registry.open_count == 0


def test_instance_numbers_and_thread_names(make_panel: Callable[..., DrawingPanel]) -> None:
    a = make_panel()
    b = make_panel()
    assert (a.instance_number, b.instance_number) == (1, 2)
    assert a.name == "DrawingPanel-1"
    assert b.scheduler.thread.name == "DrawingPanel-2 Timer"
    assert "DrawingPanel-1 16x12 open" in repr(a)


def test_context_manager_closes(registry: SurfaceRegistry, backend_factory) -> None:
    with DrawingPanel(4, 4, registry=registry, backend_factory=backend_factory) as panel:
        assert registry.open_count == 1
    assert panel.closed
    assert registry.open_count == 0


def test_backend_failure_unregisters(registry: SurfaceRegistry) -> None:
    def _broken(*args, **kwargs):
        raise RuntimeError("no display")

    with pytest.raises(RuntimeError):
        DrawingPanel(4, 4, registry=registry, backend_factory=_broken)
    assert registry.open_count == 0


def test_window_close_event_closes_panel(
    make_panel: Callable[..., DrawingPanel],
    registry: SurfaceRegistry,
    backends: List[FakeBackend],
) -> None:
    import pygame as pg

    events: List[str] = []

    class Watcher:
        def window_closing(self, ev) -> None:
            events.append("closing")

        def window_closed(self, ev) -> None:
            events.append("closed")

    panel = make_panel(4, 4)
    panel.add_listener(Watcher())
    backends[0].post(pg.event.Event(pg.QUIT))
    assert _wait_for(lambda: panel.closed)
    assert _wait_for(lambda: registry.open_count == 0)
    assert events == ["closing", "closed"]


def test_listener_receives_dispatched_clicks(
    make_panel: Callable[..., DrawingPanel], backends: List[FakeBackend]
) -> None:
    import pygame as pg

    clicked = threading.Event()

    class Clicker:
        def mouse_clicked(self, ev) -> None:
            clicked.set()

    panel = make_panel(10, 10)
    panel.add_listener(Clicker())
    backends[0].post(pg.event.Event(pg.MOUSEBUTTONDOWN, pos=(2, 2), button=1))
    backends[0].post(pg.event.Event(pg.MOUSEBUTTONUP, pos=(2, 2), button=1))
    assert clicked.wait(2.0)


def test_listener_without_callbacks_rejected(make_panel: Callable[..., DrawingPanel]) -> None:
    panel = make_panel()
    with pytest.raises(InvalidArgumentError):
        panel.add_listener(object())


def test_frame_rate_changes(make_panel: Callable[..., DrawingPanel]) -> None:
    panel = make_panel()
    panel.set_frame_rate(60)
    assert panel.frame_rate == 60
    with pytest.raises(InvalidArgumentError):
        panel.set_frame_rate(0)
    assert panel.frame_rate == 60


def test_window_is_driven_and_released_on_timer_thread(
    registry: SurfaceRegistry, backend_factory, backends: List[FakeBackend]
) -> None:
    panel = DrawingPanel(4, 4, registry=registry, backend_factory=backend_factory)
    assert _wait_for(lambda: backends[0].presents > 0)
    panel.close()
    timer = {"DrawingPanel-1 Timer"}
    assert backends[0].threads["present"] == timer
    assert backends[0].threads["poll_events"] == timer
    assert backends[0].threads["close"] == timer


def test_close_from_listener_releases_window_once(
    make_panel: Callable[..., DrawingPanel], backends: List[FakeBackend]
) -> None:
    import pygame as pg

    closes: List[str] = []
    panel = make_panel(4, 4)
    original = backends[0].close

    def _counting_close() -> None:
        closes.append(threading.current_thread().name)
        original()

    backends[0].close = _counting_close  # type: ignore[method-assign]
    backends[0].post(pg.event.Event(pg.QUIT))
    assert _wait_for(lambda: panel.closed)
    assert _wait_for(lambda: not panel.scheduler.thread.is_alive())
    assert closes == ["DrawingPanel-1 Timer"]


def test_scheduler_start_failure_releases_window(
    registry: SurfaceRegistry,
    backend_factory,
    backends: List[FakeBackend],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    from drawingpanel.core.scheduler import RepaintScheduler

    def _refuse(self) -> None:
        raise RuntimeError("can't start new thread")

    monkeypatch.setattr(RepaintScheduler, "start", _refuse)
    with pytest.raises(RuntimeError):
        DrawingPanel(4, 4, registry=registry, backend_factory=backend_factory)
    assert registry.open_count == 0
    assert backends[0].closed


def test_replace_color_compares_with_channel_tolerance(
    make_panel: Callable[..., DrawingPanel], monkeypatch: pytest.MonkeyPatch
) -> None:
    import drawingpanel.panel as panel_module

    calls: List[int] = []
    real = panel_module.channels_within

    def _spy(a, b, tolerance):
        calls.append(tolerance)
        return real(a, b, tolerance)

    monkeypatch.setattr(panel_module, "channels_within", _spy)
    panel = make_panel(2, 3)
    panel.set_pixel(1, 1, get_pixel_rgb(10, 10, 10))
    assert panel.replace_color(get_pixel_rgb(12, 9, 10), get_pixel_rgb(0, 0, 0), 2) == 1
    assert calls == [2] * 6
