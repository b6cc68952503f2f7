from __future__ import annotations

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import threading  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any, Callable, Dict, Iterator, List, Set, Tuple  # noqa: E402

import pytest  # noqa: E402

from drawingpanel.core.errors import PermissionDeniedError  # noqa: E402
from drawingpanel.core.registry import SurfaceRegistry  # noqa: E402
from drawingpanel.panel import DrawingPanel  # noqa: E402
from drawingpanel.settings.schema import PanelSettings  # noqa: E402


class FakeBackend:
    """Records window calls instead of opening a window."""

    def __init__(
        self, size: Tuple[int, int], *, title: str, visible: bool = True
    ) -> None:
        self.size = size
        self.title = title
        self.visible = visible
        self.pos: Tuple[int, int] = (0, 0)
        self.screen: Tuple[int, int] = (1920, 1080)
        self.on_top = False
        self.refuse_on_top = False
        self.front_calls = 0
        self.presents = 0
        self.last_background: Any = None
        self.closed = False
        # method name -> names of the threads that called it
        self.threads: Dict[str, Set[str]] = {}
        self._events: List[Any] = []
        self._lock = threading.Lock()

    def _seen(self, method: str) -> None:
        name = threading.current_thread().name
        with self._lock:
            self.threads.setdefault(method, set()).add(name)

    def post(self, ev: Any) -> None:
        with self._lock:
            self._events.append(ev)

    def present(self, buffer: Any, background: Any) -> None:
        self._seen("present")
        with self._lock:
            self.presents += 1
            self.last_background = background

    def poll_events(self) -> List[Any]:
        self._seen("poll_events")
        with self._lock:
            events, self._events = self._events, []
        return events

    def resize(self, size: Tuple[int, int]) -> None:
        self.size = size

    def set_title(self, title: str) -> None:
        self.title = title

    def set_visible(self, visible: bool) -> None:
        self.visible = visible

    def position(self) -> Tuple[int, int]:
        return self.pos

    def set_position(self, x: int, y: int) -> None:
        self.pos = (x, y)

    def screen_size(self) -> Tuple[int, int]:
        return self.screen

    def set_always_on_top(self, on_top: bool) -> None:
        if self.refuse_on_top:
            raise PermissionDeniedError("refused")
        self.on_top = on_top

    def to_front(self) -> None:
        self.front_calls += 1

    def close(self) -> None:
        self._seen("close")
        self.closed = True


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DRAWINGPANEL_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("DRAWINGPANEL_DEBUG", raising=False)
    monkeypatch.delenv("DRAWINGPANEL_AUTO_EXIT", raising=False)


@pytest.fixture
def registry() -> SurfaceRegistry:
    return SurfaceRegistry(start_monitor=False)


@pytest.fixture
def settings() -> PanelSettings:
    return PanelSettings()


@pytest.fixture
def backends() -> List[FakeBackend]:
    return []


@pytest.fixture
def backend_factory(backends: List[FakeBackend]) -> Callable[..., FakeBackend]:
    def _factory(size: Tuple[int, int], *, title: str, visible: bool = True) -> FakeBackend:
        b = FakeBackend(size, title=title, visible=visible)
        backends.append(b)
        return b

    return _factory


@pytest.fixture
def make_panel(
    registry: SurfaceRegistry,
    backend_factory: Callable[..., FakeBackend],
    settings: PanelSettings,
) -> Iterator[Callable[..., DrawingPanel]]:
    created: List[DrawingPanel] = []

    def _make(width: int = 16, height: int = 12, **kwargs: Any) -> DrawingPanel:
        kwargs.setdefault("registry", registry)
        kwargs.setdefault("backend_factory", backend_factory)
        kwargs.setdefault("settings", settings)
        panel = DrawingPanel(width, height, **kwargs)
        created.append(panel)
        return panel

    yield _make
    for p in created:
        p.close()
