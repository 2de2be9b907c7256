# tests/conftest.py
"""
Shared fixtures: an in-memory scripted backend and fast runner timings.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from jsonui_testrunner.actionlogger import ACTION_LOGGER
from jsonui_testrunner.config import RunnerConfig
from jsonui_testrunner.context import ActionContextManager
from jsonui_testrunner.interfaces import Bounds, Gesture, IBackend
from jsonui_testrunner.timinglogger import TIMING_LOGGER


@dataclass
class FakeElement:
    element_id: str
    text: str = ""
    enabled: bool = True
    bounds: Bounds = Bounds(0, 0, 100, 40)


class FakeBackend(IBackend):
    """
    Scripted backend. Elements can be shown, hidden or delayed, and every
    gesture is recorded as (kind, element_id, coordinates, params).
    """

    def __init__(self):
        self.elements: Dict[str, List[FakeElement]] = {}
        self.buttons: Dict[str, FakeElement] = {}
        self.delays: Dict[str, int] = {}
        self.on_gesture: Dict[Tuple[Gesture, Optional[str]], Callable[["FakeBackend"], None]] = {}
        self.gestures: List[Tuple[Gesture, Optional[str], Optional[Tuple[int, int]], Dict[str, Any]]] = []
        self.screenshots: List[str] = []
        self.fail_screenshots = False
        self.idle_calls = 0
        self.lookups = 0

    # --- Scripting helpers ---

    def show(self, element_id: str, text: str = "", enabled: bool = True, count: int = 1,
             bounds: Optional[Bounds] = None) -> "FakeBackend":
        self.elements[element_id] = [
            FakeElement(element_id, text=text, enabled=enabled, bounds=bounds or Bounds(0, 0, 100, 40))
            for _ in range(count)
        ]
        return self

    def hide(self, element_id: str) -> None:
        self.elements.pop(element_id, None)

    def show_after(self, element_id: str, lookups: int, **kwargs: Any) -> "FakeBackend":
        """Element becomes visible only after `lookups` failed lookups."""
        self.show(element_id, **kwargs)
        self.delays[element_id] = lookups
        return self

    def show_button(self, text: str) -> "FakeBackend":
        self.buttons[text] = FakeElement(f"button:{text}", text=text)
        return self

    def when(self, kind: Gesture, element_id: Optional[str], callback: Callable[["FakeBackend"], None]) -> None:
        self.on_gesture[(kind, element_id)] = callback

    def gesture_kinds(self) -> List[Gesture]:
        return [g[0] for g in self.gestures]

    # --- IBackend ---

    def locate_by_id(self, element_id: str) -> Optional[Any]:
        self.lookups += 1
        if self.delays.get(element_id, 0) > 0:
            self.delays[element_id] -= 1
            return None
        found = self.elements.get(element_id)
        return found[0] if found else None

    def locate_all_by_id(self, element_id: str) -> List[Any]:
        return list(self.elements.get(element_id, []))

    def locate_by_text(self, text: str) -> Optional[Any]:
        return self.buttons.get(text)

    def element_text(self, element: Any) -> str:
        return element.text

    def element_enabled(self, element: Any) -> bool:
        return element.enabled

    def element_bounds(self, element: Any) -> Bounds:
        return element.bounds

    def perform_gesture(self, kind: Gesture, target: Optional[Any] = None,
                        coordinates: Optional[Tuple[int, int]] = None, **params: Any) -> None:
        element_id = target.element_id if target is not None else None
        self.gestures.append((kind, element_id, coordinates, dict(params)))
        callback = self.on_gesture.get((kind, element_id))
        if callback is not None:
            callback(self)

    def capture_screenshot(self, path: str) -> None:
        if self.fail_screenshots:
            raise RuntimeError("screen capture unavailable")
        self.screenshots.append(path)

    def dump_hierarchy(self) -> str:
        return "\n".join(sorted(self.elements))

    def wait_for_idle(self, timeout: float) -> None:
        self.idle_calls += 1


class LoginScreenBackend(FakeBackend):
    """FakeBackend with the default login screen already shown; used via `--backend conftest:LoginScreenBackend`."""

    def __init__(self):
        super().__init__()
        self.show("title").show("submit")


@pytest.fixture(autouse=True)
def clean_logging_state():
    """Loggers are process-wide singletons; keep them quiet and reset between tests."""
    ACTION_LOGGER.disable()
    TIMING_LOGGER.disable()
    ActionContextManager.clear()
    yield
    ACTION_LOGGER.disable()
    TIMING_LOGGER.disable()
    ActionContextManager.clear()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def config(tmp_path):
    return RunnerConfig(
        default_timeout=0.2,
        polling_interval=0.01,
        settle_delay=0.0,
        not_visible_grace=0.05,
        idle_timeout=0.1,
        artifacts_dir=str(tmp_path / "artifacts"),
        platform="android",
    )


@pytest.fixture
def write_doc(tmp_path):
    """Write a test document (dict or raw text) under tmp_path and return its path."""
    def _write(name: str, content: Any) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        text = content if isinstance(content, str) else json.dumps(content, indent=2)
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


def screen_doc(name: str = "Login", cases: Optional[List[Dict[str, Any]]] = None, **extra: Any) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "type": "screen",
        "source": {"layout": "layouts/login.json"},
        "metadata": {"name": name},
        "cases": cases if cases is not None else [
            {"name": "shows title", "steps": [{"assert": "visible", "id": "title"}]},
        ],
    }
    doc.update(extra)
    return doc


def flow_doc(name: str = "Checkout", steps: Optional[List[Dict[str, Any]]] = None, **extra: Any) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "type": "flow",
        "sources": [{"layout": "layouts/login.json"}],
        "metadata": {"name": name},
        "steps": steps if steps is not None else [
            {"screen": "login", "action": "tap", "id": "submit"},
        ],
    }
    doc.update(extra)
    return doc
