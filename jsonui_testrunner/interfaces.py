"""
@file interfaces.py
@brief Capability interface the runner consumes from a UI automation backend.

Backends (UI Automator bridge, XCUITest bridge, emulated UI for tests, ...)
implement IBackend. The runner never depends on how a backend locates
elements or performs gestures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple


class Gesture(str, Enum):
    """Gesture kinds passed to IBackend.perform_gesture."""
    TAP = "tap"
    DOUBLE_TAP = "doubleTap"
    LONG_PRESS = "longPress"
    INPUT = "input"
    CLEAR = "clear"
    SCROLL = "scroll"
    SWIPE = "swipe"
    BACK = "back"


@dataclass(frozen=True)
class Bounds:
    """Element rectangle in screen pixels."""
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def center(self) -> Tuple[int, int]:
        return (self.left + self.width // 2, self.top + self.height // 2)


class IBackend(ABC):
    """
    Abstract automation backend.

    All calls are synchronous and blocking. Elements are opaque handles that
    are only ever passed back into the same backend.
    """

    @abstractmethod
    def locate_by_id(self, element_id: str) -> Optional[Any]:
        """
        Find one element by its test id.

        Returns:
            Element handle, or None if nothing matches right now
        """
        pass

    @abstractmethod
    def locate_all_by_id(self, element_id: str) -> List[Any]:
        """Find every element sharing the test id (empty list if none)."""
        pass

    @abstractmethod
    def locate_by_text(self, text: str) -> Optional[Any]:
        """Find a clickable element (e.g. an alert button) by its visible text."""
        pass

    @abstractmethod
    def element_text(self, element: Any) -> str:
        pass

    @abstractmethod
    def element_enabled(self, element: Any) -> bool:
        pass

    @abstractmethod
    def element_bounds(self, element: Any) -> Bounds:
        pass

    @abstractmethod
    def perform_gesture(
        self,
        kind: Gesture,
        target: Optional[Any] = None,
        coordinates: Optional[Tuple[int, int]] = None,
        **params: Any,
    ) -> None:
        """
        Perform a gesture on an element or at screen coordinates.

        Args:
            kind: Gesture to perform
            target: Element handle (None for screen-level gestures such as back)
            coordinates: Absolute point, used instead of target when given
            **params: Gesture options (text, direction, duration_ms, amount)
        """
        pass

    @abstractmethod
    def capture_screenshot(self, path: str) -> None:
        """Write a screenshot image to path."""
        pass

    @abstractmethod
    def dump_hierarchy(self) -> str:
        """Diagnostic dump of the current UI tree."""
        pass

    def wait_for_idle(self, timeout: float) -> None:
        """Block until the UI is idle. Backends without an idle signal do nothing."""
        return None
