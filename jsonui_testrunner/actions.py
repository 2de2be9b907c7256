# jsonui_testrunner/actions.py
"""
@file actions.py
@brief Action handlers: one UI interaction per step.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

from .artifacts import capture_screenshot
from .config import RunnerConfig
from .context import tracked_step
from .exceptions import AssertionFailure, StepArgumentError
from .interfaces import Gesture, IBackend
from .locator import ElementLocator
from .models import TestStep

VALID_DIRECTIONS = ("up", "down", "left", "right")


def require_param(step: TestStep, field: str) -> Any:
    """Return step.<field> or raise StepArgumentError naming the missing field."""
    value = getattr(step, field)
    if value is None:
        raise StepArgumentError(step.kind, field)
    return value


def require_direction(step: TestStep) -> str:
    direction = require_param(step, "direction")
    if direction not in VALID_DIRECTIONS:
        raise StepArgumentError(
            step.kind,
            "direction",
            details=f"invalid direction '{direction}', expected one of {list(VALID_DIRECTIONS)}",
        )
    return direction


class ActionExecutor:
    """
    Executes action steps against the backend.

    Every element-targeting action first waits for its element with the
    step timeout (ms) or the configured default.
    """

    def __init__(self, backend: IBackend, locator: ElementLocator, config: Optional[RunnerConfig] = None):
        self.backend = backend
        self.locator = locator
        self.config = config or RunnerConfig()
        self._handlers: Dict[str, Callable[[TestStep, float], None]] = {
            "tap": self.tap,
            "doubleTap": self.double_tap,
            "longPress": self.long_press,
            "input": self.input,
            "clear": self.clear,
            "scroll": self.scroll,
            "swipe": self.swipe,
            "waitFor": self.wait_for,
            "waitForAny": self.wait_for_any,
            "wait": self.wait,
            "back": self.back,
            "screenshot": self.screenshot,
            "alertTap": self.alert_tap,
        }

    @property
    def kinds(self):
        return sorted(self._handlers)

    def supports(self, action: str) -> bool:
        return action in self._handlers

    def execute(self, step: TestStep) -> None:
        action = step.action
        if action is None:
            raise StepArgumentError("step", "action")
        handler = self._handlers.get(action)
        if handler is None:
            raise StepArgumentError(action, details=f"Unknown action: {action}")
        handler(step, self.config.step_timeout(step.timeout))

    # --- Element gestures ---

    @tracked_step("tap")
    def tap(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        element = self.locator.await_element(element_id, timeout, kind="tap")
        if step.text is not None:
            self._tap_text_portion(element, element_id, step.text)
        else:
            self.backend.perform_gesture(Gesture.TAP, target=element)

    @tracked_step("doubleTap")
    def double_tap(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        element = self.locator.await_element(element_id, timeout, kind="doubleTap")
        self.backend.perform_gesture(Gesture.DOUBLE_TAP, target=element)

    @tracked_step("longPress")
    def long_press(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        element = self.locator.await_element(element_id, timeout, kind="longPress")
        params = {"duration_ms": step.duration} if step.duration is not None else {}
        self.backend.perform_gesture(Gesture.LONG_PRESS, target=element, **params)

    @tracked_step("input")
    def input(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        value = require_param(step, "value")
        element = self.locator.await_element(element_id, timeout, kind="input")
        self.backend.perform_gesture(Gesture.INPUT, target=element, text=value)

    @tracked_step("clear")
    def clear(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        element = self.locator.await_element(element_id, timeout, kind="clear")
        self.backend.perform_gesture(Gesture.CLEAR, target=element)

    @tracked_step("scroll")
    def scroll(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        direction = require_direction(step)
        element = self.locator.await_element(element_id, timeout, kind="scroll")
        self.backend.perform_gesture(Gesture.SCROLL, target=element, direction=direction,
                                     **self._amount(step))

    @tracked_step("swipe")
    def swipe(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        direction = require_direction(step)
        element = self.locator.await_element(element_id, timeout, kind="swipe")
        self.backend.perform_gesture(Gesture.SWIPE, target=element, direction=direction,
                                     **self._amount(step))

    # --- Waiting ---

    @tracked_step("waitFor")
    def wait_for(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        self.locator.await_element(element_id, timeout, kind="waitFor")

    @tracked_step("waitForAny")
    def wait_for_any(self, step: TestStep, timeout: float) -> None:
        ids = require_param(step, "ids")
        if not ids:
            raise StepArgumentError("waitForAny", "ids", details="waitForAny requires non-empty 'ids'")
        self.locator.await_any(list(ids), timeout, kind="waitForAny")

    @tracked_step("wait")
    def wait(self, step: TestStep, timeout: float) -> None:
        ms = require_param(step, "ms")
        time.sleep(max(ms, 0) / 1000.0)

    # --- Screen level ---

    @tracked_step("back")
    def back(self, step: TestStep, timeout: float) -> None:
        self.backend.perform_gesture(Gesture.BACK)

    @tracked_step("screenshot")
    def screenshot(self, step: TestStep, timeout: float) -> None:
        name = require_param(step, "name")
        capture_screenshot(self.backend, self.config.artifacts_dir, name)

    @tracked_step("alertTap")
    def alert_tap(self, step: TestStep, timeout: float) -> None:
        button_text = require_param(step, "button")
        button = self.locator.await_text(button_text, timeout, kind="alertTap")
        self.backend.perform_gesture(Gesture.TAP, target=button)

    # --- Helpers ---

    @staticmethod
    def _amount(step: TestStep) -> Dict[str, Any]:
        return {"amount": step.amount} if step.amount is not None else {}

    def _tap_text_portion(self, element: Any, element_id: str, target_text: str) -> None:
        """Tap at the horizontal centre of target_text inside the element's text."""
        full_text = self.backend.element_text(element) or ""
        start = full_text.find(target_text)
        if start == -1:
            raise AssertionFailure(
                "tap",
                f"Text '{target_text}' not found in element '{element_id}' text '{full_text}'",
                element_id=element_id,
            )
        if not full_text:
            self.backend.perform_gesture(Gesture.TAP, target=element)
            return

        end = start + len(target_text)
        center_ratio = ((start + end) / 2.0) / len(full_text)
        bounds = self.backend.element_bounds(element)
        x = bounds.left + int(bounds.width * center_ratio)
        y = bounds.center[1]
        self.backend.perform_gesture(Gesture.TAP, coordinates=(x, y))
