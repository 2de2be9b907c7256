# jsonui_testrunner/assertions.py
"""
@file assertions.py
@brief Assertion handlers: check UI state, raise AssertionFailure on mismatch.
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Dict, Optional

from .actions import require_param
from .config import RunnerConfig
from .context import tracked_step
from .exceptions import AssertionFailure, StepArgumentError
from .interfaces import IBackend
from .locator import ElementLocator
from .models import TestStep


def expected_text(value: Any) -> str:
    """Text form of an `equals` value: strings as-is, other scalars as their JSON text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class AssertionExecutor:
    """Executes assertion steps against the backend."""

    def __init__(self, backend: IBackend, locator: ElementLocator, config: Optional[RunnerConfig] = None):
        self.backend = backend
        self.locator = locator
        self.config = config or RunnerConfig()
        self._handlers: Dict[str, Callable[[TestStep, float], None]] = {
            "visible": self.visible,
            "notVisible": self.not_visible,
            "enabled": self.enabled,
            "disabled": self.disabled,
            "text": self.text,
            "count": self.count,
        }

    @property
    def kinds(self):
        return sorted(self._handlers)

    def supports(self, assertion: str) -> bool:
        return assertion in self._handlers

    def execute(self, step: TestStep) -> None:
        assertion = step.assertion
        if assertion is None:
            raise StepArgumentError("step", "assert")
        handler = self._handlers.get(assertion)
        if handler is None:
            raise StepArgumentError(assertion, details=f"Unknown assertion: {assertion}")
        handler(step, self.config.step_timeout(step.timeout))

    @tracked_step("visible")
    def visible(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        self.locator.await_element(element_id, timeout, kind="visible")

    @tracked_step("notVisible")
    def not_visible(self, step: TestStep, timeout: float) -> None:
        """
        Absence cannot be proven faster by polling longer: wait one short grace
        period (never longer than the requested timeout), then check once.
        """
        element_id = require_param(step, "id")
        time.sleep(min(timeout, self.config.not_visible_grace))
        if self.locator.find(element_id) is not None:
            raise AssertionFailure(
                "notVisible",
                f"Element '{element_id}' should not be visible but it is",
                element_id=element_id,
            )

    @tracked_step("enabled")
    def enabled(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        element = self.locator.await_element(element_id, timeout, kind="enabled")
        if not self.backend.element_enabled(element):
            raise AssertionFailure(
                "enabled",
                f"Element '{element_id}' should be enabled but it is disabled",
                element_id=element_id,
            )

    @tracked_step("disabled")
    def disabled(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        element = self.locator.await_element(element_id, timeout, kind="disabled")
        if self.backend.element_enabled(element):
            raise AssertionFailure(
                "disabled",
                f"Element '{element_id}' should be disabled but it is enabled",
                element_id=element_id,
            )

    @tracked_step("text")
    def text(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        has_equals = step.equals is not None
        has_contains = step.contains is not None
        if has_equals == has_contains:
            raise StepArgumentError(
                "text", "equals",
                details="text requires exactly one of 'equals' or 'contains'",
            )

        element = self.locator.await_element(element_id, timeout, kind="text")
        actual = self.backend.element_text(element) or ""

        if has_equals:
            expected = expected_text(step.equals)
            if actual != expected:
                raise AssertionFailure(
                    "text",
                    f"Expected text '{expected}' but got '{actual}' for element '{element_id}'",
                    element_id=element_id,
                )
        elif step.contains not in actual:
            raise AssertionFailure(
                "text",
                f"Expected text containing '{step.contains}' but got '{actual}' for element '{element_id}'",
                element_id=element_id,
            )

    @tracked_step("count")
    def count(self, step: TestStep, timeout: float) -> None:
        element_id = require_param(step, "id")
        expected = step.equals
        if expected is None or isinstance(expected, bool) or not isinstance(expected, int):
            raise StepArgumentError("count", "equals", details="count requires 'equals' with integer value")

        if expected > 0:
            self.locator.await_element(element_id, timeout, kind="count")

        actual = len(self.locator.find_all(element_id))
        if actual != expected:
            raise AssertionFailure(
                "count",
                f"Expected {expected} elements with id '{element_id}', but found {actual}",
                element_id=element_id,
            )
