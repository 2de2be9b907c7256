# jsonui_testrunner/dispatcher.py
"""
@file dispatcher.py
@brief Routes one step to its action or assertion handler.
"""

from __future__ import annotations

from typing import Optional

from .actions import ActionExecutor
from .assertions import AssertionExecutor
from .config import RunnerConfig
from .interfaces import IBackend
from .locator import ElementLocator
from .models import TestStep


class StepDispatcher:
    """
    Owns the locator and both executors for one backend session.
    A step is either an action or an assertion, never both.
    """

    def __init__(self, backend: IBackend, config: Optional[RunnerConfig] = None):
        self.backend = backend
        self.config = config or RunnerConfig()
        self.locator = ElementLocator(backend, self.config)
        self.actions = ActionExecutor(backend, self.locator, self.config)
        self.assertions = AssertionExecutor(backend, self.locator, self.config)

    def dispatch(self, step: TestStep) -> None:
        if step.is_action:
            self.actions.execute(step)
        else:
            self.assertions.execute(step)
