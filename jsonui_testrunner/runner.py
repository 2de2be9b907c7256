# jsonui_testrunner/runner.py
"""
@file runner.py
@brief Execution engine for loaded screen and flow tests.

Screen tests isolate failures per case. Flow tests are atomic: the first
failure ends the whole flow and it yields a single result.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Sequence
from uuid import uuid4

from .actionlogger import ACTION_LOGGER
from .artifacts import capture_screenshot
from .config import RunnerConfig
from .context import ActionContextManager
from .dispatcher import StepDispatcher
from .exceptions import SetupFailure, TeardownFailure
from .interfaces import IBackend
from .models import (BlockFlowStep, FileRefFlowStep, FlowTest, FlowTestStep,
                     InlineFlowStep, LoadedFlow, LoadedScreen, LoadedTest,
                     ResolutionContext, ScreenTest, TestCase, TestStep,
                     platform_allows)
from .references import ReferenceResolver
from .results import TestResult, TestSuiteResult

FLOW_CASE_NAME = "flow"
SETUP_CASE_NAME = "setup"


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _describe_error(exc: BaseException) -> str:
    message = str(exc)
    return message if message else type(exc).__name__


class JsonUITestRunner:
    """
    Runs LoadedScreen / LoadedFlow documents against one backend session.
    """

    def __init__(
        self,
        backend: IBackend,
        config: Optional[RunnerConfig] = None,
        resolver: Optional[ReferenceResolver] = None,
    ):
        """
        @param backend Established automation session, owned by this runner for the run
        @param config Timings, platform and failure artifact settings
        @param resolver Resolver for flow file references (a fresh one by default)
        """
        self.backend = backend
        self.config = config or RunnerConfig()
        self.resolver = resolver or ReferenceResolver()
        self.dispatcher = StepDispatcher(backend, self.config)

    # --- Entry points ---

    def run(self, loaded: LoadedTest) -> TestSuiteResult:
        """
        Run one loaded document.

        @throws SetupFailure if a screen test's setup fails
        """
        self.resolver.clear_cache()
        with self._step_logging():
            return self._run_loaded(loaded)

    def run_all(self, loaded_tests: Iterable[LoadedTest]) -> List[TestSuiteResult]:
        """
        Run documents in order. A failed screen test setup is recorded as a
        single failing "setup" result for that suite and the run goes on.
        """
        ACTION_LOGGER.set_run_id(str(uuid4()))
        self.resolver.clear_cache()
        suites: List[TestSuiteResult] = []
        with self._step_logging():
            for loaded in loaded_tests:
                try:
                    suites.append(self._run_loaded(loaded))
                except SetupFailure as e:
                    suites.append(self._setup_failed_suite(e))
        return suites

    def _run_loaded(self, loaded: LoadedTest) -> TestSuiteResult:
        if isinstance(loaded, LoadedScreen):
            return self.run_screen_test(loaded.test)
        if isinstance(loaded, LoadedFlow):
            return self.run_flow_test(loaded.test, loaded.context)
        raise TypeError(f"Unsupported loaded test: {type(loaded).__name__}")

    @contextmanager
    def _step_logging(self) -> Iterator[None]:
        """Turn step logging on for verbose runs and restore the previous state afterwards."""
        was_enabled = ACTION_LOGGER.is_enabled()
        if self.config.verbose:
            ACTION_LOGGER.enable()
        try:
            yield
        finally:
            if not was_enabled:
                ACTION_LOGGER.disable()

    @staticmethod
    def _setup_failed_suite(failure: SetupFailure) -> TestSuiteResult:
        result = TestResult(
            suite_name=failure.suite_name,
            case_name=SETUP_CASE_NAME,
            passed=False,
            error=str(failure),
            duration_ms=failure.duration_ms,
            trace=getattr(failure.cause, "action_trace", None),
        )
        return TestSuiteResult(suite_name=failure.suite_name, results=[result],
                               total_duration_ms=failure.duration_ms)

    # --- Screen tests ---

    def run_screen_test(self, test: ScreenTest) -> TestSuiteResult:
        """
        Run every case of a screen test.

        The suite duration includes the settle delay before the first case.

        @throws SetupFailure if the setup steps fail; no case runs then
        """
        suite = test.metadata.name
        start = time.monotonic()
        self._settle()

        if not platform_allows(test.platform, self.config.platform):
            ACTION_LOGGER.narrate(f"Skipping suite, platform '{self.config.platform}' excluded",
                                  suite=suite, status="skipped")
            return TestSuiteResult(suite_name=suite)

        results: List[TestResult] = []
        ActionContextManager.clear()
        with ActionContextManager.action("suite", target=suite):
            if test.setup:
                ACTION_LOGGER.narrate("Running setup", suite=suite)
                try:
                    self._run_steps(test.setup)
                except Exception as e:
                    ACTION_LOGGER.narrate("Setup failed", suite=suite, status="error", exception=e)
                    raise SetupFailure(suite, e, duration_ms=_elapsed_ms(start)) from e

            for case in test.cases:
                results.append(self._run_case(suite, case))

            if test.teardown:
                ACTION_LOGGER.narrate("Running teardown", suite=suite)
                try:
                    self._run_steps(test.teardown)
                except Exception as e:
                    failure = TeardownFailure(suite, e)
                    ACTION_LOGGER.narrate(str(failure), suite=suite, status="warning", exception=e)

        return TestSuiteResult(suite_name=suite, results=results, total_duration_ms=_elapsed_ms(start))

    def _run_case(self, suite: str, case: TestCase) -> TestResult:
        if case.skip:
            ACTION_LOGGER.narrate("Skipped", suite=suite, case=case.name, status="skipped")
            return TestResult(suite_name=suite, case_name=case.name, passed=True)
        if not platform_allows(case.platform, self.config.platform):
            ACTION_LOGGER.narrate(f"Skipped, platform '{self.config.platform}' excluded",
                                  suite=suite, case=case.name, status="skipped")
            return TestResult(suite_name=suite, case_name=case.name, passed=True)

        ACTION_LOGGER.narrate("Case started", suite=suite, case=case.name)
        start = time.monotonic()
        with ActionContextManager.action("case", target=case.name):
            try:
                self._run_steps(case.steps)
            except Exception as e:
                duration = _elapsed_ms(start)
                ACTION_LOGGER.narrate("Case failed", suite=suite, case=case.name, status="error", exception=e)
                self._failure_screenshot(suite, case.name)
                return TestResult(
                    suite_name=suite,
                    case_name=case.name,
                    passed=False,
                    error=_describe_error(e),
                    duration_ms=duration,
                    trace=getattr(e, "action_trace", None),
                )

        duration = _elapsed_ms(start)
        ACTION_LOGGER.narrate("Case passed", suite=suite, case=case.name, status="ok")
        return TestResult(suite_name=suite, case_name=case.name, passed=True, duration_ms=duration)

    # --- Flow tests ---

    def run_flow_test(self, test: FlowTest, context: Optional[ResolutionContext] = None) -> TestSuiteResult:
        """
        Run a flow as one unit: setup, steps, teardown.

        File references resolve against `context`; a flow loaded from a string
        without a base directory can only use inline and block steps.
        """
        suite = test.metadata.name
        context = context or ResolutionContext()

        if not platform_allows(test.platform, self.config.platform):
            ACTION_LOGGER.narrate(f"Skipping flow, platform '{self.config.platform}' excluded",
                                  suite=suite, status="skipped")
            return TestSuiteResult(suite_name=suite)

        start = time.monotonic()
        ActionContextManager.clear()
        with ActionContextManager.action("suite", target=suite), \
                ActionContextManager.action("case", target=FLOW_CASE_NAME):
            try:
                for step in test.setup or ():
                    self._run_flow_step(step, context)
                for index, step in enumerate(test.steps):
                    self._run_flow_step(step, context)
                    for checkpoint in test.checkpoints_after(index):
                        ACTION_LOGGER.narrate(f"Checkpoint '{checkpoint.name}' reached after step {index}",
                                              suite=suite, case=FLOW_CASE_NAME)
                        if checkpoint.screenshot:
                            capture_screenshot(self.backend, self.config.artifacts_dir,
                                               f"checkpoint_{suite}_{checkpoint.name}")
                for step in test.teardown or ():
                    self._run_flow_step(step, context)
            except Exception as e:
                duration = _elapsed_ms(start)
                ACTION_LOGGER.narrate("Flow failed", suite=suite, case=FLOW_CASE_NAME, status="error", exception=e)
                self._failure_screenshot(suite, FLOW_CASE_NAME)
                result = TestResult(
                    suite_name=suite,
                    case_name=FLOW_CASE_NAME,
                    passed=False,
                    error=_describe_error(e),
                    duration_ms=duration,
                    trace=getattr(e, "action_trace", None),
                )
                return TestSuiteResult(suite_name=suite, results=[result], total_duration_ms=duration)

        duration = _elapsed_ms(start)
        ACTION_LOGGER.narrate("Flow passed", suite=suite, case=FLOW_CASE_NAME, status="ok")
        result = TestResult(suite_name=suite, case_name=FLOW_CASE_NAME, passed=True, duration_ms=duration)
        return TestSuiteResult(suite_name=suite, results=[result], total_duration_ms=duration)

    def _run_flow_step(self, step: FlowTestStep, context: ResolutionContext) -> None:
        if isinstance(step, InlineFlowStep):
            self.dispatcher.dispatch(step.to_test_step())
        elif isinstance(step, BlockFlowStep):
            with ActionContextManager.action("block", target=step.block):
                for inner in step.steps:
                    self.dispatcher.dispatch(inner.to_test_step())
        elif isinstance(step, FileRefFlowStep):
            cases = self.resolver.resolve_cases(step.file, context, case_name=step.case, case_names=step.cases)
            for case in cases:
                if case.skip or not platform_allows(case.platform, self.config.platform):
                    continue
                with ActionContextManager.action("case", target=f"{step.file}:{case.name}"):
                    self._run_steps(case.steps)
        else:
            raise TypeError(f"Unsupported flow step: {type(step).__name__}")

    # --- Helpers ---

    def _run_steps(self, steps: Sequence[TestStep]) -> None:
        for step in steps:
            self.dispatcher.dispatch(step)

    def _settle(self) -> None:
        """Give the UI time to render before the first lookup."""
        if self.config.settle_delay > 0:
            time.sleep(self.config.settle_delay)
        self.backend.wait_for_idle(self.config.idle_timeout)

    def _failure_screenshot(self, suite: str, case_name: str) -> None:
        if self.config.screenshot_on_failure:
            capture_screenshot(self.backend, self.config.artifacts_dir, f"failure_{suite}_{case_name}")
