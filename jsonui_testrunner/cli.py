# jsonui_testrunner/cli.py
"""
@file cli.py
@brief Command-line interface for jsonui-testrunner.
"""

from __future__ import annotations

import argparse
import importlib
import os
import sys
from typing import Any, Dict, List, Optional

from .actionlogger import ACTION_LOGGER
from .config import RunnerConfig
from .context import ActionContextManager
from .exceptions import JsonUITestError, ReferenceNotFound
from .interfaces import IBackend
from .loader import TestLoader
from .models import (BlockFlowStep, FileRefFlowStep, InlineFlowStep,
                     LoadedScreen, LoadedTest)
from .results import TestSuiteResult, write_report
from .runner import JsonUITestRunner
from .timinglogger import TIMING_LOGGER

_TRUTHY = {"1", "true", "yes", "on"}


def _resolve_test_paths(target: str) -> List[str]:
    """A single test file, or every *.test.json under a directory."""
    if os.path.isdir(target):
        return TestLoader.discover(target)
    if not os.path.isfile(target):
        raise ReferenceNotFound(target)
    return [os.path.abspath(target)]


def _resolve_preset(args: argparse.Namespace) -> str:
    if getattr(args, "ci", False):
        return "ci"
    if getattr(args, "fast", False):
        return "fast"
    if getattr(args, "slow", False):
        return "slow"
    return "default"


def _build_config(args: argparse.Namespace) -> RunnerConfig:
    """Precedence: defaults -> preset -> --config file -> explicit flags."""
    preset = _resolve_preset(args)
    if args.config:
        config = RunnerConfig.from_yaml(args.config, preset=preset)
    else:
        config = RunnerConfig().with_preset(preset)

    overrides: Dict[str, Any] = {
        "platform": args.platform,
        "default_timeout": args.timeout,
        "artifacts_dir": args.artifacts_dir,
    }
    if args.verbose:
        overrides["verbose"] = True
    if args.no_screenshots:
        overrides["screenshot_on_failure"] = False
    return config.with_overrides(**overrides)


def _load_backend(spec: str) -> IBackend:
    """Instantiate a backend given as "package.module:ClassName"."""
    module_name, sep, class_name = spec.partition(":")
    if not sep or not module_name or not class_name:
        raise ValueError(f"--backend must look like 'module:Class', got '{spec}'")
    module = importlib.import_module(module_name)
    backend_cls = getattr(module, class_name)
    backend = backend_cls()
    if not isinstance(backend, IBackend):
        raise TypeError(f"{spec} does not implement IBackend")
    return backend


def _describe(loaded: LoadedTest) -> List[str]:
    lines = [f"[{loaded.kind}] {loaded.metadata.name}  ({loaded.path})"]
    if isinstance(loaded, LoadedScreen):
        for case in loaded.test.cases:
            flag = " (skip)" if case.skip else ""
            lines.append(f"    - {case.name}: {len(case.steps)} steps{flag}")
        return lines

    for index, step in enumerate(loaded.test.steps):
        if isinstance(step, InlineFlowStep):
            lines.append(f"    {index}. [{step.screen}] {step.step.describe()}")
        elif isinstance(step, BlockFlowStep):
            lines.append(f"    {index}. [{step.screen}] block '{step.block}': {len(step.steps)} steps")
        elif isinstance(step, FileRefFlowStep):
            selected = step.case or (", ".join(step.cases) if step.cases else "all cases")
            lines.append(f"    {index}. file '{step.file}': {selected}")
    return lines


def _print_run_summary(suites: List[TestSuiteResult]) -> None:
    print("\nRun Summary")
    print("-" * 80)
    for suite in suites:
        status = "PASSED" if suite.all_passed else "FAILED"
        print(f"{status:<8} {suite.suite_name}  ({suite.passed_count} passed, "
              f"{suite.failed_count} failed, {suite.total_duration_ms} ms)")
        for result in suite.results:
            if not result.passed:
                print(f"    X {result.case_name}: {result.error}")
    failed = sum(1 for s in suites if not s.all_passed)
    print("-" * 80)
    print(f"Total: {len(suites)}  Passed: {len(suites) - failed}  Failed: {failed}")


def _configure_action_logger_from_env() -> None:
    """Configure action logging from environment variables."""
    enabled = os.getenv("JSONUI_ACTION_LOGGING", "").lower() in _TRUTHY
    if not enabled:
        ACTION_LOGGER.disable()
        return

    ACTION_LOGGER.configure(
        console=True,
        file_path=os.getenv("JSONUI_ACTION_LOG_FILE"),
        level=os.getenv("JSONUI_ACTION_LOG_LEVEL", "INFO"),
        format=os.getenv("JSONUI_ACTION_LOG_FORMAT", "line"),
        max_traceback_chars=int(os.getenv("JSONUI_ACTION_LOG_MAX_TRACEBACK", "4000")),
    )
    ACTION_LOGGER.enable()


def _configure_timing_logger_from_env() -> None:
    """Configure timing logging from environment variables."""
    enabled = os.getenv("JSONUI_TIMING_LOGGING", "").lower() in _TRUTHY
    if not enabled:
        TIMING_LOGGER.disable()
        return

    TIMING_LOGGER.configure(
        console=True,
        file_path=os.getenv("JSONUI_TIMING_LOG_FILE"),
        jsonl=os.getenv("JSONUI_TIMING_LOG_FORMAT", "line").lower() == "jsonl",
    )
    TIMING_LOGGER.enable()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    argv = argv if argv is not None else sys.argv[1:]
    _configure_action_logger_from_env()
    _configure_timing_logger_from_env()

    p = argparse.ArgumentParser(
        prog="jsonui-test",
        description="jsonui-testrunner - declarative JSON UI test runner",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # -------------------------
    # validate
    # -------------------------
    valp = sub.add_parser("validate", help="Validate test documents against their schema")
    valp.add_argument("path", help="A .test.json file or a directory searched recursively")

    # -------------------------
    # list
    # -------------------------
    listp = sub.add_parser("list", help="List suites with their cases or flow steps")
    listp.add_argument("path", help="A .test.json file or a directory searched recursively")

    # -------------------------
    # run
    # -------------------------
    runp = sub.add_parser("run", help="Run test documents against an automation backend")
    runp.add_argument("path", help="A .test.json file or a directory searched recursively")
    runp.add_argument("--backend", "-b", required=True, help="Backend class as 'module:Class' implementing IBackend")
    runp.add_argument("--config", "-c", default=None, help="Optional runner config YAML")
    runp.add_argument("--platform", "-p", default=None, help="Target platform used for platform gating")
    runp.add_argument("--timeout", "-t", type=float, default=None, help="Default step timeout in seconds")
    runp.add_argument("--artifacts-dir", default=None, help="Directory for failure and checkpoint screenshots")
    runp.add_argument("--no-screenshots", action="store_true", help="Do not capture screenshots on failure")
    runp.add_argument("--ci", action="store_true", help="Use CI-optimized timing settings")
    runp.add_argument("--fast", action="store_true", help="Use fast timing settings for local development")
    runp.add_argument("--slow", action="store_true", help="Use slow timing settings for unstable environments")
    runp.add_argument("--verbose", action="store_true", help="Log every step")
    runp.add_argument("--report", "-r", default=None, help="Optional JSON report output path")

    args = p.parse_args(argv)
    loader = TestLoader()

    try:
        paths = _resolve_test_paths(args.path)
    except JsonUITestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not paths:
        print(f"Error: no test files found under {args.path}", file=sys.stderr)
        return 1

    if args.cmd == "validate":
        invalid = 0
        for path in paths:
            try:
                loaded = loader.load(path)
            except JsonUITestError as e:
                invalid += 1
                print(f"X {path}: {e}", file=sys.stderr)
                continue
            print(f"+ {path} [{loaded.kind}] {loaded.metadata.name}")
        print(f"Total: {len(paths)}  Valid: {len(paths) - invalid}  Invalid: {invalid}")
        return 2 if invalid else 0

    try:
        loaded_tests = [loader.load(path) for path in paths]
    except JsonUITestError as e:
        print(f"Error loading tests: {e}", file=sys.stderr)
        return 1

    if args.cmd == "list":
        for loaded in loaded_tests:
            print("\n".join(_describe(loaded)))
        return 0

    if args.cmd == "run":
        try:
            config = _build_config(args)
            backend = _load_backend(args.backend)
        except (JsonUITestError, ImportError, AttributeError, TypeError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        ActionContextManager.clear()
        runner = JsonUITestRunner(backend, config=config)
        try:
            suites = runner.run_all(loaded_tests)
        except JsonUITestError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2

        _print_run_summary(suites)
        if args.report:
            print(f"Report: {write_report(suites, args.report)}")
        return 0 if all(s.all_passed for s in suites) else 2

    return 1


if __name__ == "__main__":
    sys.exit(main())
