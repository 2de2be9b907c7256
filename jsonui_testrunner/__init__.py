# jsonui_testrunner/__init__.py
"""
jsonui-testrunner - Declarative JSON UI test execution engine.

This package provides:
- TestLoader: screen/flow test document parsing and schema validation
- ReferenceResolver: cross-file case references used by flow tests
- JsonUITestRunner: per-case isolated screen runs, atomic flow runs
- IBackend: the capability interface an automation backend implements
- RunnerConfig: timings, presets and platform gating
"""

from jsonui_testrunner.config import RunnerConfig
from jsonui_testrunner.dispatcher import StepDispatcher
from jsonui_testrunner.exceptions import (
    AssertionFailure,
    BasePathUnset,
    CaseNotFound,
    ConfigError,
    ElementNotFound,
    JsonUITestError,
    MalformedDocument,
    ReferenceNotFound,
    ResolutionError,
    SetupFailure,
    StepArgumentError,
    StepError,
    TeardownFailure,
    TimeoutError,
    WrongDocumentKind,
)
from jsonui_testrunner.interfaces import Bounds, Gesture, IBackend
from jsonui_testrunner.loader import TestLoader
from jsonui_testrunner.models import (
    FlowTest,
    LoadedFlow,
    LoadedScreen,
    ResolutionContext,
    ScreenTest,
    TestCase,
    TestStep,
)
from jsonui_testrunner.references import ReferenceResolver
from jsonui_testrunner.results import TestResult, TestSuiteResult
from jsonui_testrunner.runner import JsonUITestRunner

__version__ = "1.0.0"

__all__ = [
    "RunnerConfig",
    "StepDispatcher",
    "AssertionFailure",
    "BasePathUnset",
    "CaseNotFound",
    "ConfigError",
    "ElementNotFound",
    "JsonUITestError",
    "MalformedDocument",
    "ReferenceNotFound",
    "ResolutionError",
    "SetupFailure",
    "StepArgumentError",
    "StepError",
    "TeardownFailure",
    "TimeoutError",
    "WrongDocumentKind",
    "Bounds",
    "Gesture",
    "IBackend",
    "TestLoader",
    "FlowTest",
    "LoadedFlow",
    "LoadedScreen",
    "ResolutionContext",
    "ScreenTest",
    "TestCase",
    "TestStep",
    "ReferenceResolver",
    "TestResult",
    "TestSuiteResult",
    "JsonUITestRunner",
]
