# jsonui_testrunner/exceptions.py
"""
@file exceptions.py
@brief Exception taxonomy for the JSON UI test runner.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class JsonUITestError(Exception):
    """Base exception for the framework."""
    pass


class ConfigError(JsonUITestError):
    """Raised when runner configuration (YAML/dict) is invalid."""
    pass


class MalformedDocument(JsonUITestError):
    """
    Raised when a test document cannot be turned into a ScreenTest or FlowTest.

    Attributes:
        source: Logical name of the document (path, asset name, "inline")
        problems: Individual problems found (schema paths, invariant violations)
    """

    def __init__(self, message: str, source: Optional[str] = None, problems: Optional[Sequence[str]] = None):
        self.source = source
        self.problems: List[str] = list(problems or [])
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.source:
            base = f"{self.source}: {base}"
        if self.problems:
            lines = [base]
            for p in self.problems:
                lines.append(f"- {p}")
            return "\n".join(lines)
        return base


# --- Reference resolution ---

class ResolutionError(JsonUITestError):
    """Base class for file/case reference resolution failures."""
    pass


class BasePathUnset(ResolutionError):
    """Raised when a relative reference is resolved without a base directory."""

    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(
            f"Cannot resolve reference '{ref}': no base directory is known "
            f"(document was not loaded from a file)"
        )


class ReferenceNotFound(ResolutionError):
    """Raised when no candidate file exists for a reference."""

    def __init__(self, ref: str, candidates: Optional[Sequence[str]] = None):
        self.ref = ref
        self.candidates: List[str] = list(candidates or [])
        msg = f"Referenced file not found: '{ref}'"
        if self.candidates:
            msg += f" (tried: {', '.join(self.candidates)})"
        super().__init__(msg)


class CaseNotFound(ResolutionError):
    """Raised when a named case does not exist in the referenced ScreenTest."""

    def __init__(self, case_name: str, file_ref: str, available: Optional[Sequence[str]] = None):
        self.case_name = case_name
        self.file_ref = file_ref
        self.available: List[str] = list(available or [])
        msg = f"Case '{case_name}' not found in '{file_ref}'"
        if self.available:
            msg += f". Available: {self.available}"
        super().__init__(msg)


class WrongDocumentKind(ResolutionError):
    """Raised when a file reference points at a flow instead of a screen test."""

    def __init__(self, file_ref: str, expected: str, actual: str):
        self.file_ref = file_ref
        self.expected = expected
        self.actual = actual
        super().__init__(f"'{file_ref}' is a {actual} test, expected a {expected} test")


# --- Step execution ---

class StepError(JsonUITestError):
    """Base class for failures raised while executing a single step."""
    pass


class StepArgumentError(StepError):
    """Raised when a step is missing a required parameter or has an invalid one."""

    def __init__(self, kind: str, field: Optional[str] = None, details: Optional[str] = None):
        self.kind = kind
        self.field = field
        self.details = details
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.details:
            return f"{self.kind}: {self.details}"
        return f"{self.kind} requires '{self.field}'"


class AssertionFailure(StepError):
    """Raised when backend state does not match what a step expected."""

    def __init__(self, kind: str, message: str, element_id: Optional[str] = None):
        self.kind = kind
        self.element_id = element_id
        super().__init__(message)


class TimeoutError(JsonUITestError):
    """
    Raised when a wait times out.

    Preserves the last exception raised by the polled predicate.

    Attributes:
        original_exception: The last exception that was raised before timeout
        description: Human-readable description of what was being waited for
        timeout: The timeout value in seconds
        attempt_count: Number of polls made
        elapsed_time: Actual elapsed time in seconds
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.original_exception: Optional[BaseException] = None
        self.description: Optional[str] = None
        self.timeout: Optional[float] = None
        self.attempt_count: Optional[int] = None
        self.elapsed_time: Optional[float] = None

    def __str__(self) -> str:
        base_msg = super().__str__()

        details = []
        if self.original_exception is not None:
            details.append(f"Original exception: {type(self.original_exception).__name__}")
        if self.attempt_count is not None:
            details.append(f"Attempts: {self.attempt_count}")
        if self.elapsed_time is not None:
            details.append(f"Elapsed: {self.elapsed_time:.2f}s")

        if details:
            return f"{base_msg} [{', '.join(details)}]"
        return base_msg

    def get_root_cause(self) -> Optional[BaseException]:
        """
        Get the root cause exception by traversing the chain.

        @return The deepest original_exception in the chain, or None
        """
        current = self.original_exception
        while current is not None:
            if getattr(current, "original_exception", None) is not None:
                current = current.original_exception
            else:
                return current
        return None


class ElementNotFound(TimeoutError):
    """Raised when no element with the given id(s) appeared within the timeout."""

    def __init__(self, element_ids: Sequence[str], timeout: float, kind: Optional[str] = None):
        self.element_ids: List[str] = list(element_ids)
        self.kind = kind
        if len(self.element_ids) == 1:
            what = f"Element '{self.element_ids[0]}'"
        else:
            what = f"None of elements [{', '.join(self.element_ids)}]"
        super().__init__(f"{what} not found within {int(round(timeout * 1000))}ms")
        self.timeout = timeout


# --- Suite lifecycle ---

class SetupFailure(JsonUITestError):
    """Raised when a ScreenTest setup sequence fails; fatal to the suite."""

    def __init__(self, suite_name: str, cause: BaseException, duration_ms: int = 0):
        self.suite_name = suite_name
        self.cause = cause
        self.duration_ms = duration_ms
        super().__init__(f"Setup failed for '{suite_name}': {type(cause).__name__}: {cause}")


class TeardownFailure(JsonUITestError):
    """Describes a teardown failure. Logged by the runner, never raised out of it."""

    def __init__(self, suite_name: str, cause: BaseException):
        self.suite_name = suite_name
        self.cause = cause
        super().__init__(f"Teardown failed for '{suite_name}': {type(cause).__name__}: {cause}")
