# jsonui_testrunner/locator.py
"""
@file locator.py
@brief Locates elements by test id through the backend, with bounded polling.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from .actionlogger import ACTION_LOGGER
from .config import RunnerConfig
from .exceptions import ElementNotFound, TimeoutError
from .interfaces import IBackend
from .waits import wait_for_any, wait_until

HIERARCHY_DUMP_CHARS = 5000


class ElementLocator:
    """
    Shared lookup primitive for action and assertion handlers.

    Polls the backend at config.polling_interval until an element appears or
    the timeout elapses.
    """

    def __init__(self, backend: IBackend, config: Optional[RunnerConfig] = None):
        self.backend = backend
        self.config = config or RunnerConfig()

    @property
    def interval(self) -> float:
        return self.config.polling_interval

    def find(self, element_id: str) -> Optional[Any]:
        """Single non-waiting lookup."""
        return self.backend.locate_by_id(element_id)

    def find_all(self, element_id: str) -> List[Any]:
        return list(self.backend.locate_all_by_id(element_id) or [])

    def await_element(self, element_id: str, timeout: float, kind: Optional[str] = None) -> Any:
        """
        Wait for an element with the given id.

        @throws ElementNotFound when timeout elapses without a match
        """
        try:
            return wait_until(
                lambda: self.backend.locate_by_id(element_id),
                timeout=timeout,
                interval=self.interval,
                description=f"element '{element_id}'",
            )
        except TimeoutError as e:
            self._dump_hierarchy(element_id)
            error = ElementNotFound([element_id], timeout, kind=kind)
            error.original_exception = e.original_exception
            error.attempt_count = e.attempt_count
            error.elapsed_time = e.elapsed_time
            raise error from e

    def await_any(self, element_ids: Sequence[str], timeout: float, kind: Optional[str] = None) -> Tuple[str, Any]:
        """
        Wait for the first of several ids to appear; ids are checked in order on every poll.

        @return (matched id, element)
        """
        found: List[Any] = [None] * len(element_ids)

        def probe(i: int, element_id: str):
            def predicate():
                found[i] = self.backend.locate_by_id(element_id)
                return found[i]
            return predicate

        try:
            index = wait_for_any(
                [probe(i, eid) for i, eid in enumerate(element_ids)],
                timeout=timeout,
                interval=self.interval,
                descriptions=list(element_ids),
            )
        except TimeoutError as e:
            self._dump_hierarchy(", ".join(element_ids))
            error = ElementNotFound(element_ids, timeout, kind=kind)
            error.original_exception = e.original_exception
            error.attempt_count = e.attempt_count
            error.elapsed_time = e.elapsed_time
            raise error from e
        return element_ids[index], found[index]

    def await_text(self, text: str, timeout: float, kind: Optional[str] = None) -> Any:
        """Wait for an element whose visible text matches (alert buttons)."""
        try:
            return wait_until(
                lambda: self.backend.locate_by_text(text),
                timeout=timeout,
                interval=self.interval,
                description=f"text '{text}'",
            )
        except TimeoutError as e:
            error = ElementNotFound([text], timeout, kind=kind)
            error.original_exception = e.original_exception
            raise error from e

    def _dump_hierarchy(self, looking_for: str) -> None:
        if not ACTION_LOGGER.is_enabled():
            return
        try:
            content = self.backend.dump_hierarchy() or ""
        except Exception as e:
            ACTION_LOGGER.narrate(f"Failed to dump hierarchy: {e}", status="warning")
            return
        ACTION_LOGGER.narrate(
            f"'{looking_for}' not found, UI hierarchy (first {HIERARCHY_DUMP_CHARS} chars):\n"
            f"{content[:HIERARCHY_DUMP_CHARS]}",
            status="debug",
        )
