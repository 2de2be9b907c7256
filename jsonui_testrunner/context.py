# jsonui_testrunner/context.py
"""
@file context.py
@brief Step context tracking for readable failure traces.

The runner pushes suite and case contexts, step handlers push their own;
a failing handler attaches the formatted chain to the exception as
`action_trace`.
"""

from __future__ import annotations

import functools
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generator, List, Optional
from uuid import uuid4


@dataclass
class ActionContext:
    """Context information for one suite, case or step."""
    action_id: str = field(default_factory=lambda: str(uuid4())[:8])
    action_name: str = ""
    target: Optional[str] = None
    start_time: float = field(default_factory=time.monotonic)
    metadata: Dict[str, Any] = field(default_factory=dict)
    parent_context: Optional[ActionContext] = None

    @property
    def description(self) -> str:
        if self.target:
            return f"{self.action_name} '{self.target}'"
        return self.action_name

    @property
    def elapsed_time(self) -> float:
        return time.monotonic() - self.start_time

    def get_full_trace(self) -> List[ActionContext]:
        """The chain from this context up to the outermost one."""
        trace = [self]
        current = self.parent_context
        while current is not None:
            trace.append(current)
            current = current.parent_context
        return trace

    def format_trace(self) -> str:
        lines = ["Action trace (most recent first):"]
        for i, ctx in enumerate(self.get_full_trace()):
            prefix = "  -> " if i > 0 else "  X "
            lines.append(f"{prefix}{ctx.description} [{ctx.elapsed_time:.2f}s]")
        return "\n".join(lines)


class ActionContextManager:
    """Thread-local stack of action contexts."""

    _local = threading.local()

    @classmethod
    def _get_stack(cls) -> List[ActionContext]:
        if not hasattr(cls._local, "stack"):
            cls._local.stack = []
        return cls._local.stack

    @classmethod
    def current(cls) -> Optional[ActionContext]:
        stack = cls._get_stack()
        return stack[-1] if stack else None

    @classmethod
    def push(cls, context: ActionContext) -> None:
        stack = cls._get_stack()
        if stack:
            context.parent_context = stack[-1]
        stack.append(context)

    @classmethod
    def pop(cls) -> Optional[ActionContext]:
        stack = cls._get_stack()
        return stack.pop() if stack else None

    @classmethod
    @contextmanager
    def action(cls, action_name: str, target: Optional[str] = None, **metadata: Any) -> Generator[ActionContext, None, None]:
        context = ActionContext(action_name=action_name, target=target, metadata=metadata)
        cls.push(context)
        try:
            yield context
        finally:
            cls.pop()

    @classmethod
    def find(cls, action_name: str) -> Optional[ActionContext]:
        """Innermost context with the given name (e.g. "case")."""
        for ctx in reversed(cls._get_stack()):
            if ctx.action_name == action_name:
                return ctx
        return None

    @classmethod
    def clear(cls) -> None:
        cls._local.stack = []


def tracked_step(kind: Optional[str] = None) -> Callable:
    """
    Decorator for step handlers with the signature (self, step, timeout).

    Logs a step_finish event and, on failure, attaches the context chain to
    the exception as `action_trace`.
    """
    def decorator(func: Callable) -> Callable:
        name = kind or func.__name__

        @functools.wraps(func)
        def wrapper(self: Any, step: Any, *args: Any, **kwargs: Any) -> Any:
            from .actionlogger import ACTION_LOGGER

            element = step.id or (",".join(step.ids) if step.ids else None)
            suite_ctx = ActionContextManager.find("suite")
            case_ctx = ActionContextManager.find("case")
            params = {"value": step.value, "direction": step.direction,
                      "text": step.text, "button": step.button}

            with ActionContextManager.action(name, target=element) as context:
                failure: Optional[Exception] = None
                try:
                    return func(self, step, *args, **kwargs)
                except Exception as exc:
                    if getattr(exc, "action_trace", None) is None:
                        exc.action_trace = context.format_trace()
                    failure = exc
                    raise
                finally:
                    ACTION_LOGGER.log(
                        event="step_finish",
                        action=name,
                        action_id=context.action_id,
                        element=element,
                        suite=suite_ctx.target if suite_ctx else None,
                        case=case_ctx.target if case_ctx else None,
                        status="ok" if failure is None else "error",
                        duration_ms=int(context.elapsed_time * 1000),
                        metadata={k: v for k, v in params.items() if v is not None},
                        exception=failure,
                    )

        return wrapper

    return decorator
