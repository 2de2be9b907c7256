# jsonui_testrunner/timinglogger.py
"""
@file timinglogger.py
@brief Poll timing events (wait start, success and timeout).

Kept apart from the step log so slow locators can be diagnosed without the
noise of every dispatched step.
"""

from __future__ import annotations

import json
import os
import sys
import time
from typing import Any, Dict, Optional, TextIO


class TimingLogger:
    """Process-wide wait timing logger. Disabled until enable() is called."""

    def __init__(self) -> None:
        self._enabled = False
        self._console = True
        self._stream: Optional[TextIO] = None
        self._file_path: Optional[str] = None
        self._jsonl = False

    def configure(
        self,
        *,
        console: bool = True,
        file_path: Optional[str] = None,
        jsonl: bool = False,
        stream: Optional[TextIO] = None,
    ) -> None:
        self._console = bool(console)
        self._file_path = file_path
        self._jsonl = bool(jsonl)
        self._stream = stream

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def is_enabled(self) -> bool:
        return self._enabled

    def log(
        self,
        *,
        event: str,
        description: Optional[str] = None,
        status: str = "info",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self._enabled:
            return

        fields = dict(metadata or {})
        if self._jsonl:
            payload = {"time": time.strftime("%H:%M:%S"), "event": event,
                       "status": status, "description": description}
            payload.update(fields)
            text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)
        else:
            words = [f"[{status.lower()}] [timing] event={event}"]
            if description:
                words.append(f"description={description}")
            words.extend(f"{key}={value}" for key, value in fields.items())
            text = " ".join(words)

        if self._console:
            print(text, file=self._stream or sys.stdout, flush=True)
        if self._file_path:
            self._append(text)

    def _append(self, text: str) -> None:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self._file_path)), exist_ok=True)
            with open(self._file_path, "a", encoding="utf-8") as f:
                f.write(text + "\n")
        except OSError as e:
            print(f"[timinglogger] cannot write {self._file_path}: {e}", file=sys.stderr)
            self._file_path = None


TIMING_LOGGER = TimingLogger()
