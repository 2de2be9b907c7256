# jsonui_testrunner/actionlogger.py
"""
@file actionlogger.py
@brief Step event log and run narration.

Two kinds of records share one sink:
- step records, written by the tracked_step decorator once a step finishes
- narration records, written by the runner around suites, cases and hooks

Records render either as a " | "-joined line or as one JSON object per line.
"""

from __future__ import annotations

import json
import os
import sys
import threading
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, TextIO

SENSITIVE_KEYS = {"password", "passwd", "secret", "token"}

# Metadata keys whose values are typed into the UI and must never be logged in full
TYPED_VALUE_KEYS = {"value"}

FORMATS = ("line", "jsonl")


def mask_typed_value(text: str, keep: int = 3) -> str:
    """Keep a short prefix of typed text so the log still hints at what was entered."""
    if len(text) <= keep:
        return "*" * len(text)
    return text[:keep] + "***"


def describe_exception(exception: BaseException, limit: int) -> Dict[str, Any]:
    """Flatten an exception (and its direct cause) into log-friendly fields."""
    rendered = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
    if len(rendered) > limit:
        rendered = rendered[:limit] + "...<truncated>"

    info: Dict[str, Any] = {
        "type": type(exception).__name__,
        "message": str(exception),
        "traceback": rendered.strip(),
    }
    cause = exception.__cause__
    if cause is not None:
        info["cause_type"] = type(cause).__name__
        info["cause_message"] = str(cause)
    return info


class ActionLogger:
    """Process-wide step logger. Disabled until enable() is called."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._enabled = False
        self._console = True
        self._stream: Optional[TextIO] = None
        self._file_path: Optional[str] = None
        self._level = "INFO"
        self._run_id = "default"
        self._format = "line"
        self._traceback_limit = 4000

    def configure(
        self,
        *,
        console: bool = True,
        file_path: Optional[str] = None,
        level: str = "INFO",
        run_id: Optional[str] = None,
        format: str = "line",
        max_traceback_chars: int = 4000,
        stream: Optional[TextIO] = None,
    ) -> None:
        output_format = (format or "line").lower()
        if output_format not in FORMATS:
            raise ValueError(f"Unsupported action log format '{format}', expected one of {', '.join(FORMATS)}")

        with self._lock:
            self._console = bool(console)
            self._stream = stream
            self._file_path = file_path
            self._level = level.upper()
            self._format = output_format
            self._traceback_limit = max(256, int(max_traceback_chars))
            if run_id:
                self._run_id = run_id

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def is_enabled(self) -> bool:
        return self._enabled

    def set_run_id(self, run_id: str) -> None:
        if run_id:
            self._run_id = run_id

    @property
    def run_id(self) -> str:
        return self._run_id

    def log(
        self,
        *,
        action: str,
        element: Optional[str] = None,
        suite: Optional[str] = None,
        case: Optional[str] = None,
        status: str = "ok",
        duration_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
        action_id: Optional[str] = None,
        event: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        """Record one step (or narration) event."""
        if not self._enabled:
            return

        now = datetime.now(timezone.utc)
        record: Dict[str, Any] = {
            "timestamp": time.strftime("%H:%M:%S"),
            "ts": now.isoformat(timespec="milliseconds"),
            "level": self._level,
            "run_id": self._run_id,
            "event": event or "step",
            "action": action,
            "action_id": action_id,
            "suite": suite,
            "case": case,
            "element": element,
            "status": status,
            "duration_ms": duration_ms,
            "message": message,
            "metadata": self._scrub(metadata or {}),
        }
        if exception is not None:
            record["exception"] = describe_exception(exception, self._traceback_limit)

        self._emit(self._render(record))

    def narrate(self, message: str, *, suite: Optional[str] = None, case: Optional[str] = None,
                status: str = "info", exception: Optional[BaseException] = None) -> None:
        """Free-form run narration (setup, case start, skips, teardown)."""
        self.log(action="runner", suite=suite, case=case, status=status,
                 event="narrate", message=message, exception=exception)

    # --- Rendering ---

    @staticmethod
    def _scrub(metadata: Dict[str, Any]) -> Dict[str, Any]:
        scrubbed: Dict[str, Any] = {}
        for key, value in metadata.items():
            if key.lower() in SENSITIVE_KEYS:
                scrubbed[key] = "***"
            elif key in TYPED_VALUE_KEYS:
                scrubbed[key] = mask_typed_value(str(value))
            else:
                scrubbed[key] = value
        return scrubbed

    def _render(self, record: Dict[str, Any]) -> str:
        if self._format == "jsonl":
            return json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str)

        fields: List[str] = [record["timestamp"], record["level"], record["action"]]
        for key in ("event", "action_id", "suite", "case"):
            if record.get(key):
                fields.append(f"{key}={record[key]}")
        if record.get("element"):
            fields.append(f"element='{record['element']}'")
        fields.append(f"status={record['status']}")
        if record.get("duration_ms") is not None:
            fields.append(f"duration_ms={record['duration_ms']}")
        if record.get("message"):
            fields.append(record["message"])
        fields.extend(f"{key}={value}" for key, value in record["metadata"].items())

        failure = record.get("exception")
        if failure:
            fields.append(f"exc={failure['type']}: {failure['message']}")
            if "cause_type" in failure:
                fields.append(f"cause={failure['cause_type']}")
        return " | ".join(fields)

    def _emit(self, text: str) -> None:
        with self._lock:
            if self._console:
                print(text, file=self._stream or sys.stdout, flush=True)
            if self._file_path:
                self._append_to_file(text)

    def _append_to_file(self, text: str) -> None:
        directory = os.path.dirname(os.path.abspath(self._file_path))
        try:
            os.makedirs(directory, exist_ok=True)
            with open(self._file_path, "a", encoding="utf-8") as f:
                f.write(text + "\n")
        except OSError as e:
            print(f"[actionlogger] cannot write {self._file_path}: {e}", file=sys.stderr)
            self._file_path = None


ACTION_LOGGER = ActionLogger()
