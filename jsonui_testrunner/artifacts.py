"""
Screenshot artifact helpers. Capture is always best-effort.
"""
from __future__ import annotations

import os
import re
import time
from typing import Optional

from .actionlogger import ACTION_LOGGER
from .interfaces import IBackend

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def _ts() -> str:
    """Generate timestamp string for file naming."""
    return time.strftime("%Y%m%d_%H%M%S")


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def safe_name(name: str) -> str:
    """File-system safe artifact name ("failure_Login_valid login" -> "failure_Login_valid_login")."""
    cleaned = _UNSAFE.sub("_", name).strip("_")
    return cleaned or f"screenshot_{_ts()}"


def screenshot_path(out_dir: str, name: str) -> str:
    filename = safe_name(name)
    if not filename.lower().endswith(".png"):
        filename += ".png"
    return os.path.join(os.path.abspath(out_dir), filename)


def capture_screenshot(backend: IBackend, out_dir: str, name: str) -> Optional[str]:
    """
    Capture a screenshot into out_dir.

    @return Path of the written image, or None if capture failed
    """
    path = screenshot_path(out_dir, name)
    try:
        ensure_dir(os.path.dirname(path))
        backend.capture_screenshot(path)
    except Exception as e:
        ACTION_LOGGER.narrate(f"Failed to take screenshot '{name}': {e}", status="warning", exception=e)
        return None
    ACTION_LOGGER.narrate(f"Screenshot saved: {path}")
    return path
