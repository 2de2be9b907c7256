# jsonui_testrunner/config.py
"""
@file config.py
@brief Run configuration: timeouts, polling, platform gating, failure artifacts.

Precedence when building a config is deterministic:
  base defaults -> preset -> config file -> explicit overrides
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigError

TIMING_FIELDS = ("default_timeout", "polling_interval", "settle_delay", "not_visible_grace", "idle_timeout")

PRESET_OVERRIDES: Dict[str, Dict[str, float]] = {
    "fast": {
        "default_timeout": 3.0,
        "polling_interval": 0.05,
        "settle_delay": 0.5,
        "not_visible_grace": 0.5,
        "idle_timeout": 2.0,
    },
    "slow": {
        "default_timeout": 10.0,
        "polling_interval": 0.2,
        "settle_delay": 4.0,
        "not_visible_grace": 1.5,
        "idle_timeout": 10.0,
    },
    "ci": {
        "default_timeout": 15.0,
        "polling_interval": 0.25,
        "settle_delay": 5.0,
        "not_visible_grace": 2.0,
        "idle_timeout": 15.0,
    },
}


def list_presets() -> Dict[str, Dict[str, float]]:
    return {"default": {}, **PRESET_OVERRIDES}


@dataclass(frozen=True)
class RunnerConfig:
    """
    Settings consumed by the runner and step handlers.

    Durations are seconds; step-level `timeout`/`ms` fields in test documents
    are milliseconds.
    """
    default_timeout: float = 5.0
    polling_interval: float = 0.1
    settle_delay: float = 2.5
    not_visible_grace: float = 1.0
    idle_timeout: float = 5.0
    screenshot_on_failure: bool = True
    artifacts_dir: str = "artifacts"
    platform: str = "android"
    verbose: bool = False

    def step_timeout(self, timeout_ms: Optional[int]) -> float:
        """Effective timeout in seconds for a step's optional `timeout` (ms)."""
        if timeout_ms is None:
            return self.default_timeout
        return max(timeout_ms, 0) / 1000.0

    def with_overrides(self, **overrides: Any) -> RunnerConfig:
        return _apply(self, overrides)

    def with_preset(self, preset: str) -> RunnerConfig:
        key = (preset or "default").lower()
        if key == "default":
            return self
        values = PRESET_OVERRIDES.get(key)
        if values is None:
            raise ConfigError(f"Unknown timing preset: {preset}")
        return _apply(self, values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], preset: Optional[str] = None) -> RunnerConfig:
        """Build from a mapping; an optional `preset` key is applied before the other keys."""
        data = dict(data or {})
        preset = data.pop("preset", None) or preset or "default"
        return _apply(cls().with_preset(str(preset)), data)

    @classmethod
    def from_yaml(cls, path: str, preset: Optional[str] = None) -> RunnerConfig:
        path = os.path.abspath(path)
        if not os.path.exists(path):
            raise ConfigError(f"Runner config YAML not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Runner config YAML must be a mapping at root.")
        # Allow the settings to live under a top-level "runner" key
        if isinstance(data.get("runner"), dict):
            data = data["runner"]
        return cls.from_dict(data, preset=preset)


_FIELD_TYPES = {f.name: f.type for f in fields(RunnerConfig)}


def _coerce(key: str, value: Any) -> Any:
    kind = _FIELD_TYPES[key]
    try:
        if kind == "float":
            value = float(value)
            if value < 0:
                raise ConfigError(f"{key} must be >= 0, got {value}")
            return value
        if kind == "bool":
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "yes", "on"}
            return bool(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e


def _apply(config: RunnerConfig, overrides: Dict[str, Any]) -> RunnerConfig:
    unknown = sorted(set(overrides) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigError(f"Unknown RunnerConfig field(s): {unknown}. Allowed: {sorted(_FIELD_TYPES)}")
    values = {k: _coerce(k, v) for k, v in overrides.items() if v is not None}
    return replace(config, **values)
