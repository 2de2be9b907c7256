# jsonui_testrunner/results.py
"""
@file results.py
@brief Per-case and per-suite results produced by a run.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class TestResult:
    __test__ = False

    suite_name: str
    case_name: str
    passed: bool
    error: Optional[str] = None
    duration_ms: int = 0
    trace: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "case": self.case_name,
            "status": "passed" if self.passed else "failed",
            "duration_ms": self.duration_ms,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.trace is not None:
            data["trace"] = self.trace
        return data


@dataclass(frozen=True)
class TestSuiteResult:
    __test__ = False

    suite_name: str
    results: List[TestResult] = field(default_factory=list)
    total_duration_ms: int = 0

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.passed)

    @property
    def all_passed(self) -> bool:
        return all(r.passed for r in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suite": self.suite_name,
            "status": "passed" if self.all_passed else "failed",
            "passed": self.passed_count,
            "failed": self.failed_count,
            "total_duration_ms": self.total_duration_ms,
            "results": [r.to_dict() for r in self.results],
        }


def build_summary(suites: Sequence[TestSuiteResult]) -> Dict[str, Any]:
    """Build machine-readable combined summary."""
    failed = sum(1 for s in suites if not s.all_passed)
    return {
        "total": len(suites),
        "passed": len(suites) - failed,
        "failed": failed,
        "status": "passed" if failed == 0 else "failed",
        "suites": [s.to_dict() for s in suites],
    }


def write_report(suites: Sequence[TestSuiteResult], report_path: str) -> str:
    """Write the combined summary as JSON and return the absolute path."""
    report_path = os.path.abspath(report_path)
    os.makedirs(os.path.dirname(report_path) or ".", exist_ok=True)
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(build_summary(suites), f, indent=2, ensure_ascii=False)
    return report_path
