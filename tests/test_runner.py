# tests/test_runner.py
"""
Tests for JsonUITestRunner.
"""

import io
import json
import os

import pytest

from jsonui_testrunner.actionlogger import ACTION_LOGGER
from jsonui_testrunner.exceptions import SetupFailure
from jsonui_testrunner.interfaces import Gesture
from jsonui_testrunner.loader import TestLoader
from jsonui_testrunner.runner import JsonUITestRunner

from conftest import flow_doc, screen_doc


def tap(element_id, **extra):
    return {"action": "tap", "id": element_id, **extra}


def tapped(backend):
    return [g[1] for g in backend.gestures if g[0] == Gesture.TAP]


class TestScreenRun:
    """Tests for per-case isolated screen test runs."""

    def test_case_failure_is_isolated(self, backend, config):
        """A failing case does not stop later cases, and teardown still runs."""
        backend.show("ok").show("cleanup")
        doc = screen_doc(
            cases=[
                {"name": "broken", "steps": [tap("ghost", timeout=30)]},
                {"name": "works", "steps": [tap("ok")]},
            ],
            teardown=[tap("cleanup")],
        )
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))

        assert [r.case_name for r in suite.results] == ["broken", "works"]
        broken, works = suite.results
        assert not broken.passed
        assert "Element 'ghost' not found" in broken.error
        assert "tap 'ghost'" in broken.trace
        assert works.passed and works.error is None
        assert tapped(backend) == ["ok", "cleanup"]
        assert suite.passed_count == 1 and suite.failed_count == 1
        assert not suite.all_passed

    def test_failure_screenshot(self, backend, config):
        doc = screen_doc(cases=[{"name": "broken case", "steps": [tap("ghost", timeout=10)]}])
        JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert [os.path.basename(p) for p in backend.screenshots] == ["failure_Login_broken_case.png"]

    def test_failure_screenshot_disabled(self, backend, config):
        doc = screen_doc(cases=[{"name": "broken", "steps": [tap("ghost", timeout=10)]}])
        config = config.with_overrides(screenshot_on_failure=False)
        JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert backend.screenshots == []

    def test_setup_failure_propagates(self, backend, config):
        """Setup failure is fatal: no case runs and no teardown runs."""
        backend.show("ok").show("cleanup")
        doc = screen_doc(
            setup=[tap("ghost", timeout=10)],
            cases=[{"name": "works", "steps": [tap("ok")]}],
            teardown=[tap("cleanup")],
        )
        with pytest.raises(SetupFailure) as exc_info:
            JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert exc_info.value.suite_name == "Login"
        assert backend.gestures == []

    def test_teardown_failure_keeps_results(self, backend, config):
        backend.show("ok")
        doc = screen_doc(
            cases=[{"name": "works", "steps": [tap("ok")]}],
            teardown=[tap("ghost", timeout=10)],
        )
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert suite.all_passed
        assert len(suite.results) == 1

    def test_skipped_and_excluded_cases_pass_without_running(self, backend, config):
        doc = screen_doc(cases=[
            {"name": "skipped", "skip": True, "steps": [tap("ghost")]},
            {"name": "ios only", "platform": "ios", "steps": [tap("ghost")]},
            {"name": "everywhere", "platform": ["ios", "all"], "steps": []},
        ])
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert [(r.case_name, r.passed, r.duration_ms) for r in suite.results[:2]] == [
            ("skipped", True, 0),
            ("ios only", True, 0),
        ]
        assert suite.results[2].passed
        assert backend.lookups == 0

    def test_excluded_document_yields_empty_suite(self, backend, config):
        doc = screen_doc(platform="ios", setup=[tap("ghost")])
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert suite.results == []
        assert suite.total_duration_ms == 0
        assert suite.all_passed

    def test_settles_before_running(self, backend, config):
        """The backend idle hook is called once per screen test."""
        backend.show("title")
        JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(screen_doc())))
        assert backend.idle_calls == 1

    def test_total_duration_includes_settle_delay(self, backend, config):
        """The suite clock starts before the settle delay."""
        backend.show("title")
        runner = JsonUITestRunner(backend, config.with_overrides(settle_delay=0.3))
        suite = runner.run(TestLoader().parse(json.dumps(screen_doc())))
        assert suite.results[0].duration_ms < 300
        assert suite.total_duration_ms >= 300


class TestFlowRun:
    """Tests for atomic flow runs."""

    def test_passing_flow_yields_single_result(self, backend, config):
        backend.show("a").show("b")
        doc = flow_doc(steps=[
            {"screen": "one", **tap("a")},
            {"screen": "one", "assert": "visible", "id": "b"},
        ])
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert [(r.case_name, r.passed) for r in suite.results] == [("flow", True)]
        assert suite.suite_name == "Checkout"

    def test_first_failure_aborts_flow(self, backend, config):
        """Nothing after the failing step runs, teardown included."""
        backend.show("a").show("c").show("cleanup")
        doc = flow_doc(
            steps=[
                {"screen": "one", **tap("a")},
                {"screen": "one", **tap("ghost", timeout=10)},
                {"screen": "one", **tap("c")},
            ],
            teardown=[{"screen": "one", **tap("cleanup")}],
        )
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))

        assert len(suite.results) == 1
        result = suite.results[0]
        assert result.case_name == "flow"
        assert not result.passed
        assert "ghost" in result.error
        assert tapped(backend) == ["a"]
        assert [os.path.basename(p) for p in backend.screenshots] == ["failure_Checkout_flow.png"]

    def test_steps_observe_earlier_side_effects(self, backend, config):
        """Steps run strictly in order against live state."""
        backend.show("next")
        backend.when(Gesture.TAP, "next", lambda b: b.show("page2"))
        doc = flow_doc(steps=[
            {"screen": "one", **tap("next")},
            {"screen": "two", "assert": "visible", "id": "page2", "timeout": 10},
        ])
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert suite.all_passed

    def test_block_steps(self, backend, config):
        backend.show("email").show("submit")
        doc = flow_doc(steps=[{
            "screen": "login",
            "block": "sign in",
            "steps": [
                {"action": "input", "id": "email", "value": "a@b.c"},
                tap("submit"),
            ],
        }])
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert suite.all_passed
        assert backend.gesture_kinds() == [Gesture.INPUT, Gesture.TAP]

    def test_file_reference_runs_selected_cases(self, backend, config, write_doc):
        """Referenced cases run in order; skipped and excluded ones are omitted."""
        backend.show("one").show("two").show("three").show("done")
        write_doc("screens/list.test.json", screen_doc(name="List", cases=[
            {"name": "first", "steps": [tap("one")]},
            {"name": "second", "skip": True, "steps": [tap("two")]},
            {"name": "third", "platform": "ios", "steps": [tap("three")]},
            {"name": "fourth", "steps": [tap("done")]},
        ]))
        path = write_doc("flows/main.test.json", flow_doc(steps=[
            {"file": "../screens/list"},
            {"file": "../screens/list", "cases": ["fourth", "first"]},
        ]))
        suite = JsonUITestRunner(backend, config).run(TestLoader().load(path))

        assert suite.all_passed
        assert tapped(backend) == ["one", "done", "done", "one"]

    def test_resolution_error_fails_flow(self, backend, config, write_doc):
        write_doc("list.test.json", screen_doc(cases=[{"name": "first", "steps": []}]))
        path = write_doc("main.test.json", flow_doc(steps=[{"file": "list", "case": "missing"}]))
        suite = JsonUITestRunner(backend, config).run(TestLoader().load(path))
        assert not suite.all_passed
        assert "Case 'missing' not found" in suite.results[0].error

    def test_file_reference_without_base_dir_fails_flow(self, backend, config):
        doc = flow_doc(steps=[{"file": "list"}])
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert not suite.all_passed
        assert "no base directory" in suite.results[0].error

    def test_checkpoint_screenshot(self, backend, config):
        backend.show("a").show("b")
        doc = flow_doc(
            steps=[{"screen": "one", **tap("a")}, {"screen": "one", **tap("b")}],
            checkpoints=[
                {"name": "first", "afterStep": 0, "screenshot": True},
                {"name": "quiet", "afterStep": 1},
            ],
        )
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert suite.all_passed
        assert [os.path.basename(p) for p in backend.screenshots] == ["checkpoint_Checkout_first.png"]

    def test_excluded_flow(self, backend, config):
        doc = flow_doc(platform=["ios", "web"])
        suite = JsonUITestRunner(backend, config).run(TestLoader().parse(json.dumps(doc)))
        assert suite.results == []
        assert backend.gestures == []


class TestRunAll:
    """Tests for running several documents."""

    def test_results_in_input_order(self, backend, config):
        backend.show("title").show("submit")
        loader = TestLoader()
        suites = JsonUITestRunner(backend, config).run_all([
            loader.parse(json.dumps(screen_doc(name="Login"))),
            loader.parse(json.dumps(flow_doc(name="Checkout"))),
        ])
        assert [s.suite_name for s in suites] == ["Login", "Checkout"]
        assert all(s.all_passed for s in suites)

    def test_setup_failure_is_recorded_and_run_continues(self, backend, config):
        """A failed setup fails its own suite only; later documents still run."""
        backend.show("title")
        loader = TestLoader()
        suites = JsonUITestRunner(backend, config).run_all([
            loader.parse(json.dumps(screen_doc(name="Bad", setup=[tap("ghost", timeout=10)]))),
            loader.parse(json.dumps(screen_doc(name="Good"))),
        ])

        assert [s.suite_name for s in suites] == ["Bad", "Good"]
        bad, good = suites
        assert not bad.all_passed
        assert [r.case_name for r in bad.results] == ["setup"]
        assert "Setup failed for 'Bad'" in bad.results[0].error
        assert "X tap 'ghost'" in bad.results[0].trace
        assert good.all_passed

    def test_referenced_files_reread_on_each_run(self, backend, config, write_doc):
        """Edits to a referenced file between runs are picked up."""
        backend.show("first").show("second")
        write_doc("login.test.json", screen_doc(cases=[{"name": "go", "steps": [tap("first")]}]))
        flow_path = write_doc("checkout.test.json", flow_doc(steps=[{"file": "login", "case": "go"}]))
        runner = JsonUITestRunner(backend, config)

        runner.run_all([TestLoader().load(flow_path)])
        write_doc("login.test.json", screen_doc(cases=[{"name": "go", "steps": [tap("second")]}]))
        runner.run_all([TestLoader().load(flow_path)])

        assert tapped(backend) == ["first", "second"]


class TestVerboseRunner:
    """Tests for step logging switched on by config.verbose."""

    def test_verbose_logging_does_not_leak(self, backend, config):
        """A verbose runner logs during its run and leaves the logger as it found it."""
        stream = io.StringIO()
        ACTION_LOGGER.configure(console=True, stream=stream)
        backend.show("title")
        doc = TestLoader().parse(json.dumps(screen_doc()))

        JsonUITestRunner(backend, config.with_overrides(verbose=True)).run(doc)
        assert "step_finish" in stream.getvalue()
        assert not ACTION_LOGGER.is_enabled()

        logged = stream.getvalue()
        JsonUITestRunner(backend, config).run(doc)
        assert stream.getvalue() == logged
        ACTION_LOGGER.configure(console=True)

    def test_enabled_logger_stays_enabled(self, backend, config):
        ACTION_LOGGER.configure(console=True, stream=io.StringIO())
        ACTION_LOGGER.enable()
        backend.show("title")
        JsonUITestRunner(backend, config.with_overrides(verbose=True)).run(
            TestLoader().parse(json.dumps(screen_doc())))
        assert ACTION_LOGGER.is_enabled()
        ACTION_LOGGER.configure(console=True)
