import pytest

from app.core.workflow import Workflow


class TestWorkflow:
    def test_returns_step_results(self):
        workflow = Workflow("demo")
        assert workflow.step("one", lambda: 1) == 1

    def test_failure_compensates_newest_first(self):
        undone = []
        workflow = Workflow("demo")
        workflow.step("one", lambda: "a", lambda result: undone.append(result))
        workflow.step("two", lambda: "b", lambda result: undone.append(result))
        with pytest.raises(RuntimeError):
            workflow.step("three", self.boom, lambda result: undone.append(result))
        assert undone == ["b", "a"]

    def test_failed_compensation_does_not_stop_rollback(self):
        undone = []
        workflow = Workflow("demo")
        workflow.step("one", lambda: "a", lambda result: undone.append(result))
        workflow.step("two", lambda: "b", lambda result: self.boom())
        with pytest.raises(RuntimeError, match="boom"):
            workflow.step("three", self.boom)
        assert undone == ["a"]

    def test_rollback_runs_once(self):
        undone = []
        workflow = Workflow("demo")
        workflow.step("one", lambda: "a", lambda result: undone.append(result))
        workflow.rollback()
        workflow.rollback()
        assert undone == ["a"]

    @staticmethod
    def boom():
        raise RuntimeError("boom")
