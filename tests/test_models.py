"""Tests for stencil.models."""

import pytest

from stencil.models import ExecutionPlan, ExecutionResult, PreflightCheck, PreflightResult, Rendered


class TestRendered:
    def test_defaults(self):
        r = Rendered("text")
        assert r.dependencies == ()

    def test_frozen(self):
        r = Rendered("text")
        with pytest.raises(AttributeError):
            r.text = "other"


class TestExecutionPlan:
    def test_defaults(self):
        plan = ExecutionPlan(backend="uv", script="print(1)")
        assert plan.dependencies == []
        assert plan.env == {}


class TestExecutionResult:
    def test_error_result(self):
        r = ExecutionResult(backend="uv", error="boom")
        assert r.returncode is None
        assert not r.ok

    def test_success_result(self):
        r = ExecutionResult(backend="uv", returncode=0, stdout="1\n")
        assert r.ok

    def test_nonzero_without_error_is_not_ok(self):
        assert not ExecutionResult(backend="uv", returncode=2).ok


class TestPreflightResult:
    def test_ok_and_failed(self):
        result = PreflightResult(backend="uv", checks=[
            PreflightCheck(name="a", passed=True, message="fine"),
            PreflightCheck(name="b", passed=False, message="missing", fix_command="pip install uv"),
        ])
        assert not result.ok
        assert [c.name for c in result.failed] == ["b"]

    def test_empty_is_ok(self):
        assert PreflightResult(backend="uv").ok
