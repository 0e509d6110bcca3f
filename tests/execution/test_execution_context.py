"""Tests for jobrunner.execution.context — threaded, impersonated execution."""

import threading
from unittest.mock import patch

import structlog

from jobrunner.core.logging import LogContext
from jobrunner.execution.context import ExecutionContext
from jobrunner.execution.identity import (
    ANONYMOUS,
    AUTHENTICATION_TYPE,
    Identity,
    Principal,
    get_current_principal,
    impersonate,
)
from jobrunner.models import UserContext


def _capture(sink: list):
    def action():
        sink.append((threading.current_thread(), get_current_principal()))
        return "done"

    return action


class TestExecutionContext:
    def test_runs_on_separate_thread(self):
        sink = []
        context = ExecutionContext(_capture(sink), name="job-test")

        context.start()
        assert context.wait_for_completion() is True

        thread, _ = sink[0]
        assert thread is not threading.current_thread()
        assert thread.name == "job-test"
        assert context.result == "done"
        assert context.exception is None
        assert not context.is_alive

    def test_impersonates_user(self):
        sink = []
        context = ExecutionContext(_capture(sink), UserContext(user_id="jdoe"))
        context.start()
        context.wait_for_completion()

        _, principal = sink[0]
        assert principal.identity.name == "jdoe"
        assert principal.identity.authentication_type == AUTHENTICATION_TYPE
        assert principal.roles == frozenset()

    def test_blank_user_keeps_thread_principal(self):
        sink = []
        context = ExecutionContext(_capture(sink), UserContext(user_id="   "))
        context.start()
        context.wait_for_completion()

        assert sink[0][1] is ANONYMOUS

    def test_caller_principal_untouched(self):
        caller = Principal(Identity("scheduler", "Service"))
        with impersonate(caller):
            context = ExecutionContext(_capture([]), UserContext(user_id="jdoe"))
            context.start()
            context.wait_for_completion()

            assert get_current_principal() is caller

    def test_exception_is_captured(self):
        error = ValueError("bad input")

        def action():
            raise error

        context = ExecutionContext(action, UserContext(user_id="jdoe"))
        context.start()

        assert context.wait_for_completion() is False
        assert context.exception is error
        assert context.result is None

    def test_principal_restored_after_failure(self):
        after = []

        def action():
            raise RuntimeError("boom")

        context = ExecutionContext(action, UserContext(user_id="jdoe"))
        original_run = context._run

        def run_and_observe():
            original_run()
            after.append(get_current_principal())

        context._run = run_and_observe
        context.start()
        context.wait_for_completion()

        assert after == [ANONYMOUS]

    def test_wait_failure_is_captured(self):
        context = ExecutionContext(lambda: None)
        context.start()

        with patch.object(context._thread, "join", side_effect=RuntimeError("interrupted")):
            assert context.wait_for_completion() is False

        assert isinstance(context.exception, RuntimeError)

    def test_log_context_reaches_worker_thread(self):
        seen = []

        def action():
            seen.append(structlog.contextvars.get_contextvars().get("run_id"))

        with LogContext(run_id="abc123"):
            context = ExecutionContext(action)
        context.start()
        context.wait_for_completion()

        assert seen == ["abc123"]
