"""
Tests for stop requests and the post-loop shutdown protocol.
"""

import os
import signal
import time
from unittest.mock import patch

import pytest

from procsup.exceptions import SignalDeliveryError, TerminationTimeoutError, WaitError
from procsup.supervisor.spawn import spawn
from procsup.supervisor.state import ChildProcess, ChildState, SupervisorState
from procsup.supervisor.termination import (
    FAILURE_EXIT_CODE,
    send_signal,
    shutdown,
    signal_name,
    stop,
)


def _wait_for_exit(pid: int, timeout: float = 5.0) -> None:
    """Block until the child is a zombie or gone, without reaping it."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        result = os.waitid(os.P_PID, pid, os.WEXITED | os.WNOHANG | os.WNOWAIT)
        if result is not None:
            return
        time.sleep(0.01)
    raise AssertionError(f"child {pid} did not exit")


@pytest.mark.unit
class TestHelpers:
    """Test signal helpers."""

    def test_signal_name(self):
        assert signal_name(signal.SIGTERM) == "SIGTERM"
        assert signal_name(signal.SIGKILL) == "SIGKILL"
        assert signal_name(999) == "999"

    def test_send_signal_failure(self):
        with patch(
            "procsup.supervisor.termination.os.kill", side_effect=ProcessLookupError(3, "No such process")
        ):
            with pytest.raises(SignalDeliveryError) as exc_info:
                send_signal(12345, signal.SIGTERM)
        assert exc_info.value.pid == 12345
        assert exc_info.value.signum == signal.SIGTERM


@pytest.mark.unit
class TestStop:
    """Test stop()."""

    def test_no_child(self):
        state = SupervisorState()
        assert stop(state) is False
        assert not state.cancel.requested

    def test_delivery_failure(self):
        state = SupervisorState()
        state.attach(ChildProcess(pid=12345, read_fd=9, state=ChildState.RUNNING))

        with patch("procsup.supervisor.termination.os.kill", side_effect=ProcessLookupError):
            assert stop(state) is False

        assert not state.cancel.requested

    def test_sends_sigterm_and_sets_flag(self):
        state = SupervisorState()
        state.attach(ChildProcess(pid=12345, read_fd=9, state=ChildState.RUNNING))

        with patch("procsup.supervisor.termination.os.kill") as kill:
            assert stop(state) is True

        kill.assert_called_once_with(12345, signal.SIGTERM)
        assert state.cancel.signum == signal.SIGTERM
        assert state.child.state is ChildState.TERMINATING
        # stop() never reaps
        assert state.child_pid == 12345


@pytest.mark.integration
class TestShutdownNormal:
    """Shutdown without cancellation: blocking reap."""

    def test_exit_code(self):
        state = SupervisorState()
        child = spawn(["sh", "-c", "exit 5"], state)

        outcome = shutdown(child, state)

        assert outcome.exit_code == 5
        assert outcome.error is None
        assert outcome.term_signal is None
        assert child.state is ChildState.EXITED
        assert not state.active

    def test_pipe_closed(self):
        state = SupervisorState()
        child = spawn(["true"], state)

        shutdown(child, state)

        with pytest.raises(OSError):
            os.fstat(child.read_fd)

    def test_already_reaped_by_loop(self):
        state = SupervisorState()
        child = spawn(["sh", "-c", "exit 4"], state)
        _, status = os.waitpid(child.pid, 0)
        state.mark_reaped(child, status)

        assert shutdown(child, state).exit_code == 4

    def test_signal_death(self, capture_logs):
        state = SupervisorState()
        child = spawn(["sleep", "5"], state)
        os.kill(child.pid, signal.SIGKILL)

        outcome = shutdown(child, state)

        assert outcome.exit_code == FAILURE_EXIT_CODE
        assert outcome.term_signal == signal.SIGKILL
        assert outcome.error is None
        assert "terminated by signal" in capture_logs.getvalue()

    def test_wait_error(self):
        read_fd, write_fd = os.pipe()
        os.close(write_fd)
        state = SupervisorState()
        child = ChildProcess(pid=os.getpid(), read_fd=read_fd, state=ChildState.RUNNING)
        state.attach(child)

        outcome = shutdown(child, state)

        assert outcome.exit_code == FAILURE_EXIT_CODE
        assert isinstance(outcome.error, WaitError)
        assert not state.active


@pytest.mark.integration
class TestShutdownCancelled:
    """Shutdown after cancellation: SIGKILL and bounded reap."""

    def test_kills_running_child(self):
        state = SupervisorState()
        child = spawn(["sleep", "30"], state)
        state.cancel.request(signal.SIGINT)

        started = time.monotonic()
        outcome = shutdown(child, state, timeout=5.0, poll_interval=0.01)

        assert time.monotonic() - started < 2.0
        assert outcome.exit_code == FAILURE_EXIT_CODE
        assert outcome.term_signal == signal.SIGKILL
        assert outcome.error is None
        assert child.state is ChildState.KILLED
        assert not state.active

    def test_kills_child_ignoring_sigterm(self):
        state = SupervisorState()
        child = spawn(["sh", "-c", "trap '' TERM; exec sleep 30"], state)
        time.sleep(0.1)
        os.kill(child.pid, signal.SIGTERM)
        state.cancel.request(signal.SIGTERM)

        outcome = shutdown(child, state, timeout=5.0, poll_interval=0.01)

        assert outcome.term_signal == signal.SIGKILL
        assert not state.active

    def test_cancelled_reports_failure_even_after_clean_exit(self):
        state = SupervisorState()
        child = spawn(["true"], state)
        _wait_for_exit(child.pid)
        state.cancel.request(signal.SIGTERM)

        outcome = shutdown(child, state, poll_interval=0.01)

        assert outcome.exit_code == FAILURE_EXIT_CODE
        assert not state.active

    def test_reaped_child_is_never_killed(self):
        state = SupervisorState()
        child = spawn(["true"], state)
        _, status = os.waitpid(child.pid, 0)
        state.mark_reaped(child, status)
        state.cancel.request(signal.SIGTERM)

        with patch("procsup.supervisor.termination.os.kill") as kill:
            outcome = shutdown(child, state)

        kill.assert_not_called()
        assert outcome.exit_code == FAILURE_EXIT_CODE

    def test_force_kills_without_cancellation(self):
        state = SupervisorState()
        child = spawn(["sleep", "30"], state)

        outcome = shutdown(child, state, poll_interval=0.01, force=True)

        assert outcome.term_signal == signal.SIGKILL
        assert not state.cancel.requested

    def test_reap_timeout(self, capture_logs):
        state = SupervisorState()
        child = spawn(["sleep", "30"], state)
        state.cancel.request(signal.SIGINT)

        try:
            with (
                patch("procsup.supervisor.termination.os.kill"),
                patch("procsup.supervisor.termination.os.waitpid", return_value=(0, 0)),
            ):
                started = time.monotonic()
                outcome = shutdown(child, state, timeout=0.2, poll_interval=0.02)
                elapsed = time.monotonic() - started
        finally:
            os.kill(child.pid, signal.SIGKILL)
            os.waitpid(child.pid, 0)

        assert isinstance(outcome.error, TerminationTimeoutError)
        assert outcome.exit_code == FAILURE_EXIT_CODE
        assert 0.2 <= elapsed < 1.0
        assert not state.active
        assert "timeout waiting for child process" in capture_logs.getvalue()
