"""
Stop requests and the post-loop shutdown protocol.

Shutdown is two-phase: SIGTERM first (from stop() or the signal handler),
then an unconditional SIGKILL once the loop has observed the cancellation,
followed by a bounded reap poll. Exceeding the window is reported and the
supervisor's state is cleared anyway.
"""

from __future__ import annotations

import logging
import os
import signal
import time
from dataclasses import dataclass
from typing import Any

from ..exceptions import (
    SignalDeliveryError,
    SupervisorError,
    TerminationTimeoutError,
    WaitError,
)
from .state import ChildProcess, ChildState, SupervisorState

FAILURE_EXIT_CODE = -1


def signal_name(signum: int) -> str:
    """SIGTERM for 15; the bare number for signals without a name."""
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


@dataclass(frozen=True)
class ShutdownOutcome:
    exit_code: int
    error: SupervisorError | None = None
    term_signal: int | None = None


def send_signal(pid: int, signum: int) -> None:
    """
    Deliver a signal to the child.

    Raises:
        SignalDeliveryError: If the process does not exist or may not be signalled
    """
    try:
        os.kill(pid, signum)
    except OSError as e:
        raise SignalDeliveryError(pid, signum, e.strerror or str(e)) from e


def stop(state: SupervisorState, lg: Any | None = None) -> bool:
    """
    Ask the active child to terminate.

    Sends SIGTERM and records SIGTERM as the cancellation cause. Does not
    block and does not reap.

    Returns:
        False if no child is active or the signal could not be delivered
    """
    lg = lg or logging.getLogger("procsup.termination")
    pid = state.child_pid
    if pid is None:
        lg.debug("no child process to stop")
        return False

    lg.debug("stopping child process", extra={"pid": pid})
    try:
        send_signal(pid, signal.SIGTERM)
    except SignalDeliveryError as e:
        lg.warning("failed to stop child process", extra={"pid": pid, "error": str(e)})
        return False

    state.cancel.request(signal.SIGTERM)
    child = state.child
    if child is not None and not child.reaped:
        child.state = ChildState.TERMINATING
    return True


def _kill_and_reap(
    child: ChildProcess,
    state: SupervisorState,
    timeout: float,
    poll_interval: float,
    lg: Any,
) -> ShutdownOutcome:
    if child.reaped:
        # Exited on its own before the cancellation was seen; never kill a reaped pid
        return ShutdownOutcome(FAILURE_EXIT_CODE, term_signal=child.term_signal)

    lg.debug("sending SIGKILL to child process", extra={"pid": child.pid})
    child.state = ChildState.TERMINATING
    try:
        send_signal(child.pid, signal.SIGKILL)
    except SignalDeliveryError as e:
        lg.debug("SIGKILL not delivered", extra={"pid": child.pid, "error": str(e)})

    deadline = time.monotonic() + timeout
    while True:
        try:
            pid, status = os.waitpid(child.pid, os.WNOHANG)
        except ChildProcessError as e:
            state.detach()
            return ShutdownOutcome(
                FAILURE_EXIT_CODE,
                WaitError("waitpid after SIGKILL failed", pid=child.pid, reason=e.strerror),
            )
        if pid == child.pid:
            state.mark_reaped(child, status)
            return ShutdownOutcome(FAILURE_EXIT_CODE, term_signal=child.term_signal)
        if time.monotonic() >= deadline:
            break
        time.sleep(poll_interval)

    error = TerminationTimeoutError(child.pid, timeout)
    lg.warning("timeout waiting for child process to terminate", extra={"pid": child.pid})
    state.detach()
    return ShutdownOutcome(FAILURE_EXIT_CODE, error)


def _reap(child: ChildProcess, state: SupervisorState, lg: Any) -> ShutdownOutcome:
    if not child.reaped:
        try:
            _, status = os.waitpid(child.pid, 0)
        except ChildProcessError as e:
            state.detach()
            return ShutdownOutcome(
                FAILURE_EXIT_CODE,
                WaitError("waitpid failed", pid=child.pid, reason=e.strerror),
            )
        state.mark_reaped(child, status)

    if child.term_signal is not None:
        lg.warning(
            "child process terminated by signal",
            extra={"pid": child.pid, "signal": signal_name(child.term_signal)},
        )
        return ShutdownOutcome(FAILURE_EXIT_CODE, term_signal=child.term_signal)

    exit_code = child.exit_code
    return ShutdownOutcome(FAILURE_EXIT_CODE if exit_code is None else exit_code)


def shutdown(
    child: ChildProcess,
    state: SupervisorState,
    timeout: float = 5.0,
    poll_interval: float = 0.1,
    lg: Any | None = None,
    force: bool = False,
) -> ShutdownOutcome:
    """
    Close the pipe and reap the child after the supervision loop returned.

    Cancelled launches always report FAILURE_EXIT_CODE, even when the child
    exited cleanly in the meantime. Otherwise the child's exit status is
    reported, or FAILURE_EXIT_CODE with ``term_signal`` set when a signal
    killed it.

    With ``force`` the child is killed and reaped as if cancelled; used when
    the loop itself raised.
    """
    lg = lg or logging.getLogger("procsup.termination")
    os.close(child.read_fd)

    if force or state.cancel.requested:
        return _kill_and_reap(child, state, timeout, poll_interval, lg)
    return _reap(child, state, lg)
