"""
Steady-state supervision loop.

Multiplexes child output forwarding, exit detection and the cancellation
flag over a bounded poll() tick. The tick is the latency ceiling between a
stop request and the loop noticing it.

Precedence per iteration: cancellation, then exit check on an idle tick,
then readable data, then hang-up. Readable data is drained before a
hang-up is honoured, and the pipe is drained once more after an idle-tick
reap, so output written right before exit is not lost.
"""

from __future__ import annotations

import logging
import os
import select
from dataclasses import dataclass
from enum import Enum
from typing import Any, BinaryIO

from ..exceptions import SupervisionIOError, SupervisorError, WaitError
from .state import ChildProcess, SupervisorState

_HANGUP_EVENTS = select.POLLERR | select.POLLHUP | select.POLLNVAL


class LoopOutcome(Enum):
    """Why the supervision loop ended."""

    CANCELLED = "cancelled"
    CHILD_EXITED = "child_exited"
    EOF = "eof"
    HANGUP = "hangup"
    READER_GONE = "reader_gone"
    WRITE_ERROR = "write_error"
    READ_ERROR = "read_error"
    POLL_ERROR = "poll_error"
    WAIT_ERROR = "wait_error"


@dataclass(frozen=True)
class LoopExit:
    outcome: LoopOutcome
    error: SupervisorError | None = None
    bytes_forwarded: int = 0


def _forward(output: BinaryIO, chunk: bytes) -> LoopOutcome | None:
    """Write one chunk to the caller's stream; an outcome means stop."""
    try:
        output.write(chunk)
        output.flush()
    except BrokenPipeError:
        return LoopOutcome.READER_GONE
    except OSError:
        return LoopOutcome.WRITE_ERROR
    return None


def _drain(
    read_fd: int, output: BinaryIO, chunk_size: int
) -> tuple[LoopOutcome | None, int, OSError | None]:
    """
    Forward whatever is still buffered in the pipe of a reaped child.

    Stops at the first would-block or EOF. Returns the outcome that ended
    forwarding early (if any), the bytes forwarded and a read error.
    """
    forwarded = 0
    while True:
        try:
            chunk = os.read(read_fd, chunk_size)
        except InterruptedError:
            continue
        except BlockingIOError:
            return None, forwarded, None
        except OSError as e:
            return LoopOutcome.READ_ERROR, forwarded, e
        if not chunk:
            return None, forwarded, None

        outcome = _forward(output, chunk)
        if outcome is not None:
            return outcome, forwarded, None
        forwarded += len(chunk)


def supervise(
    child: ChildProcess,
    state: SupervisorState,
    output: BinaryIO,
    tick: float = 0.1,
    chunk_size: int = 4096,
    lg: Any | None = None,
) -> LoopExit:
    """
    Run the supervision loop until cancellation, exit, EOF or an I/O failure.

    Args:
        child: The running child; its pipe read end must be non-blocking
        state: Shared supervisor state carrying the cancellation flag
        output: Binary stream receiving the child's combined output
        tick: Upper bound of one readiness wait, in seconds
        chunk_size: Maximum bytes per read
        lg: Logger, ``procsup.loop`` if None

    Returns:
        LoopExit describing why the loop ended. CHILD_EXITED means the child
        has already been reaped.
    """
    lg = lg or logging.getLogger("procsup.loop")
    tick_ms = max(1, int(tick * 1000))
    poller = select.poll()
    poller.register(child.read_fd, select.POLLIN)
    forwarded = 0

    def done(outcome: LoopOutcome, error: SupervisorError | None = None) -> LoopExit:
        lg.debug(
            "supervision loop ended",
            extra={"outcome": outcome.value, "bytes": forwarded, "pid": child.pid},
        )
        return LoopExit(outcome, error, forwarded)

    while True:
        try:
            events = poller.poll(tick_ms)
        except InterruptedError:
            events = []
        except OSError as e:
            return done(
                LoopOutcome.POLL_ERROR,
                SupervisionIOError("poll failed", errno=e.errno, reason=e.strerror),
            )

        if state.cancel.requested:
            return done(LoopOutcome.CANCELLED)

        if not events:
            try:
                pid, status = os.waitpid(child.pid, os.WNOHANG)
            except ChildProcessError as e:
                return done(
                    LoopOutcome.WAIT_ERROR,
                    WaitError("waitpid failed", pid=child.pid, reason=e.strerror),
                )
            if pid == child.pid:
                state.mark_reaped(child, status)
                # The child may have written its last bytes after the poll timed out
                outcome, drained, read_error = _drain(child.read_fd, output, chunk_size)
                forwarded += drained
                if outcome is LoopOutcome.READ_ERROR and read_error is not None:
                    return done(
                        outcome,
                        SupervisionIOError(
                            "pipe read failed",
                            errno=read_error.errno,
                            reason=read_error.strerror,
                        ),
                    )
                if outcome is LoopOutcome.READER_GONE:
                    return done(outcome)
                if outcome is LoopOutcome.WRITE_ERROR:
                    return done(
                        outcome, SupervisionIOError("output write failed", pid=child.pid)
                    )
                return done(LoopOutcome.CHILD_EXITED)
            continue

        revents = events[0][1]
        if revents & select.POLLIN:
            try:
                chunk = os.read(child.read_fd, chunk_size)
            except (BlockingIOError, InterruptedError):
                continue
            except OSError as e:
                return done(
                    LoopOutcome.READ_ERROR,
                    SupervisionIOError("pipe read failed", errno=e.errno, reason=e.strerror),
                )
            if not chunk:
                return done(LoopOutcome.EOF)

            outcome = _forward(output, chunk)
            if outcome is LoopOutcome.READER_GONE:
                return done(outcome)
            if outcome is LoopOutcome.WRITE_ERROR:
                return done(outcome, SupervisionIOError("output write failed", pid=child.pid))
            forwarded += len(chunk)
            continue

        if revents & _HANGUP_EVENTS:
            return done(LoopOutcome.HANGUP)
