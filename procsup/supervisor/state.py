"""
Process-wide supervision state.

Signal handlers are registered per process, not per object, so the state they
touch lives in a single SupervisorState owned by the Supervisor singleton. The
handler side only reads ``child_pid`` and calls ``CancellationFlag.request``;
both are plain attribute accesses, atomic under the GIL.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum


class ChildState(Enum):
    """Lifecycle of the supervised child."""

    STARTING = "starting"
    RUNNING = "running"
    TERMINATING = "terminating"
    EXITED = "exited"
    KILLED = "killed"


class CancellationFlag:
    """
    Level-triggered stop request.

    Goes from "not requested" to "requested with signal S" once; later
    requests keep the first signal. Only ``reset()`` at the start of a launch
    clears it.
    """

    __slots__ = ("_signum",)

    def __init__(self) -> None:
        self._signum = 0

    def request(self, signum: int) -> None:
        """Record a stop request. Safe to call from a signal handler."""
        if not self._signum:
            self._signum = signum

    def reset(self) -> None:
        self._signum = 0

    @property
    def requested(self) -> bool:
        return self._signum != 0

    @property
    def signum(self) -> int | None:
        """Signal that triggered the request, None if not requested."""
        return self._signum or None


@dataclass
class ChildProcess:
    """The spawned child and the supervisor's end of its output pipe."""

    pid: int
    read_fd: int
    state: ChildState = ChildState.STARTING
    wait_status: int | None = None

    @property
    def reaped(self) -> bool:
        return self.state in (ChildState.EXITED, ChildState.KILLED)

    @property
    def exit_code(self) -> int | None:
        """Exit status for a normal exit, None otherwise."""
        if self.wait_status is None or not os.WIFEXITED(self.wait_status):
            return None
        return os.WEXITSTATUS(self.wait_status)

    @property
    def term_signal(self) -> int | None:
        """Signal that killed the child, None otherwise."""
        if self.wait_status is None or not os.WIFSIGNALED(self.wait_status):
            return None
        return os.WTERMSIG(self.wait_status)


class SupervisorState:
    """
    Mutable state shared between the launch thread and the signal handler.

    Invariant: ``child_pid`` is set iff a child exists and has not been reaped.
    """

    def __init__(self) -> None:
        self.child_pid: int | None = None
        self.child: ChildProcess | None = None
        self.cancel = CancellationFlag()

    def begin_launch(self) -> None:
        """Reset to the initial state before spawning a new child."""
        self.cancel.reset()
        self.child_pid = None
        self.child = None

    def attach(self, child: ChildProcess) -> None:
        self.child = child
        self.child_pid = child.pid

    def mark_reaped(self, child: ChildProcess, wait_status: int) -> None:
        """Record the reaped status and invalidate the child identifier."""
        child.wait_status = wait_status
        child.state = (
            ChildState.KILLED if os.WIFSIGNALED(wait_status) else ChildState.EXITED
        )
        self.child_pid = None

    def detach(self) -> None:
        """Forget the child, reaped or not. Used on every exit path of a launch."""
        self.child_pid = None

    @property
    def active(self) -> bool:
        return self.child_pid is not None
