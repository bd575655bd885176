"""
Result of one supervised launch.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import SupervisorError
from .termination import FAILURE_EXIT_CODE


@dataclass(frozen=True)
class LaunchResult:
    """
    Exit code plus the conditions that produced it.

    Attributes:
        exit_code: Child's exit status, or FAILURE_EXIT_CODE (-1) for signal
            death, cancellation and internal failures
        error: Supervisor-level error, if any
        term_signal: Signal that killed the child
        cancel_signal: Signal that triggered cancellation (SIGTERM for stop())
        pid: Child process id, None if no child was created
        duration: Wall time from spawn to result, in seconds
    """

    exit_code: int
    error: SupervisorError | None = None
    term_signal: int | None = None
    cancel_signal: int | None = None
    pid: int | None = None
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and self.error is None and self.cancel_signal is None

    @property
    def cancelled(self) -> bool:
        return self.cancel_signal is not None

    @property
    def signaled(self) -> bool:
        return self.term_signal is not None

    @classmethod
    def failure(cls, error: SupervisorError, pid: int | None = None) -> LaunchResult:
        """Result for a launch that failed before or outside the child."""
        return cls(FAILURE_EXIT_CODE, error=error, pid=pid)
