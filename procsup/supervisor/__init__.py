"""
Single-child process supervision.

Spawns one program with its stdout/stderr merged into a pipe, forwards that
output to the caller, and turns exit, signal death or cancellation into a
LaunchResult.

Example:
    from procsup.supervisor import launch

    result = launch(["/bin/sh", "-c", "echo hi; exit 3"])
    assert result.exit_code == 3
"""

from .loop import LoopExit, LoopOutcome, supervise
from .result import LaunchResult
from .signals import STOP_SIGNALS, SignalHandler
from .spawn import EXEC_FAILURE_STATUS, spawn
from .state import CancellationFlag, ChildProcess, ChildState, SupervisorState
from .supervisor import Supervisor, launch, stop
from .termination import FAILURE_EXIT_CODE, ShutdownOutcome, shutdown, signal_name

__all__ = [
    "CancellationFlag",
    "ChildProcess",
    "ChildState",
    "EXEC_FAILURE_STATUS",
    "FAILURE_EXIT_CODE",
    "LaunchResult",
    "LoopExit",
    "LoopOutcome",
    "STOP_SIGNALS",
    "ShutdownOutcome",
    "SignalHandler",
    "Supervisor",
    "SupervisorState",
    "launch",
    "shutdown",
    "signal_name",
    "spawn",
    "stop",
    "supervise",
]
