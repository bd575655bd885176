"""
Process-wide supervisor facade.

One Supervisor exists per process because signal dispositions are
process-wide. ``launch()`` runs the whole lifecycle on the calling thread
and reduces every runtime condition to a LaunchResult; ``stop()`` may be
called from any other thread.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from collections.abc import Sequence
from typing import Any, BinaryIO, Optional

from ..config.schemas import SupervisorSettings
from ..exceptions import InvalidArgvError, SpawnError, SupervisorBusyError
from . import termination
from .loop import supervise
from .result import LaunchResult
from .signals import SignalHandler
from .spawn import spawn
from .state import SupervisorState


class Supervisor:
    """
    Supervises at most one child process at a time.

    Example:
        >>> sup = Supervisor.get_instance()
        >>> result = sup.launch(["/bin/echo", "hello"])
        hello
        >>> result.exit_code
        0
    """

    _instance: Optional["Supervisor"] = None
    _lock_class = threading.Lock()  # Class-level lock for singleton

    def __init__(
        self, settings: SupervisorSettings | None = None, lg: Any | None = None
    ) -> None:
        """Initialize the supervisor (private - use get_instance())."""
        self._settings = settings or SupervisorSettings()
        self._lg = lg or logging.getLogger("procsup.supervisor")
        self._state = SupervisorState()
        self._signals = SignalHandler(self._state, self._lg)
        self._launch_lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "Supervisor":
        """Get the process-wide supervisor, creating it on first use."""
        if cls._instance is None:
            with cls._lock_class:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """
        Reset the singleton instance (for testing only).

        Warning:
            Must not be called while a launch is in progress.
        """
        with cls._lock_class:
            cls._instance = None

    @property
    def settings(self) -> SupervisorSettings:
        return self._settings

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def active(self) -> bool:
        """True while a child is alive and not yet reaped."""
        return self._state.active

    @property
    def child_pid(self) -> int | None:
        return self._state.child_pid

    def configure(
        self, settings: SupervisorSettings | None = None, lg: Any | None = None
    ) -> None:
        """
        Replace timing settings and/or the logger.

        Takes effect on the next launch; a running launch keeps its values.
        """
        if settings is not None:
            self._settings = settings
        if lg is not None:
            self._lg = lg
            self._signals = SignalHandler(self._state, lg)

    def launch(
        self, argv: Sequence[str], output: BinaryIO | None = None
    ) -> LaunchResult:
        """
        Spawn ``argv``, forward its combined output and wait for it to finish.

        Args:
            argv: Program followed by its arguments; argv[0] is resolved on PATH
            output: Binary stream receiving the child's output,
                ``sys.stdout.buffer`` if None

        Returns:
            LaunchResult with the child's exit code, or FAILURE_EXIT_CODE and
            the error/signal that prevented a normal exit
        """
        if not argv:
            self._lg.error("launch rejected: empty argv")
            return LaunchResult.failure(InvalidArgvError())

        if not self._launch_lock.acquire(blocking=False):
            return self._reject_busy()

        try:
            if self._state.active:
                return self._reject_busy()
            return self._run(list(argv), output)
        finally:
            self._launch_lock.release()

    def _reject_busy(self) -> LaunchResult:
        pid = self._state.child_pid
        self._lg.warning("launch rejected: supervisor busy", extra={"pid": pid})
        return LaunchResult.failure(SupervisorBusyError(pid))

    def _run(self, argv: list[str], output: BinaryIO | None) -> LaunchResult:
        if output is None:
            output = sys.stdout.buffer
        settings = self._settings
        state = self._state
        lg = self._lg
        # configure() may swap the handler mid-launch; restore the one installed here
        signals = self._signals

        state.begin_launch()
        signals.install()
        started = time.monotonic()
        try:
            try:
                child = spawn(argv, state)
            except SpawnError as e:
                lg.error("failed to start child process", extra={"error": str(e)})
                return LaunchResult.failure(e)

            lg.debug(
                "child process started", extra={"pid": child.pid, "program": argv[0]}
            )

            try:
                loop_exit = supervise(
                    child, state, output, settings.tick, settings.chunk_size, lg
                )
            except BaseException:
                termination.shutdown(
                    child, state, settings.kill_timeout, settings.kill_poll, lg, force=True
                )
                raise

            outcome = termination.shutdown(
                child, state, settings.kill_timeout, settings.kill_poll, lg
            )
            result = LaunchResult(
                exit_code=outcome.exit_code,
                error=outcome.error or loop_exit.error,
                term_signal=outcome.term_signal,
                cancel_signal=state.cancel.signum,
                pid=child.pid,
                duration=time.monotonic() - started,
            )
            lg.debug(
                "child process finished",
                extra={
                    "pid": child.pid,
                    "exit_code": result.exit_code,
                    "after": f"{result.duration:.3f}s",
                },
            )
            return result
        finally:
            state.detach()
            signals.restore()

    def stop(self) -> bool:
        """
        Ask the running child to terminate. Non-blocking.

        The supervising ``launch()`` notices within one tick, then forces the
        kill and reaps.

        Returns:
            False if no child is running or the signal could not be delivered
        """
        return termination.stop(self._state, self._lg)


def launch(argv: Sequence[str], output: BinaryIO | None = None) -> LaunchResult:
    """Launch ``argv`` on the process-wide supervisor. See Supervisor.launch."""
    return Supervisor.get_instance().launch(argv, output)


def stop() -> bool:
    """Stop the child of the process-wide supervisor. See Supervisor.stop."""
    return Supervisor.get_instance().stop()
