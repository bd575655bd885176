"""
Signal interception for the supervising process.

SIGINT and SIGTERM request cancellation and forward SIGTERM to the active
child. SIGPIPE is ignored so a vanished output reader shows up as
BrokenPipeError on write instead of killing the supervisor.
"""

from __future__ import annotations

import logging
import os
import signal
import threading
from types import FrameType
from typing import Any

from .state import SupervisorState

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalHandler:
    """
    Installs and restores the supervisor's signal dispositions.

    Usage:
        handler = SignalHandler(state)
        handler.install()
        try:
            ...  # spawn and supervise
        finally:
            handler.restore()
    """

    def __init__(self, state: SupervisorState, lg: Any | None = None) -> None:
        self._state = state
        self._lg = lg or logging.getLogger("procsup.signals")
        self._original_handlers: dict[signal.Signals, Any] = {}

    @property
    def installed(self) -> bool:
        return bool(self._original_handlers)

    def install(self) -> bool:
        """
        Register handlers for SIGINT/SIGTERM and ignore SIGPIPE.

        Python only allows this from the main thread. Elsewhere nothing is
        installed and False is returned; cancellation then relies on stop().
        """
        if threading.current_thread() is not threading.main_thread():
            self._lg.debug("not on main thread, signal handlers not installed")
            return False

        for signum in STOP_SIGNALS:
            self._original_handlers[signum] = signal.signal(signum, self._handle_signal)
        self._original_handlers[signal.SIGPIPE] = signal.signal(
            signal.SIGPIPE, signal.SIG_IGN
        )
        return True

    def restore(self) -> None:
        """Reinstate the dispositions that were active before install()."""
        for signum, original in self._original_handlers.items():
            signal.signal(signum, original if original is not None else signal.SIG_DFL)
        self._original_handlers.clear()

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        """
        Request cancellation and forward SIGTERM to the child.

        Runs at an arbitrary interruption point of the launch thread: no
        logging, no locks, one kill() at most.
        """
        self._state.cancel.request(signum)
        pid = self._state.child_pid
        if pid is not None:
            try:
                os.kill(pid, signal.SIGTERM)
            except OSError:
                # Child already gone; the loop notices the exit on its own
                pass
