"""
Background launches with progress reporting.

LaunchManager runs a ProgramRuntime on a worker thread and reports progress
through a queue. Signal handlers cannot be installed off the main thread,
so cancellation goes through ``cancel()``.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, BinaryIO

from .config.schemas import RuntimeSettings
from .exceptions import SupervisorError
from .runtime import ProgramRuntime
from .supervisor import LaunchResult, Supervisor


class ProgressStage(Enum):
    STARTING = "starting"
    INITIALIZING = "initializing"
    LAUNCHING = "launching"
    FINISHED = "finished"
    FAILED = "failed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


_FINAL_STAGES = (
    ProgressStage.FINISHED,
    ProgressStage.FAILED,
    ProgressStage.REJECTED,
    ProgressStage.CANCELLED,
)


@dataclass(frozen=True)
class ProgressEvent:
    """
    One progress notification.

    Exactly one final event (FINISHED, FAILED, REJECTED or CANCELLED) is
    published per launch and it is always the last one. FINISHED carries the
    LaunchResult, whatever the exit code; FAILED carries the exception that
    prevented the launch; CANCELLED means the program was never started.
    """

    stage: ProgressStage
    message: str
    result: LaunchResult | None = None
    error: BaseException | None = None

    @property
    def final(self) -> bool:
        return self.stage in _FINAL_STAGES


class LaunchManager:
    """
    Runs at most one program at a time on a background thread.

    Usage:
        manager = LaunchManager()
        events = manager.launch(RuntimeSettings(program="sleep", args=["1"]))
        while not (event := events.get()).final:
            print(event.message)
        print(event.result.exit_code)
    """

    # Seconds cancel() waits for a child that is still being spawned
    CANCEL_WAIT = 1.0

    def __init__(self, supervisor: Supervisor | None = None, lg: Any | None = None) -> None:
        self._supervisor = supervisor or Supervisor.get_instance()
        self._lg = lg or logging.getLogger("procsup.manager")
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._runtime: ProgramRuntime | None = None
        self._closed = False
        self._cancel_pending = False
        self._launching = False

    def launch(
        self,
        settings: RuntimeSettings,
        *extra: str,
        output: BinaryIO | None = None,
    ) -> queue.Queue[ProgressEvent]:
        """
        Start ``settings.program`` in the background.

        Returns:
            Queue receiving ProgressEvents; a launch attempted while another
            one is running gets a single REJECTED event
        """
        events: queue.Queue[ProgressEvent] = queue.Queue()

        with self._lock:
            if self._closed:
                events.put(ProgressEvent(ProgressStage.REJECTED, "launch manager is shut down"))
                return events
            if self._thread is not None and self._thread.is_alive():
                self._lg.warning("launch rejected: a program is already running")
                events.put(ProgressEvent(ProgressStage.REJECTED, "a program is already running"))
                return events

            runtime = ProgramRuntime.create(settings, self._supervisor, self._lg)
            self._runtime = runtime
            self._cancel_pending = False
            self._launching = False
            self._thread = threading.Thread(
                target=self._run,
                args=(runtime, extra, output, events),
                name="procsup-launch",
                daemon=True,
            )
            self._thread.start()

        return events

    def _run(
        self,
        runtime: ProgramRuntime,
        extra: tuple[str, ...],
        output: BinaryIO | None,
        events: queue.Queue[ProgressEvent],
    ) -> None:
        program = runtime.settings.program
        try:
            events.put(ProgressEvent(ProgressStage.STARTING, f"starting {program}"))
            if self._take_pending_cancel(program, events):
                return

            events.put(ProgressEvent(ProgressStage.INITIALIZING, "initializing runtime"))
            runtime.init_runtime()
            if self._take_pending_cancel(program, events, launching=True):
                return

            events.put(ProgressEvent(ProgressStage.LAUNCHING, f"launching {program}"))
            result = runtime.launch(*extra, output=output)
        except SupervisorError as e:
            self._lg.error("launch failed", extra={"program": program, "error": str(e)})
            events.put(ProgressEvent(ProgressStage.FAILED, f"launch failed: {e}", error=e))
            return
        except Exception as e:
            # Keep the worker from dying silently; the caller still gets a final event
            self._lg.exception("unexpected error during launch")
            events.put(ProgressEvent(ProgressStage.FAILED, f"launch failed: {e}", error=e))
            return

        events.put(
            ProgressEvent(
                ProgressStage.FINISHED,
                f"{program} exited with code {result.exit_code}",
                result=result,
            )
        )

    def _take_pending_cancel(
        self,
        program: str,
        events: queue.Queue[ProgressEvent],
        launching: bool = False,
    ) -> bool:
        """
        Publish CANCELLED if cancel() came in before the program started.

        With ``launching`` the manager is marked as handing over to the
        supervisor, after which cancel() stops the child instead.
        """
        with self._lock:
            if self._cancel_pending:
                self._lg.info("launch cancelled before start", extra={"program": program})
                events.put(
                    ProgressEvent(ProgressStage.CANCELLED, f"launch of {program} cancelled")
                )
                return True
            if launching:
                self._launching = True
            return False

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def cancel(self) -> bool:
        """
        Stop the running program.

        Before the program is launched the cancellation is recorded and the
        launch ends with a CANCELLED event. Once launching, the child is
        stopped; a child still being spawned is waited for up to
        CANCEL_WAIT seconds.

        Returns:
            False if nothing is running or the child could not be signalled
        """
        with self._lock:
            if not self.is_running() or self._runtime is None:
                return False
            runtime = self._runtime
            if not self._launching:
                self._cancel_pending = True
                self._lg.info("cancelling launch before start")
                return True

        self._lg.info("cancelling launch")
        deadline = time.monotonic() + self.CANCEL_WAIT
        while not runtime.stop():
            if not self.is_running() or time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def shutdown(self, timeout: float = 10.0) -> bool:
        """
        Cancel the running program, wait for the worker and refuse new launches.

        Returns:
            True if the worker thread finished within ``timeout``
        """
        with self._lock:
            self._closed = True
        self.cancel()

        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()
