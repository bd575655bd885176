"""
Supervisor fixtures for testing.

Provides supervisors with short timings and in-memory output sinks.
"""

import io
import threading
from collections.abc import Callable, Generator

import pytest

from procsup.config import SupervisorSettings
from procsup.supervisor import Supervisor


@pytest.fixture
def fast_settings() -> SupervisorSettings:
    """Short tick and kill window so cancellation tests stay quick."""
    return SupervisorSettings(tick_ms=20, kill_timeout_ms=2000, kill_poll_ms=20)


@pytest.fixture
def supervisor(fast_settings: SupervisorSettings) -> Supervisor:
    """A standalone supervisor, not the process-wide singleton."""
    return Supervisor(fast_settings)


@pytest.fixture
def sink() -> io.BytesIO:
    """Binary stream receiving forwarded child output."""
    return io.BytesIO()


@pytest.fixture
def stop_later() -> Generator[Callable[[Callable[[], object], float], None], None, None]:
    """
    Schedule a call on a timer thread; pending timers are cancelled at teardown.

    Usage:
        stop_later(supervisor.stop, 0.3)
    """
    timers: list[threading.Timer] = []

    def schedule(fn: Callable[[], object], delay: float) -> None:
        timer = threading.Timer(delay, fn)
        timer.daemon = True
        timers.append(timer)
        timer.start()

    yield schedule

    for timer in timers:
        timer.cancel()
