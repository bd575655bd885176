"""
Child process creation with stdout/stderr redirected into a pipe.
"""

from __future__ import annotations

import os
import signal
from collections.abc import Sequence
from typing import NoReturn

from ..exceptions import SpawnError
from .state import ChildProcess, ChildState, SupervisorState

# Exit status of a child whose exec failed; same convention as the shell
EXEC_FAILURE_STATUS = 127

_CHILD_DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGPIPE)


def _exec_child(argv: Sequence[str], read_fd: int, write_fd: int) -> NoReturn:
    """Runs in the forked child; never returns."""
    try:
        # The parent's handlers and its ignored SIGPIPE must not leak into the program
        for signum in _CHILD_DEFAULT_SIGNALS:
            signal.signal(signum, signal.SIG_DFL)

        os.close(read_fd)
        os.dup2(write_fd, 1)
        os.dup2(write_fd, 2)
        if write_fd not in (1, 2):
            os.close(write_fd)

        os.execvp(argv[0], list(argv))
    except BaseException as e:
        try:
            os.write(2, f"procsup: exec {argv[0]}: {e}\n".encode(errors="replace"))
        except OSError:
            pass
    finally:
        os._exit(EXEC_FAILURE_STATUS)


def spawn(argv: Sequence[str], state: SupervisorState) -> ChildProcess:
    """
    Fork and exec ``argv`` with combined output going to a pipe.

    The read end is returned non-blocking inside the ChildProcess; the write
    end belongs to the child only.

    Raises:
        SpawnError: If the pipe or the process could not be created. Both
            pipe ends are closed and no child exists.
    """
    try:
        read_fd, write_fd = os.pipe()
    except OSError as e:
        raise SpawnError("pipe creation failed", errno=e.errno, reason=e.strerror) from e

    try:
        pid = os.fork()
    except OSError as e:
        os.close(read_fd)
        os.close(write_fd)
        raise SpawnError("process creation failed", errno=e.errno, reason=e.strerror) from e

    if pid == 0:
        _exec_child(argv, read_fd, write_fd)

    child = ChildProcess(pid=pid, read_fd=read_fd)
    state.attach(child)
    os.close(write_fd)
    os.set_blocking(read_fd, False)
    child.state = ChildState.RUNNING
    return child
