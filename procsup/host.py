"""
Host-process setup that runs before a launch.

These act on the supervising process itself: the child inherits the
environment and working directory, and ``redirect_output`` moves the
supervisor's own stdout/stderr (including log lines) into a file.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

from .exceptions import HostSetupError

_REDIRECT_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
_REDIRECT_MODE = 0o666


def redirect_output(path: str | Path, lg: Any | None = None) -> None:
    """
    Point file descriptors 1 and 2 at ``path``, truncating it.

    Python-level buffers are flushed first so nothing written before the
    call ends up in the file.

    Raises:
        HostSetupError: If the file cannot be opened or duplicated
    """
    lg = lg or logging.getLogger("procsup.host")
    for stream in (sys.stdout, sys.stderr):
        if stream is not None:
            stream.flush()

    try:
        fd = os.open(path, _REDIRECT_FLAGS, _REDIRECT_MODE)
    except OSError as e:
        raise HostSetupError(
            "cannot open output file", path=str(path), reason=e.strerror
        ) from e

    try:
        os.dup2(fd, 1)
        os.dup2(fd, 2)
    except OSError as e:
        raise HostSetupError(
            "cannot redirect output", path=str(path), reason=e.strerror
        ) from e
    finally:
        if fd not in (1, 2):
            os.close(fd)

    lg.debug("output redirected", extra={"path": str(path)})


def set_env(name: str, value: str, lg: Any | None = None) -> bool:
    """
    Export ``name=value`` into the process environment, overwriting.

    Returns:
        True on success; failures are logged and reported as False
    """
    lg = lg or logging.getLogger("procsup.host")
    try:
        os.environ[name] = value
    except (ValueError, OSError) as e:
        lg.error("failed to set environment variable", extra={"variable": name, "error": e})
        return False

    lg.debug("environment variable set", extra={"variable": name})
    return True


def change_dir(path: str | Path, lg: Any | None = None) -> bool:
    """
    Change the working directory. Best-effort: a failure is logged only.

    Returns:
        True if the directory was changed
    """
    lg = lg or logging.getLogger("procsup.host")
    try:
        os.chdir(path)
    except OSError as e:
        lg.warning(
            "failed to change working directory",
            extra={"path": str(path), "error": e.strerror},
        )
        return False

    lg.debug("working directory changed", extra={"path": str(path)})
    return True
