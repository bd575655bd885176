"""
Exception hierarchy for the process supervisor.

Supervisor-level errors are never raised across ``launch()``/``stop()``; they
are carried back to the caller in ``LaunchResult.error``. The caller-side
layers (config, host setup, program runtime) raise them normally.
"""

from typing import Any


class SupervisorError(Exception):
    """
    Base exception for all procsup errors.

    Example:
        result = procsup.launch(["/bin/false"])
        if isinstance(result.error, SupervisorError):
            lg.error("launch failed", extra={"error": str(result.error)})
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class SpawnError(SupervisorError):
    """
    Pipe or process creation failed.

    No child exists when this is reported and no descriptors are left open.
    """

    pass


class InvalidArgvError(SupervisorError):
    """Launch was called with an empty argument vector."""

    def __init__(self) -> None:
        super().__init__("argv must contain at least the program path")


class SupervisorBusyError(SupervisorError):
    """A launch was attempted while another child is still supervised."""

    def __init__(self, pid: int | None) -> None:
        super().__init__("a child process is already being supervised", pid=pid)


class SupervisionIOError(SupervisorError):
    """
    Non-transient I/O failure while forwarding child output.

    The supervision loop ends early; the child is still reaped and its exit
    code reported alongside this error.
    """

    pass


class WaitError(SupervisorError):
    """Reaping the child failed."""

    pass


class TerminationTimeoutError(SupervisorError):
    """
    The child was not reaped within the window after SIGKILL.

    The supervisor clears its own state regardless; the OS process may be
    left running.
    """

    def __init__(self, pid: int, timeout: float) -> None:
        super().__init__(
            "child not reaped after forced kill", pid=pid, timeout=f"{timeout}s"
        )
        self.pid = pid
        self.timeout = timeout


class SignalDeliveryError(SupervisorError):
    """Sending a signal to the child failed (it may have already exited)."""

    def __init__(self, pid: int, signum: int, reason: str) -> None:
        super().__init__("signal delivery failed", pid=pid, signal=signum, reason=reason)
        self.pid = pid
        self.signum = signum


class HostSetupError(SupervisorError):
    """Redirecting the supervisor's own output failed."""

    pass


class ConfigError(SupervisorError):
    """
    Configuration-related errors.

    Examples:
        - Config file not found or too large
        - Invalid YAML syntax
        - Schema validation failed
    """

    pass


class RuntimeInitError(SupervisorError):
    """Setting up the program runtime (env, cwd, redirection) failed."""

    pass


class RuntimeStateError(SupervisorError):
    """A runtime operation was called in the wrong order (e.g. launch before init)."""

    pass
