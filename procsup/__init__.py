from importlib.metadata import PackageNotFoundError, version

from .config import Config, ProcsupConfig, RuntimeSettings, SupervisorSettings
from .dot_dict import DotDict
from .exceptions import (
    ConfigError,
    HostSetupError,
    InvalidArgvError,
    RuntimeInitError,
    RuntimeStateError,
    SignalDeliveryError,
    SpawnError,
    SupervisionIOError,
    SupervisorBusyError,
    SupervisorError,
    TerminationTimeoutError,
    WaitError,
)
from .host import change_dir, redirect_output, set_env
from .manager import LaunchManager, ProgressEvent, ProgressStage
from .runtime import ProgramRuntime
from .supervisor import (
    EXEC_FAILURE_STATUS,
    FAILURE_EXIT_CODE,
    LaunchResult,
    Supervisor,
    launch,
    stop,
)

# Version is read from package metadata (pyproject.toml)
try:
    __version__ = version("procsup")
except PackageNotFoundError:
    # Package not installed, use fallback (development mode)
    __version__ = "0.1.0-dev"

# Explicit public API
__all__ = [
    # Version
    "__version__",
    # Supervision
    "launch",
    "stop",
    "Supervisor",
    "LaunchResult",
    "EXEC_FAILURE_STATUS",
    "FAILURE_EXIT_CODE",
    # Host setup
    "redirect_output",
    "set_env",
    "change_dir",
    # Runtime and manager
    "ProgramRuntime",
    "LaunchManager",
    "ProgressEvent",
    "ProgressStage",
    # Configuration
    "Config",
    "DotDict",
    "ProcsupConfig",
    "RuntimeSettings",
    "SupervisorSettings",
    # Exceptions
    "SupervisorError",
    "SpawnError",
    "InvalidArgvError",
    "SupervisorBusyError",
    "SupervisionIOError",
    "WaitError",
    "TerminationTimeoutError",
    "SignalDeliveryError",
    "HostSetupError",
    "ConfigError",
    "RuntimeInitError",
    "RuntimeStateError",
]
