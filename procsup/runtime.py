"""
Program runtime: prepares the host process and launches one configured program.

Example:
    settings = RuntimeSettings(program="java", args=["-Xmx512m"], home="/opt/app")
    with ProgramRuntime.create(settings) as runtime:
        runtime.init_runtime()
        runtime.add_argument("-Dmode=batch")
        result = runtime.launch("-jar", "app.jar")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, BinaryIO

from .config.schemas import RuntimeSettings
from .exceptions import HostSetupError, RuntimeInitError, RuntimeStateError
from .host import change_dir, redirect_output, set_env
from .supervisor import LaunchResult, Supervisor


class ProgramRuntime:
    """
    Wraps a single program together with the environment it runs in.

    ``init_runtime()`` must be called once before ``launch()``. Arguments
    added with ``add_argument()`` are placed after the configured ones and
    before the per-launch extras.
    """

    def __init__(
        self,
        settings: RuntimeSettings,
        supervisor: Supervisor | None = None,
        lg: Any | None = None,
    ) -> None:
        self._settings = settings
        self._supervisor = supervisor or Supervisor.get_instance()
        self._lg = lg or logging.getLogger("procsup.runtime")
        self._arguments: list[str] = []
        self._initialized = False
        self._launched = False

    @classmethod
    def create(
        cls,
        settings: RuntimeSettings,
        supervisor: Supervisor | None = None,
        lg: Any | None = None,
    ) -> ProgramRuntime:
        """Create a runtime and warn about configured paths that do not exist."""
        runtime = cls(settings, supervisor, lg)
        if not runtime.validate_paths():
            runtime._lg.warning("some configured paths do not exist")
        return runtime

    def __enter__(self) -> ProgramRuntime:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()

    @property
    def settings(self) -> RuntimeSettings:
        return self._settings

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def launched(self) -> bool:
        return self._launched

    @property
    def arguments(self) -> list[str]:
        """Arguments added so far (a copy)."""
        return list(self._arguments)

    def add_argument(self, argument: str) -> None:
        self._arguments.append(argument)

    def add_arguments(self, arguments: list[str] | tuple[str, ...]) -> None:
        self._arguments.extend(arguments)

    def log_path(self) -> Path | None:
        """Resolved log file; relative names are taken relative to home."""
        log_file = self._settings.log_file
        if not log_file:
            return None
        path = Path(log_file)
        if not path.is_absolute() and self._settings.home:
            path = Path(self._settings.home) / path
        return path

    def validate_paths(self) -> bool:
        """
        Check that the configured directories exist.

        Missing paths are logged as warnings; nothing is created.

        Returns:
            True if every configured directory exists
        """
        s = self._settings
        checks = [("home", s.home), ("workdir", s.workdir)]
        log_path = self.log_path()
        if log_path is not None:
            checks.append(("log_dir", str(log_path.parent)))

        ok = True
        for key, value in checks:
            if value and not Path(value).is_dir():
                self._lg.warning("directory does not exist", extra={key: value})
                ok = False
        return ok

    def init_runtime(self) -> None:
        """
        Export the environment, change directory and redirect output.

        Idempotent; a second call only logs a warning.

        Raises:
            RuntimeInitError: If any setup step failed
        """
        if self._initialized:
            self._lg.warning("runtime already initialized")
            return

        s = self._settings
        self._lg.debug("initializing runtime", extra={"program": s.program})

        env = dict(s.env)
        if s.home:
            env.setdefault("HOME", s.home)
        for name, value in env.items():
            if not set_env(name, value, self._lg):
                raise RuntimeInitError("failed to set environment variable", name=name)

        workdir = s.workdir or s.home
        if workdir and not change_dir(workdir, self._lg):
            raise RuntimeInitError("failed to change working directory", path=workdir)

        log_path = self.log_path()
        if log_path is not None:
            try:
                redirect_output(log_path, self._lg)
            except HostSetupError as e:
                raise RuntimeInitError(
                    "failed to redirect output", path=str(log_path)
                ) from e

        self._initialized = True
        self._lg.info("runtime initialized", extra={"program": s.program})

    def build_argv(self, *extra: str) -> list[str]:
        """Program, configured args, added args, then ``extra``."""
        return [self._settings.program, *self._settings.args, *self._arguments, *extra]

    def launch(self, *extra: str, output: BinaryIO | None = None) -> LaunchResult:
        """
        Launch the program and block until it finishes.

        Raises:
            RuntimeStateError: If init_runtime() was not called
        """
        if not self._initialized:
            raise RuntimeStateError("init_runtime() must be called before launch()")

        argv = self.build_argv(*extra)
        self._lg.info("launching", extra={"argv": " ".join(argv)})
        self._launched = True
        result = self._supervisor.launch(argv, output)

        if result.error is not None:
            self._lg.error(
                "launch failed",
                extra={"exit_code": result.exit_code, "error": str(result.error)},
            )
        else:
            self._lg.info(
                "program finished",
                extra={"exit_code": result.exit_code, "after": f"{result.duration:.3f}s"},
            )
        return result

    def stop(self) -> bool:
        """Stop the program if it is running. See Supervisor.stop."""
        if not self._supervisor.active:
            return False
        return self._supervisor.stop()
