"""
Writers for the lines procsup prints about a run.

``procsup run`` forwards the child's bytes to stdout untouched. Its own
summary ("procsup: make exited with code 2") and the ``config`` dump go
through an OutputWriter instead, so the CLI can be driven from tests and
``--quiet`` can silence the summary without touching the child's output.
"""

import sys
from typing import Protocol, TextIO


class OutputWriter(Protocol):
    """Line sink for summary and config output."""

    def write(self, text: str = "") -> None:
        """Write ``text`` as one or more lines."""
        ...

    def flush(self) -> None: ...


class ConsoleOutput:
    """
    Summary lines on a terminal stream.

    Defaults to stderr: ``procsup run -- prog | consumer`` then pipes only
    the program's bytes. ``procsup config`` passes ``sys.stdout`` so the dump
    can be redirected into a file.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stderr

    def write(self, text: str = "") -> None:
        print(text, file=self._stream)

    def flush(self) -> None:
        self._stream.flush()


class NullOutput:
    """Backs ``run --quiet``: the exit status is the only report."""

    def write(self, text: str = "") -> None:
        pass

    def flush(self) -> None:
        pass


class BufferedOutput:
    """
    Keeps summary lines in memory, split on newlines.

    A multi-line config dump written in one call is stored line by line:

        out = BufferedOutput()
        main(["config", "-c", "etc/procsup.yaml"], out=out)
        assert out.lines[0] == "supervisor:"
    """

    def __init__(self) -> None:
        self._lines: list[str] = []

    def write(self, text: str = "") -> None:
        self._lines.extend(text.split("\n"))

    def flush(self) -> None:
        pass

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @property
    def text(self) -> str:
        if not self._lines:
            return ""
        return "\n".join(self._lines) + "\n"

    def clear(self) -> None:
        del self._lines[:]
