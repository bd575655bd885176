"""
Command-line interface for procsup.

This module provides the ``procsup`` entry point and output abstractions
for testable CLI commands.
"""

from procsup.cli.output import BufferedOutput, ConsoleOutput, NullOutput

__all__ = [
    "ConsoleOutput",
    "BufferedOutput",
    "NullOutput",
]
