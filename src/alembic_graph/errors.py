"""Exception types raised by alembic-graph."""

from __future__ import annotations


class AlembicGraphError(Exception):
    """Base class for all alembic-graph errors."""


class AlembicCommandError(AlembicGraphError):
    """An ``alembic`` invocation failed to launch or exited non-zero.

    Attributes:
        args_used: The alembic arguments that were run (without interpreter).
        returncode: Process exit code, or None if the process never started.
        output: The diagnostic text reported by the process.
    """

    def __init__(self, args_used: list[str], output: str, returncode: int | None = None) -> None:
        self.args_used = list(args_used)
        self.returncode = returncode
        self.output = output
        command = " ".join(self.args_used)
        super().__init__(f"Alembic command failed ({command}): {output.strip()}")


class DependencyChangeError(AlembicGraphError):
    """A requested parent change cannot be planned or applied."""
