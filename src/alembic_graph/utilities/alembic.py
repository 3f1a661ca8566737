"""Alembic command runner for alembic-graph.

Runs the ``alembic`` CLI as ``<python> -m alembic`` in the configured
project directory and returns captured stdout. This is the only place
that spawns processes; everything downstream works on text.

Every call either returns the full stdout or raises AlembicCommandError.
A non-zero exit is a failure even if some output was produced.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from alembic_graph.errors import AlembicCommandError

logger = logging.getLogger(__name__)

SHOW_PATH_PATTERN = re.compile(r"^\s*Path:\s*(?P<path>.+?)\s*$", re.MULTILINE)


@dataclass
class AlembicRunner:
    """Invokes alembic subcommands for one project.

    Attributes:
        python: Interpreter used as ``<python> -m alembic``.
        directory: Working directory for every invocation.
        ini_path: Config file passed with ``-c``.
        custom_args: Values passed as ``-x <arg>``.
        timeout: Seconds before a call is abandoned.
    """

    python: str = "python"
    directory: Path = field(default_factory=Path.cwd)
    ini_path: str = "alembic.ini"
    custom_args: list[str] = field(default_factory=list)
    timeout: float = 120

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> AlembicRunner:
        """Create a runner from the ``[alembic]`` config section."""
        section = config.get("alembic", {})
        return cls(
            python=str(section.get("python", "python")),
            directory=Path(str(section.get("directory", "."))),
            ini_path=str(section.get("ini_path", "alembic.ini")),
            custom_args=[str(arg) for arg in section.get("custom_args", [])],
            timeout=float(section.get("timeout", 120)),
        )

    def build_command(self, args: list[str]) -> list[str]:
        """Full argv for an alembic subcommand.

        Global options (``-c``, ``-x``) must precede the subcommand.
        """
        command = [self.python, "-m", "alembic", "-c", self.ini_path]
        for arg in self.custom_args:
            command.extend(["-x", arg])
        command.extend(args)
        return command

    def run(self, args: list[str]) -> str:
        """Run an alembic subcommand and return its stdout.

        Raises:
            AlembicCommandError: If the process cannot start, times out,
                or exits non-zero. The message carries stderr (or stdout
                when stderr is empty).
        """
        command = self.build_command(args)
        logger.debug("running %s in %s", " ".join(command), self.directory)
        try:
            result = subprocess.run(
                command,
                cwd=self.directory,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise AlembicCommandError(args, f"cannot launch {self.python}: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise AlembicCommandError(args, f"timed out after {self.timeout:g}s") from e
        except OSError as e:
            raise AlembicCommandError(args, str(e)) from e

        if result.stderr:
            logger.debug("alembic stderr:\n%s", result.stderr)
        if result.returncode != 0:
            output = result.stderr or result.stdout or f"exit code {result.returncode}"
            logger.error("alembic %s failed with exit code %d", args[0], result.returncode)
            raise AlembicCommandError(args, output, returncode=result.returncode)
        return result.stdout

    # Read commands: the three text blobs a graph refresh needs

    def history(self) -> str:
        return self.run(["history", "--verbose", "--indicate-current"])

    def current(self) -> str:
        return self.run(["current"])

    def heads(self) -> str:
        return self.run(["heads"])

    def show(self, revision: str) -> str:
        return self.run(["show", revision])

    def revision_path(self, revision: str) -> Path | None:
        """Locate a revision's source file via ``alembic show``.

        Returns:
            Absolute path of the file, or None if alembic cannot show the
            revision or prints no ``Path:`` line.
        """
        try:
            output = self.show(revision)
        except AlembicCommandError as e:
            logger.warning("cannot locate file for revision %s: %s", revision, e.output.strip())
            return None
        match = SHOW_PATH_PATTERN.search(output)
        if not match:
            return None
        return self.resolve_path(match.group("path"))

    def resolve_path(self, path: str) -> Path:
        """Resolve a path printed by alembic against the working directory."""
        p = Path(path)
        return p if p.is_absolute() else (self.directory / p).resolve()

    # Write commands: change the database or the versions directory

    def upgrade(self, target: str) -> str:
        return self.run(["upgrade", target])

    def downgrade(self, target: str) -> str:
        return self.run(["downgrade", target])

    def stamp(self, revision: str) -> str:
        return self.run(["stamp", revision])

    def revision(self, message: str, autogenerate: bool = False) -> str:
        """Create a new revision file."""
        args = ["revision"]
        if autogenerate:
            args.append("--autogenerate")
        args.extend(["-m", message])
        return self.run(args)


def downgrade_warning(revision: str) -> str:
    """The warning shown before a downgrade."""
    return (
        f"Are you sure you want to downgrade to revision {revision}? "
        "This action cannot be undone."
    )


def stamp_warning(revision: str) -> str:
    """The warning shown before a stamp."""
    return (
        f"Are you sure you want to stamp revision {revision}? "
        "This will mark it as applied without running the migration."
    )
