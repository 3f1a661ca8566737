"""Shared pytest fixtures for alembic-graph tests."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from alembic_graph.errors import AlembicCommandError

# Four revisions: a root, two branches off it, and a merge of both.
# Printed newest-first, the way `alembic history --verbose` does.
SAMPLE_HISTORY = textwrap.dedent(
    """\
    Rev: c3d4e5f6a7b8 (head) (mergepoint)
    Merges: a1b2c3d4e5f6, b2c3d4e5f6a7
    Path: versions/c3d4e5f6a7b8_merge_branches.py

        merge branches

        Revision ID: c3d4e5f6a7b8
        Revises: a1b2c3d4e5f6, b2c3d4e5f6a7
        Create Date: 2024-03-01 10:00:00.000000

    Rev: b2c3d4e5f6a7 (feature)
    Parent: 0a1b2c3d4e5f
    Branches into: c3d4e5f6a7b8
    Path: versions/b2c3d4e5f6a7_add_orders.py

        add orders table

        Revision ID: b2c3d4e5f6a7
        Revises: 0a1b2c3d4e5f
        Create Date: 2024-02-15 09:30:00.000000

    Rev: a1b2c3d4e5f6 (current)
    Parent: 0a1b2c3d4e5f
    Branches into: c3d4e5f6a7b8
    Path: versions/a1b2c3d4e5f6_add_users.py

        add users table
        with email index

        Revision ID: a1b2c3d4e5f6
        Revises: 0a1b2c3d4e5f
        Create Date: 2024-02-01 08:00:00.000000

    Rev: 0a1b2c3d4e5f (branchpoint)
    Parent: <base>
    Branches into: a1b2c3d4e5f6, b2c3d4e5f6a7
    Path: versions/0a1b2c3d4e5f_initial.py

        initial schema

        Revision ID: 0a1b2c3d4e5f
        Revises:
        Create Date: 2024-01-01 00:00:00.000000
    """
)

SAMPLE_CURRENT = (
    "INFO  [alembic.runtime.migration] Context impl SQLiteImpl.\n"
    "INFO  [alembic.runtime.migration] Will assume non-transactional DDL.\n"
    "a1b2c3d4e5f6\n"
)

SAMPLE_HEADS = "c3d4e5f6a7b8 (head)\n"

REVISION_TEMPLATE = '''"""{message}

Revision ID: {rev}
Revises: {parent_doc}
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '{rev}'
down_revision: Union[str, None] = {parent_code}
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    pass


def downgrade() -> None:
    pass
'''


def revision_source(rev: str, parent: str | None, message: str = "revision") -> str:
    """Render a revision file the way ``alembic revision`` writes one."""
    return REVISION_TEMPLATE.format(
        rev=rev,
        message=message,
        parent_doc=parent or "",
        parent_code=f"'{parent}'" if parent else "None",
    )


class FakeRunner:
    """Stand-in for AlembicRunner that serves canned text.

    Records every write command in ``calls``. Setting ``fail`` to a
    command name makes that command raise AlembicCommandError.
    """

    def __init__(
        self,
        directory: Path,
        history: str = SAMPLE_HISTORY,
        current: str = SAMPLE_CURRENT,
        heads: str = SAMPLE_HEADS,
    ) -> None:
        self.directory = Path(directory)
        self.history_text = history
        self.current_text = current
        self.heads_text = heads
        self.calls: list[tuple[str, ...]] = []
        self.fail: str | None = None

    def _read(self, name: str, text: str) -> str:
        if self.fail == name:
            raise AlembicCommandError([name], "FAILED: Can't locate revision")
        return text

    def history(self) -> str:
        return self._read("history", self.history_text)

    def current(self) -> str:
        return self._read("current", self.current_text)

    def heads(self) -> str:
        return self._read("heads", self.heads_text)

    def resolve_path(self, path: str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.directory / p

    def revision_path(self, revision: str) -> Path | None:
        return None

    def _write(self, name: str, *args: str) -> str:
        if self.fail == name:
            raise AlembicCommandError([name, *args], "FAILED: Can't locate revision")
        self.calls.append((name, *args))
        return ""

    def upgrade(self, target: str) -> str:
        return self._write("upgrade", target)

    def downgrade(self, target: str) -> str:
        return self._write("downgrade", target)

    def stamp(self, revision: str) -> str:
        return self._write("stamp", revision)

    def revision(self, message: str, autogenerate: bool = False) -> str:
        return self._write("revision", message, str(autogenerate))


@pytest.fixture
def sample_history() -> str:
    return SAMPLE_HISTORY


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Alembic project whose versions/ holds the sample revisions."""
    versions = tmp_path / "versions"
    versions.mkdir()
    files = {
        "0a1b2c3d4e5f_initial.py": ("0a1b2c3d4e5f", None, "initial schema"),
        "a1b2c3d4e5f6_add_users.py": ("a1b2c3d4e5f6", "0a1b2c3d4e5f", "add users table"),
        "b2c3d4e5f6a7_add_orders.py": ("b2c3d4e5f6a7", "0a1b2c3d4e5f", "add orders table"),
        "c3d4e5f6a7b8_merge_branches.py": ("c3d4e5f6a7b8", "a1b2c3d4e5f6", "merge branches"),
    }
    for name, (rev, parent, message) in files.items():
        (versions / name).write_text(revision_source(rev, parent, message), encoding="utf-8")
    (tmp_path / "alembic.ini").write_text("[alembic]\nscript_location = .\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def fake_runner(project_dir: Path) -> FakeRunner:
    return FakeRunner(project_dir)


@pytest.fixture
def sample_graph():
    """Graph built from the sample outputs."""
    from alembic_graph.graph.factory import build_graph_from_text

    return build_graph_from_text(SAMPLE_HISTORY, SAMPLE_CURRENT, SAMPLE_HEADS)


@pytest.fixture
def make_runner():
    """Factory for FakeRunner with custom outputs."""
    return FakeRunner


@pytest.fixture
def make_revision_source():
    """Factory rendering revision file text."""
    return revision_source
