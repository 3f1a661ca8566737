"""Tests for the debounced revision-file watcher."""

from __future__ import annotations

import os
import threading

from alembic_graph.server.watcher import RevisionWatcher, diff_snapshots, snapshot


def _touch(path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))


class TestSnapshot:
    def test_matches_patterns(self, project_dir):
        (project_dir / "versions" / "__pycache__").mkdir()
        (project_dir / "versions" / "__pycache__" / "x.py").write_text("", encoding="utf-8")
        (project_dir / "README.md").write_text("", encoding="utf-8")

        mtimes = snapshot(project_dir, ["**/versions/**/*.py", "**/alembic.ini"])

        names = sorted(os.path.basename(p) for p in mtimes)
        assert names == [
            "0a1b2c3d4e5f_initial.py",
            "a1b2c3d4e5f6_add_users.py",
            "alembic.ini",
            "b2c3d4e5f6a7_add_orders.py",
            "c3d4e5f6a7b8_merge_branches.py",
        ]

    def test_diff(self):
        before = {"a": 1.0, "b": 1.0, "c": 1.0}
        after = {"a": 1.0, "b": 2.0, "d": 1.0}

        assert diff_snapshots(before, after) == ["b", "c", "d"]


class TestRevisionWatcher:
    def test_no_change_no_refresh(self, project_dir):
        calls = []
        watcher = RevisionWatcher(project_dir, lambda: calls.append(1), debounce=0.01)

        assert watcher.poll() == []
        assert not watcher.pending

    def test_change_triggers_one_refresh(self, project_dir):
        fired = threading.Event()
        calls = []

        def on_change():
            calls.append(1)
            fired.set()

        watcher = RevisionWatcher(project_dir, on_change, debounce=0.5)
        rev = project_dir / "versions" / "a1b2c3d4e5f6_add_users.py"
        _touch(rev, 1_000_000)
        first = watcher.poll()
        (project_dir / "versions" / "d4e5f6a7b8c9_new.py").write_text("", encoding="utf-8")
        second = watcher.poll()

        assert [os.path.basename(p) for p in first] == ["a1b2c3d4e5f6_add_users.py"]
        assert [os.path.basename(p) for p in second] == ["d4e5f6a7b8c9_new.py"]
        assert fired.wait(5.0)
        watcher.stop()
        assert calls == [1]

    def test_stop_cancels_pending(self, project_dir):
        calls = []
        watcher = RevisionWatcher(project_dir, lambda: calls.append(1), debounce=5.0)
        watcher.schedule()

        assert watcher.pending
        watcher.stop()

        assert not watcher.pending
        assert calls == []

    def test_from_config(self, project_dir):
        config = {
            "alembic": {"directory": str(project_dir)},
            "watch": {"patterns": ["**/env.py"], "debounce": 0.5, "interval": 2},
        }

        watcher = RevisionWatcher.from_config(config, lambda: None)

        assert watcher.root == project_dir
        assert watcher.patterns == ("**/env.py",)
        assert watcher.debounce == 0.5
        assert watcher.interval == 2.0
