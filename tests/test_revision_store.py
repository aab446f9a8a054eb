"""
Tests for the revision store and target state — lockfile, markers, needs_update.
"""

import json
from pathlib import Path

import pytest

from parserctl.core.models.target import Target
from parserctl.core.persistence.revision_store import RevisionStore, RevisionStoreError
from parserctl.core.services.parser_install.detection.target_state import (
    installed_targets,
    needs_update,
    outdated_targets,
    target_status,
)
from tests.helpers import fake_installed


def _target(name: str) -> Target:
    return Target(name=name, url=f"https://example.com/tree-sitter-{name}", files=["src/parser.c"])


class TestLockfile:
    """Tests for lockfile loading and caching."""

    def test_missing_lockfile_pins_nothing(self, tmp_path: Path):
        store = RevisionStore(tmp_path / "lockfile.json", tmp_path / "info")
        assert store.desired_revision("lua") is None

    def test_desired_revision(self, workspace_factory):
        ws = workspace_factory(lockfile={"lua": {"revision": "abc123"}})
        assert ws.store.desired_revision("lua") == "abc123"
        assert ws.store.desired_revision("python") is None

    def test_loaded_once_until_cleared(self, workspace_factory):
        ws = workspace_factory(lockfile={"lua": {"revision": "old"}})
        assert ws.store.desired_revision("lua") == "old"

        ws.lockfile_path.write_text(json.dumps({"lua": {"revision": "new"}}))
        assert ws.store.desired_revision("lua") == "old"

        ws.store.clear()
        assert ws.store.desired_revision("lua") == "new"

    def test_malformed_lockfile(self, tmp_path: Path):
        path = tmp_path / "lockfile.json"
        path.write_text("{not json")
        store = RevisionStore(path, tmp_path / "info")
        with pytest.raises(RevisionStoreError, match="Malformed lockfile"):
            store.desired_revision("lua")

    def test_entry_without_revision(self, tmp_path: Path):
        path = tmp_path / "lockfile.json"
        path.write_text(json.dumps({"lua": {"commit": "abc"}}))
        store = RevisionStore(path, tmp_path / "info")
        with pytest.raises(RevisionStoreError):
            store.desired_revision("lua")


class TestMarkers:
    """Tests for installed-revision marker files."""

    def test_no_marker(self, workspace):
        assert workspace.store.installed_revision("lua") is None

    def test_persist_and_read(self, workspace):
        workspace.store.persist_installed_revision("lua", "abc123")
        marker = workspace.info_dir / "lua.revision"
        assert marker.read_text() == "abc123\n"
        assert workspace.store.installed_revision("lua") == "abc123"

    def test_persist_unknown_revision(self, workspace):
        workspace.store.persist_installed_revision("lua", None)
        assert workspace.store.installed_revision("lua") == ""

    def test_only_first_line_counts(self, workspace):
        workspace.info_dir.mkdir(parents=True)
        (workspace.info_dir / "lua.revision").write_text("abc123\ntrailing junk\n")
        assert workspace.store.installed_revision("lua") == "abc123"

    def test_forget(self, workspace):
        workspace.store.persist_installed_revision("lua", "abc123")
        workspace.store.forget_installed_revision("lua")
        assert workspace.store.installed_revision("lua") is None
        # Forgetting twice is fine
        workspace.store.forget_installed_revision("lua")


class TestNeedsUpdate:
    """Tests for the desired-vs-installed comparison."""

    def test_equal_revisions_up_to_date(self, workspace_factory):
        ws = workspace_factory(lockfile={"lua": {"revision": "abc123"}})
        ws.store.persist_installed_revision("lua", "abc123")
        assert needs_update(ws, "lua") is False

    def test_no_lockfile_entry_needs_update(self, workspace_factory):
        ws = workspace_factory(lockfile={})
        ws.store.persist_installed_revision("lua", "abc123")
        assert needs_update(ws, "lua") is True

    def test_no_marker_needs_update(self, workspace_factory):
        ws = workspace_factory(lockfile={"foo": {"revision": "abc123"}})
        assert ws.store.installed_revision("foo") is None
        assert needs_update(ws, "foo") is True

    def test_different_revisions_need_update(self, workspace_factory):
        ws = workspace_factory(lockfile={"lua": {"revision": "new"}})
        ws.store.persist_installed_revision("lua", "old")
        assert needs_update(ws, "lua") is True

    def test_outdated_targets(self, workspace_factory):
        ws = workspace_factory(lockfile={
            "lua": {"revision": "aaa"},
            "python": {"revision": "bbb"},
        })
        fake_installed(ws, "lua", "aaa")
        fake_installed(ws, "python", "old")
        assert installed_targets(ws) == ["lua", "python"]
        assert outdated_targets(ws) == ["python"]

    def test_target_status(self, workspace_factory):
        ws = workspace_factory(lockfile={"lua": {"revision": "aaa"}})
        fake_installed(ws, "lua", "aaa")
        fake_installed(ws, "orphan", "zzz")
        rows = {row["name"]: row for row in target_status(ws)}

        assert rows["lua"]["up_to_date"] is True
        assert rows["python"]["installed"] is False
        assert rows["orphan"]["known"] is False
        assert rows["orphan"]["installed_revision"] == "zzz"


class TestWriteLockfile:
    """Tests for rebuilding the lockfile from remote revisions."""

    def test_writes_sorted_json(self, tmp_path: Path):
        store = RevisionStore(tmp_path / "lockfile.json", tmp_path / "info")
        report = store.write_lockfile(
            [_target("python"), _target("lua")],
            lambda t: f"rev-{t.name}",
        )
        text = (tmp_path / "lockfile.json").read_text()
        assert text.endswith("\n")
        assert list(json.loads(text)) == ["lua", "python"]
        assert report.revisions == {"lua": "rev-lua", "python": "rev-python"}
        assert store.desired_revision("lua") == "rev-lua"

    def test_idempotent(self, tmp_path: Path):
        path = tmp_path / "lockfile.json"
        store = RevisionStore(path, tmp_path / "info")
        targets = [_target("lua"), _target("c")]

        store.write_lockfile(targets, lambda t: "same")
        first = path.read_bytes()
        store.write_lockfile(targets, lambda t: "same")
        assert path.read_bytes() == first

    def test_skipped_targets_omitted(self, tmp_path: Path, capsys):
        path = tmp_path / "lockfile.json"
        path.write_text(json.dumps({"lua": {"revision": "keep?"}}))
        store = RevisionStore(path, tmp_path / "info")

        report = store.write_lockfile(
            [_target("lua"), _target("c")], lambda t: "new", skip=["lua"],
        )
        assert report.skipped == ["lua"]
        assert json.loads(path.read_text()) == {"c": {"revision": "new"}}
        assert "Skipping lua" in capsys.readouterr().out

    def test_verbose_echoes_revisions(self, tmp_path: Path, capsys):
        store = RevisionStore(tmp_path / "lockfile.json", tmp_path / "info")
        store.write_lockfile([_target("lua")], lambda t: "abc", verbose=True)
        assert "lua: abc" in capsys.readouterr().out

    def test_query_failure_writes_nothing(self, tmp_path: Path):
        path = tmp_path / "lockfile.json"
        path.write_text(json.dumps({"lua": {"revision": "old"}}))
        store = RevisionStore(path, tmp_path / "info")

        def _query(target):
            if target.name == "lua":
                raise RuntimeError("network down")
            return "ok"

        with pytest.raises(RevisionStoreError, match="network down"):
            store.write_lockfile([_target("c"), _target("lua")], _query)
        assert json.loads(path.read_text()) == {"lua": {"revision": "old"}}

    def test_no_temp_files_left(self, tmp_path: Path):
        store = RevisionStore(tmp_path / "lockfile.json", tmp_path / "info")
        store.write_lockfile([_target("lua")], lambda t: "abc")
        assert [p.name for p in tmp_path.iterdir()] == ["lockfile.json"]
