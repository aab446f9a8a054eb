"""
Revision store — the desired-revision lockfile and installed-revision markers.

The lockfile (``lockfile.json``) maps target name → desired revision.
Each installed target also has a one-line marker file
(``<info_dir>/<name>.revision``) recording the revision it was built
from.  This module is pure data access: it never spawns a process
itself (the remote query used to rebuild the lockfile is injected).

Lockfile writes are atomic (write to temp file, then rename) so a
crash mid-write never leaves a truncated document behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

import click
from pydantic import ValidationError

from parserctl.core.models.lockfile import LockEntry, Lockfile
from parserctl.core.models.target import Target

logger = logging.getLogger(__name__)

REVISION_SUFFIX = ".revision"


class RevisionStoreError(Exception):
    """Raised when the lockfile or a marker cannot be read or written."""


@dataclass
class LockfileReport:
    """Outcome of ``RevisionStore.write_lockfile``."""

    path: Path
    revisions: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "revisions": dict(self.revisions),
            "skipped": list(self.skipped),
        }


class RevisionStore:
    """Lockfile + marker access for one command invocation.

    The lockfile is loaded on first access and cached until
    ``clear()`` is called.
    """

    def __init__(self, lockfile_path: Path, info_dir: Path):
        self.lockfile_path = lockfile_path
        self.info_dir = info_dir
        self._lockfile: Lockfile | None = None

    # ── Lockfile ────────────────────────────────────────────────

    def _load(self) -> Lockfile:
        if self._lockfile is not None:
            return self._lockfile

        path = self.lockfile_path
        if not path.is_file():
            logger.debug("No lockfile at %s — nothing is pinned", path)
            self._lockfile = Lockfile()
            return self._lockfile

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            self._lockfile = Lockfile.model_validate(data)
        except OSError as e:
            raise RevisionStoreError(f"Cannot read lockfile {path}: {e}") from e
        except (json.JSONDecodeError, ValidationError) as e:
            raise RevisionStoreError(f"Malformed lockfile {path}: {e}") from e

        logger.debug("Loaded lockfile %s (%d entries)", path, len(self._lockfile.root))
        return self._lockfile

    def clear(self) -> None:
        """Forget the cached lockfile; the next access reloads it."""
        self._lockfile = None

    def desired_revision(self, name: str) -> str | None:
        """Revision pinned in the lockfile, or None when unpinned."""
        return self._load().revision(name)

    # ── Markers ─────────────────────────────────────────────────

    def marker_path(self, name: str) -> Path:
        return self.info_dir / f"{name}{REVISION_SUFFIX}"

    def installed_revision(self, name: str) -> str | None:
        """First line of the target's marker, or None if unreadable."""
        path = self.marker_path(name)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError:
            return None
        lines = text.splitlines()
        return lines[0] if lines else ""

    def persist_installed_revision(self, name: str, revision: str | None) -> None:
        """Overwrite the marker with a single line (empty = unknown)."""
        path = self.marker_path(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text((revision or "") + "\n", encoding="utf-8")
        except OSError as e:
            raise RevisionStoreError(f"Cannot write revision marker {path}: {e}") from e
        logger.debug("Recorded %s revision %r", name, revision or "")

    def forget_installed_revision(self, name: str) -> None:
        """Remove the marker once the parser artifact is gone."""
        try:
            self.marker_path(name).unlink(missing_ok=True)
        except OSError as e:
            raise RevisionStoreError(f"Cannot remove revision marker for {name}: {e}") from e

    # ── Lockfile rebuild ────────────────────────────────────────

    def write_lockfile(
        self,
        targets: Iterable[Target],
        query_revision: Callable[[Target], str],
        *,
        verbose: bool = False,
        skip: Iterable[str] = (),
    ) -> LockfileReport:
        """Rebuild the lockfile from the supplied targets.

        Every target not in ``skip`` is queried for its current remote
        revision.  The result replaces the whole document — skipped
        targets are omitted, not carried over.

        Raises:
            RevisionStoreError: A remote query or the write failed.
                Nothing is written in that case.
        """
        skip_set = set(skip)
        report = LockfileReport(path=self.lockfile_path)
        entries: dict[str, LockEntry] = {}

        for target in sorted(targets, key=lambda t: t.name):
            if target.name in skip_set:
                report.skipped.append(target.name)
                click.echo(f"Skipping {target.name}")
                continue

            try:
                revision = query_revision(target)
            except Exception as e:
                raise RevisionStoreError(
                    f"Cannot determine remote revision of {target.name}: {e}"
                ) from e

            entries[target.name] = LockEntry(revision=revision)
            report.revisions[target.name] = revision
            if verbose:
                click.echo(f"{target.name}: {revision}")

        lockfile = Lockfile(entries)
        self._atomic_write(lockfile.to_json())
        self._lockfile = lockfile
        logger.info(
            "Wrote lockfile %s (%d pinned, %d skipped)",
            self.lockfile_path, len(report.revisions), len(report.skipped),
        )
        return report

    def _atomic_write(self, content: str) -> None:
        path = self.lockfile_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=path.parent,
                prefix=".lockfile_",
                suffix=".tmp",
            )
            os.close(fd)
            tmp = Path(tmp_path)
            try:
                tmp.write_text(content, encoding="utf-8")
                tmp.replace(path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to write lockfile %s: %s", path, e)
            raise RevisionStoreError(f"Cannot write lockfile {path}: {e}") from e
