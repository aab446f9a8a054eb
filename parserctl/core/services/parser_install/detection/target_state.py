"""
L3 Detection — Target state.

Is a target installed?  Is its installed revision the one the
lockfile asks for?  All answers come from the filesystem and the
workspace's RevisionStore; nothing here spawns a process.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from parserctl.core.config.loader import Workspace

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".so"


def artifact_path(ws: Workspace, name: str) -> Path:
    """Where the compiled parser for ``name`` lives once installed."""
    return ws.install_dir / f"{name}{ARTIFACT_SUFFIX}"


def is_installed(ws: Workspace, name: str) -> bool:
    return artifact_path(ws, name).is_file()


def installed_targets(ws: Workspace) -> list[str]:
    """Names of every compiled parser present in the install dir."""
    install_dir = ws.install_dir
    if not install_dir.is_dir():
        return []
    return sorted(p.stem for p in install_dir.glob(f"*{ARTIFACT_SUFFIX}") if p.is_file())


def needs_update(ws: Workspace, name: str) -> bool:
    """True when unpinned, or when the pinned and installed revisions differ."""
    desired = ws.store.desired_revision(name)
    if desired is None:
        return True
    return desired != ws.store.installed_revision(name)


def outdated_targets(ws: Workspace, installed: Iterable[str] | None = None) -> list[str]:
    """Filter the installed targets down to those needing an update."""
    if installed is None:
        installed = installed_targets(ws)
    outdated = [name for name in installed if needs_update(ws, name)]
    logger.debug("Outdated targets: %s", outdated)
    return outdated


def target_status(ws: Workspace) -> list[dict]:
    """One row per registry target plus any unknown installed artifact."""
    installed = set(installed_targets(ws))
    names = sorted(set(ws.config.parsers) | installed)
    rows: list[dict] = []
    for name in names:
        desired = ws.store.desired_revision(name)
        current = ws.store.installed_revision(name)
        rows.append({
            "name": name,
            "known": name in ws.config.parsers,
            "installed": name in installed,
            "installed_revision": current,
            "desired_revision": desired,
            "up_to_date": name in installed and not needs_update(ws, name),
        })
    return rows
