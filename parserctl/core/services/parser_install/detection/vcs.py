"""
L3 Detection — Revision lookups.

``query_remote_revision`` asks the remote for its current commit
(used to rebuild the lockfile).  ``read_checkout_revision`` reads the
commit a local checkout sits on straight from ``.git`` so the install
pipeline can record it without spawning another process.
"""

from __future__ import annotations

import logging
from pathlib import Path

from parserctl.core.models.target import Target
from parserctl.core.services.parser_install.execution.subprocess_runner import (
    _run_subprocess,
)

logger = logging.getLogger(__name__)


def query_remote_revision(target: Target, *, timeout: int = 60) -> str:
    """Return the commit the remote's branch (or HEAD) points at.

    Raises:
        RuntimeError: ``git ls-remote`` failed or returned nothing.
    """
    ref = target.branch or "HEAD"
    result = _run_subprocess(["git", "ls-remote", target.url, ref], timeout=timeout)
    if not result["ok"]:
        detail = result.get("stderr") or result["error"]
        raise RuntimeError(f"git ls-remote {target.url} failed: {detail}")

    for line in result["stdout"].splitlines():
        sha = line.split("\t", 1)[0].strip()
        if sha:
            return sha
    raise RuntimeError(f"git ls-remote {target.url} returned no revision for {ref}")


def read_checkout_revision(path: Path) -> str:
    """Commit hash checked out at ``path``, or ``""`` if unknown.

    ``path`` must be the checkout root.  Follows ``HEAD`` through
    loose refs and ``packed-refs``.
    """
    git_dir = path / ".git"
    if not git_dir.is_dir():
        return ""

    try:
        head = (git_dir / "HEAD").read_text(encoding="utf-8").strip()
    except OSError:
        return ""

    if not head.startswith("ref:"):
        return head

    ref = head[len("ref:"):].strip()
    try:
        return (git_dir / ref).read_text(encoding="utf-8").strip()
    except OSError:
        pass

    try:
        packed = (git_dir / "packed-refs").read_text(encoding="utf-8")
    except OSError:
        return ""
    for line in packed.splitlines():
        if line.startswith(("#", "^")):
            continue
        parts = line.split(" ", 1)
        if len(parts) == 2 and parts[1].strip() == ref:
            return parts[0]
    return ""

