"""
L3 Detection — Toolchain probing.

Answers "is this program executable here?" for the precondition
checks the pipeline builder performs.  Read-only: never installs
anything.
"""

from __future__ import annotations

import logging
import os
import shutil
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

Which = Callable[[str], "str | None"]


def select_executable(
    candidates: Iterable[str | None],
    *,
    which: Which = shutil.which,
) -> str | None:
    """Return the first candidate that resolves to an executable.

    Empty and ``None`` candidates (an unset ``$CC``) are skipped.
    The candidate is returned as written, not as its resolved path.
    """
    for candidate in candidates:
        if not candidate:
            continue
        if which(candidate):
            logger.debug("Selected executable %s", candidate)
            return candidate
    return None


def compiler_candidates(configured: Iterable[str]) -> list[str]:
    """``$CC`` first, then the configured compiler names."""
    candidates: list[str] = []
    env_cc = os.environ.get("CC")
    if env_cc:
        candidates.append(env_cc)
    for name in configured:
        if name and name not in candidates:
            candidates.append(name)
    return candidates
