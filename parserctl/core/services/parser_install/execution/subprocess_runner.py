"""
L4 Execution — Blocking subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called.  The sync
pipeline executor and the remote revision query both go through
here, so logging, timeouts and error shapes stay in one spot.
"""

from __future__ import annotations

import logging
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)


def _run_subprocess(
    cmd: list[str],
    *,
    timeout: float | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run a command to completion and capture its output.

    Args:
        cmd: Command list for ``subprocess.run()``.
        timeout: Seconds before the process is killed (None = wait forever).
        cwd: Working directory for the command (None = current).

    Returns:
        ``{"ok": True, "stdout": "...", "stderr": "...", "returncode": 0,
        "elapsed_ms": N}`` on success, ``{"ok": False, "error": "...", ...}``
        on failure.  Timeouts additionally carry ``"timed_out": True``.
    """
    logger.debug("Running %s (cwd=%s)", cmd, cwd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired as e:
        return {
            "ok": False,
            "timed_out": True,
            "error": f"Command timed out ({timeout}s)",
            "stdout": _as_text(e.stdout),
            "stderr": _as_text(e.stderr),
        }
    except (OSError, ValueError) as e:
        logger.debug("Cannot spawn %s: %s", cmd, e)
        return {"ok": False, "error": f"Cannot execute {cmd[0]}: {e}", "stdout": "", "stderr": str(e)}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    if result.returncode == 0:
        return {
            "ok": True,
            "stdout": result.stdout or "",
            "stderr": result.stderr or "",
            "returncode": 0,
            "elapsed_ms": elapsed_ms,
        }

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "returncode": result.returncode,
        "stdout": result.stdout or "",
        "stderr": result.stderr or "",
        "elapsed_ms": elapsed_ms,
    }


def _as_text(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
