"""
L4 Execution — Batch progress and per-process output.

A ``Batch`` holds the started / finished / failed counters shared by
every pipeline of one orchestration call.  The front end creates one
Batch per call and hands it to each pipeline, so two calls never
share counters.

Output buffers are not global: each spawned process gets a
``ProcessRecord`` owning its own stdout / stderr buffers, read once
when the process exits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from parserctl.core.models.pipeline import ProcessStep

logger = logging.getLogger(__name__)

STATUS_PREFIX = "[parserctl]"

Stream = Literal["stdout", "stderr"]


@dataclass
class Batch:
    """Progress counters for a set of pipelines run together."""

    started: int = 0
    finished: int = 0
    failed: int = 0

    @property
    def in_flight(self) -> int:
        return self.started - self.finished

    def mark_started(self) -> None:
        self.started += 1

    def mark_finished(self) -> None:
        self.finished += 1

    def mark_failed(self) -> None:
        """Count a failure; a failed pipeline is also a finished one."""
        self.failed += 1
        self.mark_finished()

    def status_line(self) -> str:
        """``[parserctl] [finished/started]`` plus the failure count, if any."""
        failed = f", failed: {self.failed}" if self.failed > 0 else ""
        return f"{STATUS_PREFIX} [{self.finished}/{self.started}{failed}]"

    def reset(self) -> bool:
        """Zero the counters unless a pipeline is still in flight.

        Returns:
            True if the counters were reset.
        """
        if self.started != self.finished:
            logger.debug("Batch reset ignored: %d pipeline(s) in flight", self.in_flight)
            return False
        self.started = 0
        self.finished = 0
        self.failed = 0
        return True


@dataclass
class OutputBuffer:
    """Raw bytes of one output stream, decoded once when read."""

    chunks: list[bytes] = field(default_factory=list)

    def append(self, chunk: bytes) -> None:
        self.chunks.append(chunk)

    def text(self) -> str:
        return b"".join(self.chunks).decode("utf-8", errors="replace")

    def __bool__(self) -> bool:
        return any(self.chunks)


@dataclass
class ProcessRecord:
    """One spawned process: its step, its output, its exit code."""

    step: ProcessStep
    stdout: OutputBuffer = field(default_factory=OutputBuffer)
    stderr: OutputBuffer = field(default_factory=OutputBuffer)
    returncode: int | None = None

    def capture(self, stream: Stream, chunk: bytes | str) -> None:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        buffer = self.stdout if stream == "stdout" else self.stderr
        buffer.append(chunk)
