"""
Pipeline models — the execution contract between builder and executors.

A Pipeline is an ordered tuple of Steps for one target.  Each Step is
either a ``LocalStep`` (an in-process bookkeeping action) or a
``ProcessStep`` (an external program).  Executors consume a Pipeline
exactly once and return a ``PipelineResult``.  They never raise for
step failures — failures are captured in the result.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Union

FailureKind = Literal[
    "missing-precondition",
    "process-failure",
    "local-action-failure",
    "io-failure",
    "timed-out",
    "unknown-target",
]


@dataclass(frozen=True)
class ProcessStep:
    """An external program invocation."""

    program: str
    args: tuple[str, ...] = ()
    cwd: str | None = None
    info: str | None = None
    err: str | None = None
    timeout: float | None = None

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def describe(self) -> str:
        """Human-readable command line, used in fallback diagnostics."""
        line = shlex.join(self.argv)
        if self.cwd:
            return f"{line}  (in {self.cwd})"
        return line


@dataclass(frozen=True)
class LocalStep:
    """An in-process action with no external process."""

    action: Callable[[], Any]
    info: str | None = None
    err: str | None = None

    def describe(self) -> str:
        return getattr(self.action, "__name__", repr(self.action))


Step = Union[ProcessStep, LocalStep]


@dataclass(frozen=True)
class Pipeline:
    """Ordered steps executing one operation for one target."""

    target: str
    steps: tuple[Step, ...]
    success_message: str

    def __len__(self) -> int:
        return len(self.steps)


@dataclass
class PipelineResult:
    """Terminal outcome of one pipeline (or of a pipeline that never ran)."""

    target: str
    ok: bool
    kind: FailureKind | None = None
    message: str = ""
    stdout: str = ""
    stderr: str = ""
    steps_completed: int = 0

    @classmethod
    def success(cls, target: str, message: str, steps_completed: int = 0) -> PipelineResult:
        return cls(target=target, ok=True, message=message, steps_completed=steps_completed)

    @classmethod
    def failure(
        cls,
        target: str,
        kind: FailureKind,
        message: str,
        **kwargs: Any,
    ) -> PipelineResult:
        return cls(target=target, ok=False, kind=kind, message=message, **kwargs)

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "ok": self.ok,
            "kind": self.kind,
            "message": self.message,
            "stderr": self.stderr,
            "steps_completed": self.steps_completed,
        }


@dataclass
class BatchReport:
    """Result of one orchestration call (install / update / uninstall)."""

    operation: str
    results: list[PipelineResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "status": self.status,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "results": [r.to_dict() for r in self.results],
        }
