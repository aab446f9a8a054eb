"""
L4 Execution — Non-blocking pipeline executor.

Runs a Pipeline on the asyncio event loop.  Each pipeline is an
explicit state machine (``PipelineState``): the loop runs the step at
``index``, awaits it, and only then advances.  The only suspension
points are spawned processes, so many pipelines can be in flight on
one loop while each one's steps stay strictly ordered.

A process step resumes on its exit callback, not on pipe EOF; pipes
get a short grace period afterwards and are then closed.

Counters live on the Batch passed in; output lives on each step's
ProcessRecord.  Step failures never raise — they come back as a
failed ``PipelineResult``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Sequence

from parserctl.core.models.pipeline import (
    FailureKind,
    LocalStep,
    Pipeline,
    PipelineResult,
    ProcessStep,
    Step,
)
from parserctl.core.persistence.revision_store import RevisionStoreError
from parserctl.core.services.parser_install.execution.progress import (
    Batch,
    ProcessRecord,
)
from parserctl.core.services.parser_install.execution.reporting import (
    echo_failure,
    echo_progress,
)

logger = logging.getLogger(__name__)

# How long output may keep arriving once the process has exited
_PIPE_GRACE = 0.5


@dataclass
class PipelineState:
    """Where one pipeline is in its step list."""

    pipeline: Pipeline
    batch: Batch
    index: int = 0

    @property
    def done(self) -> bool:
        return self.index >= len(self.pipeline.steps)

    @property
    def current(self) -> Step:
        return self.pipeline.steps[self.index]


@dataclass
class _StepFailure:
    kind: FailureKind
    step: Step
    stdout: str = ""
    detail: str = ""


async def run_pipeline(pipeline: Pipeline, batch: Batch) -> PipelineResult:
    """Run every step of ``pipeline`` in order, stopping at the first failure."""
    state = PipelineState(pipeline=pipeline, batch=batch)
    batch.mark_started()

    while not state.done:
        step = state.current
        if step.info:
            echo_progress(f"{batch.status_line()} {step.info}")

        if isinstance(step, LocalStep):
            failure = _run_local_step(step)
        else:
            failure = await _run_process_step(step)

        if failure is not None:
            batch.mark_failed()
            message = echo_failure(
                pipeline.target, failure.step,
                stdout=failure.stdout, detail=failure.detail,
            )
            return PipelineResult.failure(
                pipeline.target,
                failure.kind,
                message,
                stdout=failure.stdout,
                stderr=failure.detail,
                steps_completed=state.index,
            )
        state.index += 1

    batch.mark_finished()
    echo_progress(f"{batch.status_line()} {pipeline.success_message}")
    return PipelineResult.success(
        pipeline.target, pipeline.success_message, steps_completed=state.index,
    )


async def run_pipelines(pipelines: Sequence[Pipeline], batch: Batch) -> list[PipelineResult]:
    """Run several pipelines concurrently on the current loop.

    Results are returned in the order of ``pipelines``, whatever order
    they finish in.
    """
    results: list[PipelineResult | None] = [None] * len(pipelines)

    async def _run(index: int, pipeline: Pipeline) -> None:
        results[index] = await run_pipeline(pipeline, batch)

    async with asyncio.TaskGroup() as group:
        for index, pipeline in enumerate(pipelines):
            group.create_task(_run(index, pipeline))

    return [r for r in results if r is not None]


def _run_local_step(step: LocalStep) -> _StepFailure | None:
    try:
        step.action()
    except Exception as e:
        logger.debug("Local action %s raised", step.describe(), exc_info=True)
        kind: FailureKind = "io-failure" if isinstance(e, RevisionStoreError) else "local-action-failure"
        return _StepFailure(kind=kind, step=step, detail=repr(e))
    return None


class _StepProtocol(asyncio.SubprocessProtocol):
    """Feeds pipe output into a ProcessRecord and signals process exit.

    ``exited`` resolves from the exit callback, independently of the
    pipes: a background child that inherited stdout/stderr can keep
    them open long after the step's own process is gone.
    """

    def __init__(self, record: ProcessRecord):
        loop = asyncio.get_running_loop()
        self.record = record
        self.exited: asyncio.Future[None] = loop.create_future()
        self.closed: asyncio.Future[None] = loop.create_future()

    def pipe_data_received(self, fd: int, data: bytes) -> None:
        self.record.capture("stdout" if fd == 1 else "stderr", data)

    def process_exited(self) -> None:
        if not self.exited.done():
            self.exited.set_result(None)

    def connection_lost(self, exc: Exception | None) -> None:
        if not self.closed.done():
            self.closed.set_result(None)


async def _run_process_step(step: ProcessStep) -> _StepFailure | None:
    record = ProcessRecord(step=step)
    logger.debug("Spawning %s", step.describe())

    loop = asyncio.get_running_loop()
    try:
        transport, protocol = await loop.subprocess_exec(
            lambda: _StepProtocol(record),
            step.program,
            *step.args,
            cwd=step.cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (OSError, ValueError) as e:
        # ValueError: NUL byte in an argument taken from parsers.yml
        return _StepFailure(kind="process-failure", step=step, detail=str(e))

    try:
        timed_out = not await _wait_for_exit(transport, protocol, step.timeout)
        await _settle_pipes(protocol)
    finally:
        transport.close()

    if timed_out:
        detail = f"Timed out after {step.timeout}s\n{record.stderr.text()}".rstrip()
        return _StepFailure(
            kind="timed-out", step=step, stdout=record.stdout.text(), detail=detail,
        )

    record.returncode = transport.get_returncode()
    if record.returncode != 0:
        logger.debug("%s exited with %s", step.program, record.returncode)
        return _StepFailure(
            kind="process-failure",
            step=step,
            stdout=record.stdout.text(),
            detail=record.stderr.text(),
        )
    return None


async def _wait_for_exit(
    transport: asyncio.SubprocessTransport,
    protocol: _StepProtocol,
    timeout: float | None,
) -> bool:
    """Wait for the exit callback; kill the process if ``timeout`` runs out.

    Returns False when the process had to be killed.
    """
    try:
        await asyncio.wait_for(asyncio.shield(protocol.exited), timeout=timeout)
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            transport.kill()
        await protocol.exited
        return False
    return True


async def _settle_pipes(protocol: _StepProtocol) -> None:
    """Give output still in the pipes a moment to arrive after exit."""
    try:
        await asyncio.wait_for(asyncio.shield(protocol.closed), timeout=_PIPE_GRACE)
    except TimeoutError:
        logger.debug("Output pipes still held open after exit, closing them")
