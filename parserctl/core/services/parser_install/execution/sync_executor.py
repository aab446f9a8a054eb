"""
L4 Execution — Blocking pipeline executor.

Same step contract as the async executor, but every process step
blocks until the program exits.  No Batch counters are touched: the
caller reports success or failure per target.
"""

from __future__ import annotations

import logging

from parserctl.core.models.pipeline import LocalStep, Pipeline, PipelineResult
from parserctl.core.persistence.revision_store import RevisionStoreError
from parserctl.core.services.parser_install.execution.reporting import (
    echo_failure,
    echo_progress,
)
from parserctl.core.services.parser_install.execution.subprocess_runner import (
    _run_subprocess,
)

logger = logging.getLogger(__name__)


def run_pipeline_sync(pipeline: Pipeline) -> PipelineResult:
    """Run ``pipeline`` to completion or to its first failing step."""
    for index, step in enumerate(pipeline.steps):
        if step.info:
            echo_progress(step.info)

        if isinstance(step, LocalStep):
            try:
                step.action()
            except Exception as e:
                logger.debug("Local action %s raised", step.describe(), exc_info=True)
                kind = "io-failure" if isinstance(e, RevisionStoreError) else "local-action-failure"
                message = echo_failure(pipeline.target, step, detail=repr(e))
                return PipelineResult.failure(
                    pipeline.target, kind, message,
                    stderr=repr(e), steps_completed=index,
                )
            continue

        result = _run_subprocess(step.argv, cwd=step.cwd, timeout=step.timeout)
        if not result["ok"]:
            kind = "timed-out" if result.get("timed_out") else "process-failure"
            detail = result.get("stderr") or result["error"]
            message = echo_failure(
                pipeline.target, step, stdout=result.get("stdout", ""), detail=detail,
            )
            return PipelineResult.failure(
                pipeline.target, kind, message,
                stdout=result.get("stdout", ""),
                stderr=detail,
                steps_completed=index,
            )

    return PipelineResult.success(
        pipeline.target, pipeline.success_message, steps_completed=len(pipeline.steps),
    )
