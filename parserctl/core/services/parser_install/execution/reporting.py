"""
L4 Execution — User-facing pipeline output.

Both executors print progress and diagnostics through these helpers
so the two modes read the same on the terminal.
"""

from __future__ import annotations

import logging

import click

from parserctl.core.models.pipeline import Step

logger = logging.getLogger(__name__)


def echo_progress(line: str) -> None:
    click.echo(line)


def failure_message(target: str, step: Step, detail: str = "") -> str:
    """``parserctl[<target>]: <declared error or generic>`` plus detail."""
    headline = step.err or f"Failed to execute the following command:\n{step.describe()}"
    message = f"parserctl[{target}]: {headline}"
    if detail:
        message += f"\n{detail}"
    return message


def echo_failure(target: str, step: Step, *, stdout: str = "", detail: str = "") -> str:
    """Print captured stdout (if any) then the diagnostic on stderr."""
    if stdout.strip():
        click.echo(stdout)
    message = failure_message(target, step, detail)
    click.secho(message, fg="red", err=True)
    logger.info("Pipeline for %s failed at %s", target, step.describe())
    return message
