"""
L5 Orchestration — Install / update / uninstall front end.

These functions tie everything together: expand the requested
targets, build one pipeline per target, run them through the async
executor (concurrently, one Batch for the whole call) or the sync
executor (one after another), and collect a BatchReport.

A failure in one target's pipeline never stops the others.  Missing
preconditions and unknown targets are reported once and never reach
an executor.  Lockfile and marker errors (``RevisionStoreError``)
propagate: they are fatal to the whole call.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

import click

from parserctl.core.config.loader import Workspace
from parserctl.core.models.pipeline import (
    BatchReport,
    FailureKind,
    Pipeline,
    PipelineResult,
)
from parserctl.core.persistence.revision_store import LockfileReport
from parserctl.core.services.parser_install.detection.target_state import (
    installed_targets,
    is_installed,
    needs_update,
    outdated_targets,
)
from parserctl.core.services.parser_install.detection.vcs import query_remote_revision
from parserctl.core.services.parser_install.domain.pipeline_builder import (
    PreconditionError,
    build_install_pipeline,
    build_uninstall_pipeline,
)
from parserctl.core.services.parser_install.execution.async_executor import run_pipelines
from parserctl.core.services.parser_install.execution.progress import Batch
from parserctl.core.services.parser_install.execution.sync_executor import run_pipeline_sync

logger = logging.getLogger(__name__)

GROUP_ALL = "all"
GROUP_MAINTAINED = "maintained"


@dataclass(frozen=True)
class InstallOptions:
    """How an install call runs."""

    with_sync: bool = False
    generate_from_grammar: bool = False
    exclude_configured: bool = False


def expand_targets(ws: Workspace, names: str | Iterable[str]) -> list[str]:
    """Expand ``all`` / ``maintained`` into registry names; dedupe the rest."""
    if isinstance(names, str):
        names = [names]
    names = list(names)
    if names == [GROUP_ALL]:
        return ws.config.available_targets()
    if names == [GROUP_MAINTAINED]:
        return ws.config.maintained_targets()
    return list(dict.fromkeys(names))


def prepare_directories(ws: Workspace) -> None:
    """Create the cache, install and info directories once per call."""
    for directory in (ws.cache_dir, ws.install_dir, ws.info_dir):
        directory.mkdir(parents=True, exist_ok=True)


def _execute(
    pipelines: Sequence[Pipeline],
    batch: Batch,
    *,
    with_sync: bool,
) -> list[PipelineResult]:
    if not pipelines:
        return []

    if not with_sync:
        return asyncio.run(run_pipelines(pipelines, batch))

    results: list[PipelineResult] = []
    for pipeline in pipelines:
        result = run_pipeline_sync(pipeline)
        if result.ok:
            click.echo(result.message)
        results.append(result)
    return results


def _report_unavailable(name: str, kind: FailureKind, message: str) -> PipelineResult:
    click.secho(message, fg="red", err=True)
    logger.info("Not installing %s: %s", name, message)
    return PipelineResult.failure(name, kind, message)


def install(
    ws: Workspace,
    names: str | Iterable[str],
    *,
    force: bool = False,
    options: InstallOptions | None = None,
    batch: Batch | None = None,
) -> BatchReport:
    """Install each named target (``all`` / ``maintained`` expand).

    Already-installed targets are skipped unless ``force`` is set; the
    skip count is reported once at the end.
    """
    options = options or InstallOptions()
    batch = batch if batch is not None else Batch()
    report = BatchReport(operation="install")

    targets = expand_targets(ws, names)
    if options.exclude_configured:
        ignored = set(ws.config.ignore_install)
        targets = [name for name in targets if name not in ignored]

    prepare_directories(ws)

    if len(targets) > 1:
        batch.reset()

    pipelines: list[Pipeline] = []
    for name in targets:
        if not force and is_installed(ws, name):
            report.skipped.append(name)
            continue

        target = ws.get_target(name)
        if target is None:
            report.results.append(_report_unavailable(
                name, "unknown-target", f"Parser not available for language {name}",
            ))
            continue

        try:
            pipelines.append(build_install_pipeline(
                ws, target, generate_from_grammar=options.generate_from_grammar,
            ))
        except PreconditionError as e:
            report.results.append(_report_unavailable(name, "missing-precondition", str(e)))

    report.results.extend(_execute(pipelines, batch, with_sync=options.with_sync))

    if report.skipped:
        click.echo("Parsers already installed. Use --force to reinstall.")
    logger.info(
        "install: %d ok, %d failed, %d skipped",
        report.succeeded, report.failed, len(report.skipped),
    )
    return report


def ensure_installed(ws: Workspace, *, options: InstallOptions | None = None) -> BatchReport:
    """Install the config's ``ensure_installed`` list, never forcing."""
    options = replace(options or InstallOptions(), exclude_configured=True)
    return install(ws, ws.config.ensure_installed, force=False, options=options)


def update(
    ws: Workspace,
    names: Iterable[str] | None = None,
    *,
    options: InstallOptions | None = None,
    batch: Batch | None = None,
) -> BatchReport:
    """Reinstall what is out of date.

    With explicit names, installs those that are missing or outdated.
    Without (or with ``all``), the candidates follow the update
    strategy: outdated installed targets for ``lockfile``, every
    installed target for ``latest``.  Ignored targets are excluded.
    """
    options = options or InstallOptions()
    batch = batch if batch is not None else Batch()
    ws.store.clear()
    batch.reset()

    requested = list(names or [])
    if requested and requested != [GROUP_ALL]:
        todo = [
            name for name in expand_targets(ws, requested)
            if not is_installed(ws, name) or needs_update(ws, name)
        ]
        if not todo:
            click.echo("Parsers are up-to-date!")
            return BatchReport(operation="update")
        options = replace(options, exclude_configured=False)
    else:
        installed = [name for name in installed_targets(ws) if ws.get_target(name)]
        if ws.config.update_strategy == "lockfile":
            todo = outdated_targets(ws, installed)
        else:
            todo = installed
        ignored = set(ws.config.ignore_install)
        todo = [name for name in todo if name not in ignored]
        if not todo:
            click.echo("All parsers are up-to-date!")
            return BatchReport(operation="update")
        options = replace(options, exclude_configured=True)

    report = install(ws, todo, force=True, options=options, batch=batch)
    report.operation = "update"
    return report


def uninstall(
    ws: Workspace,
    target_or_group: str | Iterable[str],
    *,
    with_sync: bool = False,
    batch: Batch | None = None,
) -> BatchReport:
    """Remove compiled parsers.

    ``all`` expands to every installed parser, ``maintained`` to the
    installed parsers that have maintainers.  Each target gets a
    single-step removal pipeline; its revision marker is dropped once
    the artifact is gone.
    """
    batch = batch if batch is not None else Batch()
    report = BatchReport(operation="uninstall")

    names = [target_or_group] if isinstance(target_or_group, str) else list(target_or_group)
    if names == [GROUP_ALL]:
        names = installed_targets(ws)
    elif names == [GROUP_MAINTAINED]:
        maintained = set(ws.config.maintained_targets())
        names = [name for name in installed_targets(ws) if name in maintained]

    batch.reset()
    pipelines = [build_uninstall_pipeline(ws, name) for name in dict.fromkeys(names)]
    report.results.extend(_execute(pipelines, batch, with_sync=with_sync))

    for result in report.results:
        if result.ok:
            ws.store.forget_installed_revision(result.target)
    return report


def write_lockfile(
    ws: Workspace,
    *,
    verbose: bool = False,
    skip: Iterable[str] = (),
) -> LockfileReport:
    """Rebuild lockfile.json from every registry target's remote revision."""
    return ws.store.write_lockfile(
        ws.config.parsers.values(),
        query_remote_revision,
        verbose=verbose,
        skip=skip,
    )
