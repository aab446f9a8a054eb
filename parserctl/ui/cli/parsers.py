"""
CLI commands for the parser lifecycle.

Thin wrappers over ``parserctl.core.services.parser_install``.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Callable

import click

from parserctl.core.config.loader import ConfigError, Workspace, load_workspace
from parserctl.core.models.pipeline import BatchReport
from parserctl.core.persistence.revision_store import RevisionStoreError


def load_workspace_or_exit(ctx: click.Context) -> Workspace:
    """Load parsers.yml from --config or by searching upward."""
    try:
        return load_workspace(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def run_or_exit(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call a service function; lockfile / filesystem errors end the command."""
    try:
        return func(*args, **kwargs)
    except (RevisionStoreError, OSError) as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _finish(report: BatchReport, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    elif report.results and not report.all_ok:
        click.secho(
            f"   {report.failed} of {len(report.results)} parser(s) failed",
            fg="red",
            err=True,
        )
    if not report.all_ok:
        sys.exit(1)


# ── Install ─────────────────────────────────────────────────────


@click.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--force", "-f", is_flag=True, help="Reinstall parsers that are already installed.")
@click.option("--sync", "with_sync", is_flag=True, help="Build one parser at a time, blocking.")
@click.option(
    "--from-grammar", "generate_from_grammar", is_flag=True,
    help="Regenerate parser sources from grammar.js before compiling.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    names: tuple[str, ...],
    force: bool,
    with_sync: bool,
    generate_from_grammar: bool,
    as_json: bool,
) -> None:
    """Install parsers by name, or `all` / `maintained`.

    Examples:

        parserctl install lua python

        parserctl install --force --sync all
    """
    from parserctl.core.services.parser_install import InstallOptions
    from parserctl.core.services.parser_install import install as install_parsers

    ws = load_workspace_or_exit(ctx)
    options = InstallOptions(with_sync=with_sync, generate_from_grammar=generate_from_grammar)
    report = run_or_exit(install_parsers, ws, list(names), force=force, options=options)
    _finish(report, as_json)


@click.command()
@click.option("--sync", "with_sync", is_flag=True, help="Build one parser at a time, blocking.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def ensure(ctx: click.Context, with_sync: bool, as_json: bool) -> None:
    """Install the parsers listed under `ensure_installed` in parsers.yml."""
    from parserctl.core.services.parser_install import InstallOptions, ensure_installed

    ws = load_workspace_or_exit(ctx)
    report = run_or_exit(ensure_installed, ws, options=InstallOptions(with_sync=with_sync))
    _finish(report, as_json)


# ── Update ──────────────────────────────────────────────────────


@click.command()
@click.argument("names", nargs=-1)
@click.option("--sync", "with_sync", is_flag=True, help="Build one parser at a time, blocking.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def update(ctx: click.Context, names: tuple[str, ...], with_sync: bool, as_json: bool) -> None:
    """Reinstall outdated parsers (all of them when no names are given)."""
    from parserctl.core.services.parser_install import InstallOptions
    from parserctl.core.services.parser_install import update as update_parsers

    ws = load_workspace_or_exit(ctx)
    report = run_or_exit(
        update_parsers, ws, list(names), options=InstallOptions(with_sync=with_sync),
    )
    _finish(report, as_json)


# ── Uninstall ───────────────────────────────────────────────────


@click.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--sync", "with_sync", is_flag=True, help="Remove one parser at a time, blocking.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def uninstall(ctx: click.Context, names: tuple[str, ...], with_sync: bool, as_json: bool) -> None:
    """Remove parsers by name, or `all` / `maintained` installed ones."""
    from parserctl.core.services.parser_install import uninstall as uninstall_parsers

    ws = load_workspace_or_exit(ctx)
    report = run_or_exit(uninstall_parsers, ws, list(names), with_sync=with_sync)
    _finish(report, as_json)


# ── Lockfile ────────────────────────────────────────────────────


@click.group()
def lockfile() -> None:
    """Lockfile — pin every parser to its current remote revision."""


@lockfile.command("write")
@click.option("--skip", "-s", "skip", multiple=True, help="Leave this parser out (repeatable).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def lockfile_write(ctx: click.Context, skip: tuple[str, ...], as_json: bool) -> None:
    """Query every parser's remote and rewrite lockfile.json."""
    from parserctl.core.services.parser_install import write_lockfile

    ws = load_workspace_or_exit(ctx)
    verbose = bool(ctx.obj.get("verbose")) and not as_json
    report = run_or_exit(write_lockfile, ws, verbose=verbose, skip=skip)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    click.secho(
        f"🔒 {report.path}: {len(report.revisions)} pinned, {len(report.skipped)} skipped",
        fg="green",
    )
