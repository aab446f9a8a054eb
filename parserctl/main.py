"""
parserctl — CLI entrypoint.

Usage:
    python -m parserctl.main --help
    parserctl status
    parserctl install lua python
    parserctl update
    parserctl lockfile write
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from parserctl import __version__
from parserctl.core.observability.logging_config import LogSettings, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="parserctl")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to parsers.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """parserctl — install, update and pin compiled parsers."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(LogSettings.resolve(verbose=verbose, quiet=quiet, debug=debug))


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show every parser: installed, pinned and current revisions."""
    from parserctl.core.services.parser_install.detection.target_state import target_status
    from parserctl.ui.cli.parsers import load_workspace_or_exit, run_or_exit

    ws = load_workspace_or_exit(ctx)
    rows = run_or_exit(target_status, ws)

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    click.secho(f"\n📦 Parsers — {ws.root}", fg="cyan", bold=True)
    click.echo(f"   Update strategy: {ws.config.update_strategy}")
    click.echo()

    if not rows:
        click.secho("   No parsers defined", fg="yellow")
        click.echo()
        return

    for row in rows:
        current = row["installed_revision"] or "?"
        desired = row["desired_revision"] or "unpinned"
        if not row["installed"]:
            click.secho(f"   ✗ {row['name']}", fg="white", nl=False)
            click.echo(f"  (not installed, lock: {desired})")
        elif row["up_to_date"]:
            click.secho(f"   ✓ {row['name']}", fg="green", nl=False)
            click.echo(f"  {current}")
        else:
            click.secho(f"   ⬆ {row['name']}", fg="yellow", nl=False)
            click.echo(f"  {current} → {desired}")
        if not row["known"]:
            click.secho("     not defined in parsers.yml", fg="yellow")

    click.echo()


# ── Register parser lifecycle commands from parserctl/ui/cli/ ──────

from parserctl.ui.cli.parsers import ensure, install, lockfile, uninstall, update  # noqa: E402

cli.add_command(install)
cli.add_command(update)
cli.add_command(uninstall)
cli.add_command(ensure)
cli.add_command(lockfile)


def main() -> None:
    cli()


if __name__ == "__main__":
    sys.exit(main())
