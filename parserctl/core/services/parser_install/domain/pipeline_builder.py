"""
L1 Domain — Pipeline builder.

Assembles the ordered step list for installing or uninstalling one
target.  Precondition checks (git, tree-sitter, node, npm, a C
compiler) happen here, while the pipeline is being built: a missing
tool raises ``PreconditionError`` and nothing is spawned.

Install order::

    rm stale cache copy → git clone [→ git checkout] [→ npm install]
    [→ tree-sitter generate] → compile → mv artifact
    → persist installed revision → rm cache copy
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from parserctl.core.config.loader import Workspace
from parserctl.core.models.pipeline import LocalStep, Pipeline, ProcessStep, Step
from parserctl.core.models.target import Target
from parserctl.core.services.parser_install.detection.environment import (
    Which,
    compiler_candidates,
    select_executable,
)
from parserctl.core.services.parser_install.detection.target_state import artifact_path
from parserctl.core.services.parser_install.detection.vcs import read_checkout_revision
from parserctl.core.services.parser_install.domain.commands import (
    COMPILED_NAME,
    select_compiler_args,
    select_download_commands,
    select_install_rm_cmd,
    select_mv_cmd,
    select_rm_file_cmd,
)

logger = logging.getLogger(__name__)


class PreconditionError(Exception):
    """A tool the pipeline needs is not executable."""

    def __init__(self, message: str, tool: str):
        super().__init__(message)
        self.tool = tool


def _local_source(target: Target) -> Path | None:
    candidate = Path(target.url).expanduser()
    return candidate if candidate.is_dir() else None


def build_install_pipeline(
    ws: Workspace,
    target: Target,
    *,
    generate_from_grammar: bool = False,
    which: Which = shutil.which,
) -> Pipeline:
    """Build the install pipeline for ``target``.

    Args:
        ws: The loaded workspace (directories, strategy, store).
        target: The parser to install.
        generate_from_grammar: Regenerate sources with ``tree-sitter
            generate`` even when the target does not require it.
        which: Executable lookup (injected by tests).

    Raises:
        PreconditionError: A required tool is missing.
    """
    name = target.name
    project_name = target.project_name
    cache_dir = ws.cache_dir
    local_path = _local_source(target)

    if local_path is not None:
        checkout_root = local_path
        compile_location = local_path
    else:
        checkout_root = cache_dir / project_name
        compile_location = cache_dir / (target.location or project_name)
        if not which("git"):
            raise PreconditionError(
                "Git is required on your system to run this command", tool="git",
            )

    generate = target.requires_generate_from_grammar or generate_from_grammar

    tree_sitter = which("tree-sitter") if generate else None
    if generate and not tree_sitter:
        message = "tree-sitter CLI not found: `tree-sitter` is not executable!"
        if target.requires_generate_from_grammar:
            message += (
                f"\ntree-sitter CLI is needed because `{name}` is marked that it needs "
                "to be generated from the grammar definitions to be compatible."
            )
        raise PreconditionError(message, tool="tree-sitter")
    if generate and not which("node"):
        raise PreconditionError("Node JS not found: `node` is not executable!", tool="node")

    candidates = compiler_candidates(ws.config.compilers)
    cc = select_executable(candidates, which=which)
    if not cc:
        raise PreconditionError(
            'No C compiler found! "' + '", "'.join(candidates) + '" are not executable.',
            tool="cc",
        )

    revision = (
        ws.store.desired_revision(name)
        if ws.config.update_strategy == "lockfile"
        else None
    )

    steps: list[Step] = []
    if local_path is None:
        steps.append(select_install_rm_cmd(cache_dir, project_name))
        steps.extend(select_download_commands(target, project_name, cache_dir, revision))

    if generate:
        if target.generate_requires_npm:
            if not which("npm"):
                raise PreconditionError(
                    f"`{name}` requires NPM to be installed from grammar.js", tool="npm",
                )
            steps.append(ProcessStep(
                program="npm",
                args=("install",),
                cwd=str(compile_location),
                info=f"Installing NPM dependencies of {name} parser",
                err=(
                    "Error during `npm install` (required for parser generation "
                    f"of {name} with npm dependencies)"
                ),
            ))
        steps.append(ProcessStep(
            program=tree_sitter,
            args=("generate",),
            cwd=str(compile_location),
            info="Generating source files from grammar.js...",
            err='Error during "tree-sitter generate"',
        ))

    steps.append(ProcessStep(
        program=cc,
        args=select_compiler_args(target, cc),
        cwd=str(compile_location),
        info="Compiling...",
        err="Error during compilation",
    ))
    steps.append(select_mv_cmd(COMPILED_NAME, artifact_path(ws, name), compile_location))

    store = ws.store

    def persist_installed_revision() -> None:
        recorded = revision or read_checkout_revision(checkout_root)
        store.persist_installed_revision(name, recorded)

    steps.append(LocalStep(
        action=persist_installed_revision,
        err=f"Could not record the installed revision of {name}",
    ))

    if local_path is None:
        steps.append(select_install_rm_cmd(cache_dir, project_name))

    logger.debug(
        "Install pipeline for %s: %d steps (revision=%s, generate=%s, local=%s)",
        name, len(steps), revision, generate, local_path is not None,
    )
    return Pipeline(
        target=name,
        steps=tuple(steps),
        success_message=f"Parser for {name} has been installed",
    )


def build_uninstall_pipeline(ws: Workspace, name: str) -> Pipeline:
    """A single step removing the compiled artifact."""
    return Pipeline(
        target=name,
        steps=(select_rm_file_cmd(artifact_path(ws, name), f"Uninstalling parser for {name}"),),
        success_message=f"Parser for {name} has been uninstalled",
    )
