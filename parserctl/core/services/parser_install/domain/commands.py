"""
L1 Domain — Command descriptors.

Turns "remove this directory", "fetch this repo", "compile these
files" into ``ProcessStep`` descriptors.  The pipeline builder only
ever consumes these; no shell strings are assembled anywhere.
"""

from __future__ import annotations

from pathlib import Path, PurePath

from parserctl.core.models.pipeline import ProcessStep
from parserctl.core.models.target import Target

COMPILED_NAME = "parser.so"

_CXX_SUFFIXES = (".cc", ".cpp", ".cxx")


def select_install_rm_cmd(cache_dir: Path, project_name: str) -> ProcessStep:
    """Remove any copy of the checkout left in the cache."""
    return ProcessStep(
        program="rm",
        args=("-rf", project_name),
        cwd=str(cache_dir),
        err=f"Error while removing cached copy of {project_name}",
    )


def select_download_commands(
    target: Target,
    project_name: str,
    cache_dir: Path,
    revision: str | None,
) -> list[ProcessStep]:
    """Clone the target's repository into the cache.

    A pinned revision needs full history to check out; an unpinned
    fetch only needs the tip of the branch.
    """
    if revision:
        return [
            ProcessStep(
                program="git",
                args=("clone", "--quiet", target.url, project_name),
                cwd=str(cache_dir),
                info=f"Downloading {project_name}...",
                err="Error during download, please verify your internet connection",
            ),
            ProcessStep(
                program="git",
                args=("checkout", "--quiet", revision),
                cwd=str(cache_dir / project_name),
                info=f"Checking out locked revision {revision}",
                err=f"Error while checking out revision {revision}",
            ),
        ]

    args: list[str] = ["clone", "--quiet", "--depth", "1"]
    if target.branch:
        args += ["--branch", target.branch]
    args += [target.url, project_name]
    return [
        ProcessStep(
            program="git",
            args=tuple(args),
            cwd=str(cache_dir),
            info=f"Downloading {project_name}...",
            err="Error during download, please verify your internet connection",
        ),
    ]


def select_compiler_args(target: Target, cc: str) -> tuple[str, ...]:
    """Flags building a shared library from the target's sources."""
    if PurePath(cc).stem.lower() == "cl":
        return ("/Fe:", COMPILED_NAME, "/Isrc/", *target.files, "-Os", "/LD")

    args: list[str] = ["-o", COMPILED_NAME, "-I./src", *target.files, "-shared", "-Os", "-fPIC"]
    if any(f.endswith(_CXX_SUFFIXES) for f in target.files):
        args.append("-lstdc++")
    return tuple(args)


def select_mv_cmd(source: str, destination: Path, cwd: Path) -> ProcessStep:
    return ProcessStep(
        program="mv",
        args=(source, str(destination)),
        cwd=str(cwd),
        err=f"Error while moving {source} to {destination}",
    )


def select_rm_file_cmd(path: Path, info: str | None = None) -> ProcessStep:
    return ProcessStep(
        program="rm",
        args=(str(path),),
        info=info,
        err=f"Could not remove {path}",
    )
