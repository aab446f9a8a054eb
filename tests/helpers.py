"""
Test helpers — a sample parsers.yml, steps that run this interpreter,
fake executable lookups and a stand-in install pipeline.
"""

import sys
import textwrap

from parserctl.core.models.pipeline import LocalStep, Pipeline, ProcessStep

ORCHESTRATOR = "parserctl.core.services.parser_install.orchestration.orchestrator"

DEFAULT_PARSERS_YML = textwrap.dedent("""\
    compilers: [cc]
    parsers:
      lua:
        url: https://example.com/tree-sitter-lua
        files: [src/parser.c, src/scanner.c]
        maintainers: ["@lua-dev"]
      python:
        url: https://example.com/tree-sitter-python
        files: [src/parser.c, src/scanner.cc]
        branch: master
        maintainers: ["@py-dev"]
      php:
        url: https://example.com/tree-sitter-php
        files: [src/parser.c]
        location: tree-sitter-php/php
""")

TOUCH = "import pathlib, sys; pathlib.Path(sys.argv[1]).touch()"
FAIL = "import sys; sys.stderr.write('syntax error'); sys.exit(1)"


def py_step(code: str, *args: str, **kwargs) -> ProcessStep:
    """A process step running ``code`` in this interpreter."""
    return ProcessStep(program=sys.executable, args=("-c", code, *args), **kwargs)


def which_all(name: str) -> str:
    """Executable lookup where every tool exists."""
    return f"/usr/bin/{name}"


def which_only(*present: str):
    """Executable lookup where only ``present`` exist."""

    def _which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in present else None

    return _which


def fake_installed(ws, name: str, revision: str | None = None) -> None:
    """Drop an artifact (and optionally a revision marker) for ``name``."""
    ws.install_dir.mkdir(parents=True, exist_ok=True)
    (ws.install_dir / f"{name}.so").write_bytes(b"\x7fELF")
    if revision is not None:
        ws.store.persist_installed_revision(name, revision)


def fake_install_pipeline(ws, target, **kwargs) -> Pipeline:
    """Install pipeline with the real shape minus git and the compiler.

    "Compiling" touches the artifact; the bookkeeping step records the
    pinned revision (or a placeholder when unpinned).
    """
    name = target.name
    revision = ws.store.desired_revision(name)

    def persist_installed_revision():
        ws.store.persist_installed_revision(name, revision or "unpinned-head")

    return Pipeline(
        target=name,
        steps=(
            py_step(TOUCH, str(ws.install_dir / f"{name}.so"), info="Compiling..."),
            LocalStep(action=persist_installed_revision),
        ),
        success_message=f"Parser for {name} has been installed",
    )


def failing_install_pipeline(*failing: str):
    """Like ``fake_install_pipeline``, but ``failing`` targets fail to compile."""

    def _build(ws, target, **kwargs) -> Pipeline:
        if target.name in failing:
            return Pipeline(
                target=target.name,
                steps=(py_step(FAIL, err="Error during compilation"),),
                success_message="",
            )
        return fake_install_pipeline(ws, target, **kwargs)

    return _build
