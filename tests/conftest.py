"""
Shared test fixtures and configuration.
"""

import json
from pathlib import Path

import pytest

from parserctl.core.config.loader import Workspace, load_workspace
from tests.helpers import DEFAULT_PARSERS_YML


@pytest.fixture
def workspace_factory(tmp_path: Path):
    """Write parsers.yml (+ optional lockfile) and load the workspace."""

    def _make(
        parsers_yml: str = DEFAULT_PARSERS_YML,
        lockfile: dict | None = None,
    ) -> Workspace:
        config = tmp_path / "parsers.yml"
        config.write_text(parsers_yml)
        if lockfile is not None:
            (tmp_path / "lockfile.json").write_text(json.dumps(lockfile))
        return load_workspace(config)

    return _make


@pytest.fixture
def workspace(workspace_factory) -> Workspace:
    """The default three-parser workspace, nothing pinned or installed."""
    return workspace_factory()


@pytest.fixture
def no_cc_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's $CC out of compiler selection."""
    monkeypatch.delenv("CC", raising=False)
