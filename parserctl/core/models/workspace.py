"""
Workspace model — the root configuration loaded from parsers.yml.

Paths are stored as written and resolved against the workspace root
(the directory holding parsers.yml) by the loader.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from parserctl.core.models.target import Target

DEFAULT_COMPILERS = ["cc", "gcc", "clang", "cl"]


class WorkspaceConfig(BaseModel):
    """Root workspace identity — loaded from parsers.yml."""

    version: int = 1

    install_dir: str = "parser"
    info_dir: str = "parser-info"
    cache_dir: str = ".cache"
    lockfile: str = "lockfile.json"

    update_strategy: Literal["lockfile", "latest"] = "lockfile"
    compilers: list[str] = Field(default_factory=lambda: list(DEFAULT_COMPILERS))
    ignore_install: list[str] = Field(default_factory=list)
    ensure_installed: list[str] | Literal["all", "maintained"] = Field(default_factory=list)

    parsers: dict[str, Target] = Field(default_factory=dict)

    def get_target(self, name: str) -> Target | None:
        """Look up a target by name."""
        return self.parsers.get(name)

    def available_targets(self) -> list[str]:
        return sorted(self.parsers)

    def maintained_targets(self) -> list[str]:
        return sorted(name for name, t in self.parsers.items() if t.maintained)
