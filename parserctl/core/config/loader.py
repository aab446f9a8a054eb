"""
Configuration loader — reads parsers.yml into a Workspace.

This is the primary entry point for loading workspace configuration.
It reads YAML, validates against Pydantic schemas, resolves the
install / info / cache directories against the workspace root, and
returns a Workspace bound to a fresh RevisionStore.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from parserctl.core.models.target import Target
from parserctl.core.models.workspace import WorkspaceConfig
from parserctl.core.persistence.revision_store import RevisionStore

logger = logging.getLogger(__name__)

# Default config filename
WORKSPACE_CONFIG_FILE = "parsers.yml"


class ConfigError(Exception):
    """Raised when workspace configuration is invalid or missing."""


@dataclass
class Workspace:
    """A loaded workspace: config, resolved directories, revision store.

    One Workspace lives for one command invocation.
    """

    root: Path
    config: WorkspaceConfig
    store: RevisionStore

    @property
    def install_dir(self) -> Path:
        return _resolve(self.root, self.config.install_dir)

    @property
    def info_dir(self) -> Path:
        return _resolve(self.root, self.config.info_dir)

    @property
    def cache_dir(self) -> Path:
        return _resolve(self.root, self.config.cache_dir)

    @property
    def lockfile_path(self) -> Path:
        return _resolve(self.root, self.config.lockfile)

    def get_target(self, name: str) -> Target | None:
        return self.config.get_target(name)


def _resolve(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def find_workspace_file(start_dir: Path | None = None) -> Path | None:
    """Search for parsers.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to parsers.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / WORKSPACE_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path) -> WorkspaceConfig:
    """Read and validate a parsers.yml file.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading workspace config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Parser entries are keyed by name; the model carries the name too
    parsers = data.get("parsers") or {}
    if not isinstance(parsers, dict):
        raise ConfigError(f"'parsers' must be a mapping in {path}")
    entries = {}
    for name, entry in parsers.items():
        if entry is None:
            entry = {}
        if not isinstance(entry, dict):
            raise ConfigError(f"Parser '{name}' must be a mapping in {path}")
        entries[name] = {**entry, "name": name}
    data["parsers"] = entries

    try:
        config = WorkspaceConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid workspace configuration: {e}") from e

    logger.info("Loaded %d parser definitions from %s", len(config.parsers), path)
    return config


def load_workspace(path: Path | None = None) -> Workspace:
    """Load the workspace whose parsers.yml is ``path`` (or found upward).

    Raises:
        ConfigError: If no config can be found or it is invalid.
    """
    if path is None:
        path = find_workspace_file()

    if path is None:
        raise ConfigError(
            f"No {WORKSPACE_CONFIG_FILE} found. Create one, or specify --config."
        )

    config = load_config(path)
    root = path.parent.resolve()
    store = RevisionStore(
        lockfile_path=_resolve(root, config.lockfile),
        info_dir=_resolve(root, config.info_dir),
    )
    return Workspace(root=root, config=config, store=store)
