"""
Lockfile models — the desired revision per target.

The lockfile is a single JSON document::

    {"lua": {"revision": "6b02dfd7..."}, "python": {"revision": "..."}}
"""

from __future__ import annotations

import json

from pydantic import BaseModel, Field, RootModel


class LockEntry(BaseModel):
    """Desired revision of one target."""

    revision: str


class Lockfile(RootModel[dict[str, LockEntry]]):
    """Mapping of target name → ``LockEntry``."""

    root: dict[str, LockEntry] = Field(default_factory=dict)

    def revision(self, name: str) -> str | None:
        entry = self.root.get(name)
        return entry.revision if entry else None

    def to_json(self) -> str:
        """Serialize sorted by name, indented, with a trailing newline."""
        data = {name: self.root[name].model_dump() for name in sorted(self.root)}
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
