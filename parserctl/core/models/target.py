"""
Target model — one installable parser, as declared in parsers.yml.

Targets are read-only: the registry loads them once and nothing in
the install pipeline mutates them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Target(BaseModel):
    """An installable parser unit.

    ``url`` is either a remote repository URL or a local directory
    (``~`` is expanded).  ``files`` are compiled relative to the
    compile location: the checkout itself, or ``location`` inside the
    cache directory when the grammar lives in a subdirectory.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    files: list[str]
    branch: str | None = None
    location: str | None = None
    requires_generate_from_grammar: bool = False
    generate_requires_npm: bool = False
    maintainers: list[str] = Field(default_factory=list)

    @field_validator("files")
    @classmethod
    def _files_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one source file is required")
        return value

    @property
    def project_name(self) -> str:
        """Directory name of the checkout inside the cache."""
        return f"tree-sitter-{self.name}"

    @property
    def maintained(self) -> bool:
        return bool(self.maintainers)
