"""
Domain models — Pydantic types and pipeline dataclasses.

All models are re-exported here for convenient access:

    from parserctl.core.models import Target, WorkspaceConfig, Pipeline
"""

from parserctl.core.models.lockfile import LockEntry, Lockfile
from parserctl.core.models.pipeline import (
    BatchReport,
    FailureKind,
    LocalStep,
    Pipeline,
    PipelineResult,
    ProcessStep,
    Step,
)
from parserctl.core.models.target import Target
from parserctl.core.models.workspace import DEFAULT_COMPILERS, WorkspaceConfig

__all__ = [
    "BatchReport",
    "DEFAULT_COMPILERS",
    "FailureKind",
    "LocalStep",
    "LockEntry",
    "Lockfile",
    "Pipeline",
    "PipelineResult",
    "ProcessStep",
    "Step",
    "Target",
    "WorkspaceConfig",
]
