"""
L4 Execution — ``__init__.py`` re-exports the executors.

These functions spawn processes and write to the system.
"""

from parserctl.core.services.parser_install.execution.async_executor import (  # noqa: F401
    PipelineState,
    run_pipeline,
    run_pipelines,
)
from parserctl.core.services.parser_install.execution.progress import (  # noqa: F401
    Batch,
    OutputBuffer,
    ProcessRecord,
)
from parserctl.core.services.parser_install.execution.sync_executor import (  # noqa: F401
    run_pipeline_sync,
)
