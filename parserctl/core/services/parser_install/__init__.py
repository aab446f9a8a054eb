"""
Parser installation service — package re-exports.

    from parserctl.core.services.parser_install import install, update

Each symbol lives in its single-responsibility module inside the
appropriate layer (domain → detection → execution → orchestration).
"""

# ── L1: Domain ──
from parserctl.core.services.parser_install.domain.pipeline_builder import (  # noqa: F401
    PreconditionError,
    build_install_pipeline,
    build_uninstall_pipeline,
)

# ── L3: Detection ──
from parserctl.core.services.parser_install.detection.target_state import (  # noqa: F401
    installed_targets,
    is_installed,
    needs_update,
    outdated_targets,
    target_status,
)

# ── L4: Execution ──
from parserctl.core.services.parser_install.execution import (  # noqa: F401
    Batch,
    run_pipeline,
    run_pipeline_sync,
    run_pipelines,
)

# ── L5: Orchestration ──
from parserctl.core.services.parser_install.orchestration.orchestrator import (  # noqa: F401
    InstallOptions,
    ensure_installed,
    install,
    uninstall,
    update,
    write_lockfile,
)
