"""
sdkforge regeneration engine

Reconciles freshly generated SDK files with manual edits made to the
previously generated tree.
"""

from typing import Any, Optional

from .core import (
    ChangeClassifier,
    ConflictRegion,
    ContentFamily,
    ContentStore,
    Emitter,
    EmitterError,
    EmitResult,
    FileOutcome,
    FileState,
    HookError,
    PipelineDriver,
    ReconciliationResult,
    Reconciler,
    RegenConfig,
    RunReport,
    TemplateEmitter,
    emit_files,
    family_for_path,
    load_config,
    run_hook,
    run_pipeline,
)
from .differ import DifferencerTable
from .registry import ParserRegistry, RegistryError, get_parser, get_registry


def generate(
    emitter: Emitter, model: Any, config: Optional[RegenConfig] = None
) -> RunReport:
    """
    Emit files from a model and reconcile them into the output directory.

    The configured pre_generate hook runs before the emitter, the
    post_generate hook after reconciliation.

    Args:
        emitter: Emitter producing the candidate files
        model: Normalized schema/operation model handed to the emitter
        config: Run configuration (defaults when omitted)

    Returns:
        RunReport for the run

    Raises:
        EmitterError: If the emitter fails; nothing is written in that case
        HookError: If a hook script fails; a failing pre_generate hook also
            stops the run before anything is written
    """
    config = config or load_config()
    run_hook("pre_generate", config)

    result = emit_files(emitter, config, model)

    if not result.success:
        raise EmitterError(result.error_message)

    report = run_pipeline(result.files, config)
    report.warnings[:0] = result.warnings

    run_hook("post_generate", config)
    return report


__all__ = [
    "ChangeClassifier",
    "ConflictRegion",
    "ContentFamily",
    "ContentStore",
    "DifferencerTable",
    "Emitter",
    "EmitResult",
    "EmitterError",
    "FileOutcome",
    "FileState",
    "HookError",
    "ParserRegistry",
    "PipelineDriver",
    "ReconciliationResult",
    "Reconciler",
    "RegenConfig",
    "RegistryError",
    "RunReport",
    "TemplateEmitter",
    "emit_files",
    "family_for_path",
    "generate",
    "get_parser",
    "get_registry",
    "load_config",
    "run_hook",
    "run_pipeline",
]
