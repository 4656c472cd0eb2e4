"""
Core regeneration components.

Content store, change classifier, reconciler and pipeline driver, plus the
configuration, result types and the emitter interface they share.
"""

from .config import RegenConfig, ConfigManager, ConfigError, load_config
from .errors import RegenError, SourceParseError, StructuredParseError, UnsafePathError
from .families import ContentFamily, family_for_path
from .result import (
    ConflictRegion,
    FileOutcome,
    FileState,
    MergeOutcome,
    ReconciliationResult,
    RunReport,
)
from .store import ContentStore, decode_path, encode_path, normalize_path
from .classifier import ChangeClassifier
from .reconciler import Reconciler
from .pipeline import PipelineDriver, run_pipeline
from .templates import TemplateEngine, TemplateError, create_template_engine
from .emitter import Emitter, EmitterError, EmitResult, TemplateEmitter, emit_files
from .hooks import HookError, run_hook

__all__ = [
    # Configuration
    "RegenConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    # Errors
    "RegenError",
    "SourceParseError",
    "StructuredParseError",
    "UnsafePathError",
    # Families
    "ContentFamily",
    "family_for_path",
    # Results
    "ConflictRegion",
    "FileOutcome",
    "FileState",
    "MergeOutcome",
    "ReconciliationResult",
    "RunReport",
    # Store and classification
    "ContentStore",
    "encode_path",
    "decode_path",
    "normalize_path",
    "ChangeClassifier",
    # Orchestration
    "Reconciler",
    "PipelineDriver",
    "run_pipeline",
    # Emitters
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
    "Emitter",
    "EmitterError",
    "HookError",
    "run_hook",
    "EmitResult",
    "TemplateEmitter",
    "emit_files",
]
