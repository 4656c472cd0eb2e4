"""
Emitter interface consumed by the regeneration pipeline.

An emitter turns configuration plus a normalized schema/operation model into
candidate files: a mapping of relative path to generated text. Language
emitters live outside this package; ``TemplateEmitter`` is a base for the
template-driven ones.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ...logging_config import get_logger
from .config import RegenConfig
from .templates import TemplateEngine, TemplateError, create_template_engine

logger = get_logger(__name__)


class EmitterError(Exception):
    """Base exception for emitter errors."""

    pass


class Emitter(ABC):
    """Abstract base class for all file emitters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name used in logs and reports (e.g., 'python', 'typescript')."""
        pass

    @abstractmethod
    def emit(self, config: RegenConfig, model: Any) -> Dict[str, str]:
        """
        Produce candidate files.

        Args:
            config: Run configuration (emitter settings live in ``config.custom``)
            model: Normalized schema/operation model

        Returns:
            Mapping of relative file path to generated text
        """
        pass

    def validate_model(self, model: Any) -> List[str]:
        """Return warnings about the model; empty when there is nothing to say."""
        return []


class TemplateEmitter(Emitter):
    """Renders one Jinja2 template per output file.

    ``outputs`` maps output paths to template names. Output paths are
    themselves rendered, so ``"{{ package }}/client.py"`` works. ``filters``
    adds Jinja2 filters such as the target language's naming helpers.
    """

    def __init__(
        self,
        outputs: Dict[str, str],
        template_dir: Optional[Path] = None,
        templates: Optional[Dict[str, str]] = None,
        name: str = "template",
        filters: Optional[Dict[str, Callable]] = None,
    ):
        self.outputs = dict(outputs)
        self._name = name
        self.template_engine: TemplateEngine = create_template_engine(
            template_dir, templates, filters
        )

    @property
    def name(self) -> str:
        return self._name

    def build_context(self, config: RegenConfig, model: Any) -> Dict[str, Any]:
        """Template variables; subclasses usually extend this."""
        context = {"config": config, "model": model}
        context.update(config.custom)
        return context

    def emit(self, config: RegenConfig, model: Any) -> Dict[str, str]:
        context = self.build_context(config, model)
        files = {}
        for path_template, template_name in self.outputs.items():
            path = self.template_engine.render_string(path_template, context)
            files[path] = self.template_engine.render_template(template_name, context)
        return files


class EmitResult:
    """Container for emitter output and metadata."""

    def __init__(
        self,
        files: Dict[str, str],
        warnings: List[str] = None,
        metadata: Dict[str, Any] = None,
    ):
        self.files = files
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message: Optional[str] = None
        self.exception: Optional[Exception] = None

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "EmitResult":
        """Create a failed emit result."""
        result = cls(files={})
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def emit_files(emitter: Emitter, config: RegenConfig, model: Any) -> EmitResult:
    """
    Run an emitter with error handling.

    Returns:
        EmitResult with files, warnings, and metadata
    """
    try:
        warnings = emitter.validate_model(model)
        files = emitter.emit(config, model)

        bad = [path for path, text in files.items() if not isinstance(text, str)]
        if bad:
            raise EmitterError(f"Emitter produced non-text content for: {', '.join(bad)}")

        metadata = {
            "emitter": emitter.name,
            "file_count": len(files),
        }
        logger.info("Emitter %s produced %d file(s)", emitter.name, len(files))
        return EmitResult(files, warnings, metadata)

    except (EmitterError, TemplateError) as e:
        logger.error("Emitter %s failed: %s", emitter.name, e)
        return EmitResult.error(f"Emission failed: {e}", exception=e)
    except Exception as e:
        logger.error("Emitter %s crashed: %s", emitter.name, e, exc_info=True)
        return EmitResult.error(f"Emission failed: {e}", exception=e)
