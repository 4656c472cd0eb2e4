"""
Template engine wrapper for emitters.

Provides a simple interface for Jinja2 template rendering. Naming and
formatting helpers belong to the emitter; it passes them in as filters.
"""

from typing import Any, Callable, Dict, Optional
from pathlib import Path

from jinja2 import (
    Environment,
    FileSystemLoader,
    DictLoader,
    StrictUndefined,
    TemplateError as JinjaTemplateError,
)


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


class TemplateEngine:
    """Wrapper for Jinja2 template engine."""

    def __init__(
        self,
        template_dir: Optional[Path] = None,
        templates: Optional[Dict[str, str]] = None,
        filters: Optional[Dict[str, Callable]] = None,
    ):
        """
        Initialize template engine.

        Args:
            template_dir: Directory containing template files
            templates: In-memory templates (name -> source)
            filters: Extra Jinja2 filters (name -> callable)
        """
        self.template_dir = template_dir
        self._env = None
        self._setup_environment(templates or {}, filters or {})

    def _setup_environment(self, templates: Dict[str, str], filters: Dict[str, Callable]):
        """Setup Jinja2 environment."""
        if self.template_dir and Path(self.template_dir).exists():
            loader = FileSystemLoader(str(self.template_dir))
        else:
            loader = DictLoader(dict(templates))

        self._env = Environment(
            loader=loader,
            autoescape=False,
            keep_trailing_newline=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

        self._env.filters.update(filters)

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of template file
            context: Variables to pass to template

        Returns:
            Rendered template content
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template {template_name}: {e}")

    def render_string(self, template_string: str, context: Dict[str, Any]) -> str:
        """
        Render a template string with the given context.

        Args:
            template_string: Template content as string
            context: Variables to pass to template

        Returns:
            Rendered content
        """
        try:
            template = self._env.from_string(template_string)
            return template.render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template string: {e}")

    def add_template(self, name: str, content: str):
        """
        Add an in-memory template.

        Args:
            name: Template name
            content: Template content
        """
        if not isinstance(self._env.loader, DictLoader):
            self._env.loader = DictLoader({})

        self._env.loader.mapping[name] = content

    def template_exists(self, template_name: str) -> bool:
        return template_name in self._env.list_templates()


def create_template_engine(
    template_dir: Optional[Path] = None,
    templates: Optional[Dict[str, str]] = None,
    filters: Optional[Dict[str, Callable]] = None,
) -> TemplateEngine:
    """Create a template engine from a directory or in-memory templates."""
    return TemplateEngine(template_dir, templates, filters)
