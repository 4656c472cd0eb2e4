"""
Configuration management for regeneration runs.

Handles loading and merging configuration from JSON files,
providing defaults and validation for reconciliation settings.
"""

import json
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, fields, asdict


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass


@dataclass
class RegenConfig:
    """Settings for one regeneration run."""

    # Output settings
    output_dir: str = "."
    state_dir: str = ".sdkforge"
    encoding: str = "utf-8"

    # Worker pool
    max_workers: int = 1

    # Structured-data output
    default_indent: int = 2

    # Conflict markers
    conflict_label_generated: str = "generated"
    conflict_label_manual: str = "manual"

    # Extension -> family name overrides, e.g. {".lock": "structured-data"}
    family_overrides: Dict[str, str] = field(default_factory=dict)

    # Report tracked files the emitter no longer produces
    report_stale: bool = True

    # Scripts run before and after a generation, with a timeout in seconds
    pre_generate: Optional[str] = None
    post_generate: Optional[str] = None
    hook_timeout: float = 300.0

    # Anything else (emitter-specific settings)
    custom: Dict[str, Any] = field(default_factory=dict)

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    @property
    def state_path(self) -> Path:
        state = Path(self.state_dir)
        if state.is_absolute():
            return state
        return self.output_path / state


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        self._defaults: Dict[str, Any] = asdict(RegenConfig())

    def get_config(
        self,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> RegenConfig:
        """
        Build a complete configuration.

        Args:
            custom_config: Explicit overrides (highest precedence)
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration
        """
        base_config = dict(self._defaults)
        base_config["family_overrides"] = {}
        base_config["custom"] = {}

        if config_file:
            file_config = self._load_config_file(config_file)
            base_config.update(file_config)

        if custom_config:
            base_config.update(custom_config)

        return self._dict_to_config(base_config)

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {e}")

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> RegenConfig:
        """Convert dictionary to RegenConfig instance."""
        known_fields = {f.name for f in fields(RegenConfig)}

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        if custom_args:
            existing_custom = dict(config_args.get("custom") or {})
            existing_custom.update(custom_args)
            config_args["custom"] = existing_custom

        try:
            config_args["max_workers"] = int(config_args.get("max_workers", 1))
            config_args["default_indent"] = int(config_args.get("default_indent", 2))
            config_args["hook_timeout"] = float(config_args.get("hook_timeout", 300.0))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}")

        return RegenConfig(**config_args)

    def save_config(self, config: RegenConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)

        config_dict = asdict(config)
        custom = config_dict.pop("custom")
        config_dict.update(custom)

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}")

    def validate_config(self, config: RegenConfig) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation warnings
        """
        from .families import ContentFamily

        warnings = []

        if config.max_workers < 1:
            warnings.append(f"max_workers must be at least 1: {config.max_workers}")

        if config.default_indent < 0:
            warnings.append(f"default_indent must not be negative: {config.default_indent}")

        if not config.state_dir:
            warnings.append("state_dir must not be empty")

        valid_families = {family.value for family in ContentFamily}
        for extension, family_name in config.family_overrides.items():
            if not extension.startswith("."):
                warnings.append(f"Family override key must be an extension: {extension}")
            if family_name not in valid_families:
                warnings.append(f"Unknown content family for {extension}: {family_name}")

        for stage in ("pre_generate", "post_generate"):
            script = getattr(config, stage)
            if script is not None and not isinstance(script, str):
                warnings.append(f"{stage} hook must be a script path: {script!r}")

        if config.hook_timeout <= 0:
            warnings.append(f"hook_timeout must be positive: {config.hook_timeout}")

        for label in (config.conflict_label_generated, config.conflict_label_manual):
            if not label or "\n" in label:
                warnings.append(f"Invalid conflict label: {label!r}")

        return warnings


_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the shared configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> RegenConfig:
    """
    Convenience function to load configuration.

    Args:
        custom_config: Explicit overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration
    """
    return get_config_manager().get_config(custom_config, config_file)


EXAMPLE_CONFIG = {
    "output_dir": "sdk",
    "state_dir": ".sdkforge",
    "max_workers": 4,
    "default_indent": 2,
    "family_overrides": {".lock": "structured-data"},
}
