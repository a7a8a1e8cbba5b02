"""Configuration validation for cmsdev."""

from typing import Any, Dict, List

import jsonschema
import yaml

from cmsdev.utils.errors import ConfigurationError, create_error_suggestions, format_validation_errors

from .schemas import CONFIG_SCHEMA


class ConfigValidationError(ConfigurationError):
    """Raised when configuration validation fails."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(
            "Configuration validation failed",
            details=format_validation_errors(errors),
            suggestions=create_error_suggestions("configuration_invalid"),
        )


class ConfigValidator:
    """Validates cmsdev configuration files."""

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate a cmsdev configuration.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List[str]: List of validation errors (empty if valid)
        """
        errors = []

        try:
            jsonschema.validate(config, CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            errors.append(f"Schema validation failed: {e.message}")
        except jsonschema.SchemaError as e:
            errors.append(f"Schema error: {e.message}")

        commands = config.get("commands")
        if isinstance(commands, dict):
            errors.extend(self._validate_commands(commands))

        layout = config.get("layout")
        if isinstance(layout, dict):
            for key, value in layout.items():
                if isinstance(value, str) and (value.startswith("/") or ".." in value.split("/")):
                    errors.append(f"layout.{key} must be a relative path inside the installation: {value}")

        return errors

    def validate_config_file(self, file_path: str) -> List[str]:
        """
        Validate configuration file.

        Args:
            file_path: Path to configuration file

        Returns:
            List[str]: List of validation errors (empty if valid)
        """
        try:
            with open(file_path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            return [f"Configuration file not found: {file_path}"]
        except yaml.YAMLError as e:
            return [f"Invalid YAML syntax: {e}"]

        if config is None:
            return []
        if not isinstance(config, dict):
            return ["Configuration must be a mapping"]

        return self.validate_config(config)

    def _validate_commands(self, commands: Dict[str, Any]) -> List[str]:
        """Check command templates reference the placeholders they need."""
        errors = []

        build = commands.get("build")
        if isinstance(build, list) and not any("{binary}" in part for part in build):
            errors.append("commands.build must contain the {binary} placeholder")

        for name in ("generate", "build"):
            command = commands.get(name)
            if isinstance(command, list) and not any("{entry}" in part for part in command):
                errors.append(f"commands.{name} must contain the {{entry}} placeholder")

        return errors
