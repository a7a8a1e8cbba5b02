"""Configuration management for cmsdev."""

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml
from jinja2 import Environment, FileSystemLoader

from cmsdev.utils.errors import ConfigurationError

from .schemas import CONFIG_FILENAME, DEFAULT_CONFIG
from .validator import ConfigValidationError, ConfigValidator

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages cmsdev configuration files."""

    def __init__(self, path: Optional[str] = None, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            path: Optional custom path (defaults to current directory)
            config_path: Explicit configuration file, overrides discovery in path
        """
        self.path = path or os.getcwd()
        self.explicit_config_path = config_path
        self.validator = ConfigValidator()
        self._config_cache = {}

        templates_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
        self.jinja_env = Environment(loader=FileSystemLoader(templates_dir), trim_blocks=True, lstrip_blocks=True)

    def get_config_path(self) -> Optional[str]:
        """Get path to the configuration file, or None if there is none."""
        if self.explicit_config_path:
            return self.explicit_config_path

        candidate = os.path.join(self.path, CONFIG_FILENAME)
        if os.path.exists(candidate):
            return candidate

        return None

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """
        Load configuration merged over the defaults.

        Args:
            validate: Whether to validate the configuration

        Returns:
            Dict[str, Any]: Effective configuration

        Raises:
            ConfigValidationError: If validation fails
            ConfigurationError: If an explicit config file is missing or unreadable
        """
        config_path = self.get_config_path()
        cache_key = config_path or "<defaults>"

        if cache_key in self._config_cache:
            return self._config_cache[cache_key]

        user_config = {}
        if config_path:
            user_config = self.load_config_file(config_path, validate=validate)
            logger.debug("Loaded configuration from %s", config_path)

        config = merge_config(DEFAULT_CONFIG, user_config)

        self._config_cache[cache_key] = config
        return config

    def load_config_file(self, config_path: str, validate: bool = True) -> Dict[str, Any]:
        """
        Load configuration from a specific file.

        Args:
            config_path: Path to configuration file
            validate: Whether to validate the configuration

        Returns:
            Dict[str, Any]: Raw configuration from the file
        """
        if not os.path.exists(config_path):
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                suggestions=["Run 'cmsdev init' to create one"],
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError([f"Invalid YAML in {config_path}: {e}"]) from e

        if not isinstance(config, dict):
            raise ConfigValidationError([f"{config_path} must contain a mapping"])

        if validate:
            errors = self.validator.validate_config(config)
            if errors:
                raise ConfigValidationError(errors)

        return config

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key (e.g. ``layout.content_dir``) in the effective config."""
        value = self.load_config()
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def generate_config(self, output_path: Optional[str] = None, force: bool = False) -> str:
        """
        Render a starter configuration file with the current defaults.

        Args:
            output_path: Destination file (defaults to cmsdev.yml in path)
            force: Overwrite an existing file

        Returns:
            str: Path to the written file
        """
        output_path = output_path or os.path.join(self.path, CONFIG_FILENAME)

        if os.path.exists(output_path) and not force:
            raise ConfigurationError(
                f"Configuration file already exists: {output_path}",
                suggestions=["Use --force to overwrite it"],
            )

        template = self.jinja_env.get_template("cmsdev.yml.j2")
        content = template.render(config=DEFAULT_CONFIG)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(content)

        self._config_cache.clear()
        return output_path


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base. Lists are replaced, not merged."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
