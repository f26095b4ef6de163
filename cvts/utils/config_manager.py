"""
Configuration management utilities.
"""

import importlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema
import yaml

from cvts.evaluation.control import CVControl, ts_control
from cvts.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schemas"
CONTROL_SCHEMA = "control_schema.json"


def resolve_callable(path: str) -> Any:
    """
    Import an object from a ``"package.module:attribute"`` path.

    Raises:
        ConfigurationError: If the path is malformed or cannot be imported
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(
            f"Expected 'package.module:function', got {path!r}"
        )
    try:
        module = importlib.import_module(module_name)
        obj = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import {path!r}: {e}") from e
    if not callable(obj):
        raise ConfigurationError(f"{path!r} is not callable")
    return obj


class ConfigManager:
    """
    Manages loading, validation, and merging of configurations.
    """

    def __init__(self, config_dir: Optional[str] = None, schema_dir: Optional[str] = None):
        self.config_dir = Path(config_dir) if config_dir else Path("config")
        self.schema_dir = Path(schema_dir) if schema_dir else SCHEMA_DIR

    def load_config(self, config_name: Union[str, Path], schema_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a configuration file (YAML or JSON).
        Optionally validate against a schema.

        Args:
            config_name: Name of config file (e.g. 'cv.yaml'), relative to
                `config_dir` unless absolute
            schema_name: Name of schema file (e.g. 'control_schema.json')

        Returns:
            Loaded configuration dictionary
        """
        config_path = self.config_dir / config_name

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            if config_path.suffix in (".yaml", ".yml"):
                config = yaml.safe_load(f)
            elif config_path.suffix == ".json":
                config = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

        config = config or {}
        if schema_name:
            self.validate_config(config, schema_name)

        return config

    def validate_config(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Validate configuration against a schema.

        Args:
            config: Configuration dictionary
            schema_name: Name of schema file

        Raises:
            ConfigurationError: If the configuration violates the schema
        """
        schema_path = self.schema_dir / schema_name

        if not schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        with open(schema_path, "r") as f:
            schema = json.load(f)

        try:
            jsonschema.validate(instance=config, schema=schema)
        except jsonschema.exceptions.ValidationError as e:
            path_str = " -> ".join(str(p) for p in e.path) if e.path else "root"
            error_msg = f"Configuration validation failed at '{path_str}': {e.message}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg) from e

        logger.info(f"Configuration successfully validated against {schema_name}")

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two configurations.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        merged = base.copy()
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get_value(self, config: Dict[str, Any], path: str, default: Any = None) -> Any:
        """
        Get a value from configuration using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'cv.max_horizon')
            default: Default value if path not found

        Returns:
            Value at path or default
        """
        current = config
        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def set_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """
        Set a value in configuration using dot notation.
        Creates intermediate dictionaries if they don't exist.

        Args:
            config: Configuration dictionary (modified in-place)
            path: Dot-separated path
            value: Value to set
        """
        keys = path.split('.')
        current = config
        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]
        current[keys[-1]] = value

    def control_from_dict(
        self,
        config: Dict[str, Any],
        overrides: Optional[Dict[str, Any]] = None,
    ) -> CVControl:
        """
        Build a validated CVControl from a plain settings dictionary.

        Args:
            config: Control settings; `summary_func` may be an import path
            overrides: Settings applied on top of `config`

        Returns:
            Validated CVControl
        """
        settings = self.merge_configs(config, overrides or {})
        self.validate_config(settings, CONTROL_SCHEMA)
        if isinstance(settings.get("summary_func"), str):
            settings["summary_func"] = resolve_callable(settings["summary_func"])
        return ts_control(**settings)

    def load_control(
        self,
        config_name: Union[str, Path],
        section: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> CVControl:
        """
        Load a CVControl from a YAML or JSON file.

        Args:
            config_name: Config file name
            section: Dot-separated path of the control block inside the file
                (whole file if None)
            overrides: Settings applied on top of the file

        Returns:
            Validated CVControl
        """
        config = self.load_config(config_name)
        if section:
            config = self.get_value(config, section)
            if not isinstance(config, dict):
                raise ConfigurationError(
                    f"Section '{section}' not found in {config_name}"
                )
        control = self.control_from_dict(config, overrides)
        logger.info(f"Loaded control from {config_name}: {control.to_dict()}")
        return control
