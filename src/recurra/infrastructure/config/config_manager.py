"""Configuration manager for loading and validating .recurra.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from recurra.domain.config import AppConfig, ExecutorConfig, RecurringPullEntry, RetryConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".recurra.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .recurra.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .recurra.yml file (searched from current directory upwards)
    3. Environment variables (RECURRA_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "executor": {
            "type": "mock",
            "timeout": 30.0,
            "auth_token": None,
            "delay": 0.0,
            "outcomes": [],
            "partial_amount": "0",
        },
        "retry": {
            "max_attempts": 3,
            "backoff_multiplier": 2,
            "initial_delay": 1,
            "jitter": 0.1,
        },
        "pulls": [],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .recurra.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If the file cannot be read or validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .recurra.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the file is not valid YAML
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with env overrides applied
        """
        if os.getenv("RECURRA_EXECUTOR"):
            config["executor"]["type"] = os.getenv("RECURRA_EXECUTOR")

        if os.getenv("RECURRA_HTTP_AUTH_TOKEN"):
            config["executor"]["auth_token"] = os.getenv("RECURRA_HTTP_AUTH_TOKEN")

        return config

    def get_executor_config(self) -> ExecutorConfig:
        """Get pull executor configuration

        Returns:
            Executor configuration model
        """
        return self.config.executor

    def get_retry_config(self) -> RetryConfig:
        """Get HTTP transport retry configuration

        Returns:
            Retry configuration model
        """
        return self.config.retry

    def get_pulls(self) -> List[RecurringPullEntry]:
        """Get configured recurring pulls

        Returns:
            Recurring pull entries in file order
        """
        return list(self.config.pulls)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "executor.type" or "executor")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
