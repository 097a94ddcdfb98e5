"""Configuration Management with Pydantic.

This module implements the graph configuration model using Pydantic for
parsing and validation of YAML/JSON configuration files with environment
variable overrides.
"""

import os
import threading
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_FILES = ("depgraph.yaml", "depgraph.yml", "depgraph.json")
_TRUTHY = ("true", "1", "yes")


class GraphConfig(BaseModel):
    """Dependency graph configuration settings.

    Attributes:
        cycle_allowed: Disable the cycle pre-check for new graphs
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON instead of console output
    """

    cycle_allowed: bool = Field(
        default=False,
        description="Skip the cycle pre-check",
    )
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=True,
        description="Use the JSON renderer for logs",
    )

    @field_validator("logging_level", mode="before")
    @classmethod
    def normalize_logging_level(cls, v: object) -> object:
        """Upper-case the logging level so 'debug' and 'DEBUG' both validate."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "GraphConfig":
        """Load configuration from a YAML (or JSON) file.

        Args:
            path: Path to the configuration file

        Returns:
            Parsed and validated GraphConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is empty, not valid YAML or invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)

            if not config_data:
                msg = "Configuration file is empty"
                raise ValueError(msg)

            if not isinstance(config_data, dict):
                msg = (
                    "Configuration file must contain a mapping, "
                    f"got {type(config_data).__name__}"
                )
                raise ValueError(msg)

            config_data = cls._apply_env_overrides(config_data)

            config = cls(**config_data)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e
        else:
            logger.info(
                "configuration_loaded",
                cycle_allowed=config.cycle_allowed,
                logging_level=config.logging_level,
            )

            return config

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: DEPGRAPH_<KEY>
        Example: DEPGRAPH_CYCLE_ALLOWED, DEPGRAPH_LOGGING_LEVEL

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            "cycle_allowed": "DEPGRAPH_CYCLE_ALLOWED",
            "logging_level": "DEPGRAPH_LOGGING_LEVEL",
            "json_logs": "DEPGRAPH_JSON_LOGS",
        }

        for key, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            if key in ("cycle_allowed", "json_logs"):
                config_data[key] = value.lower() in _TRUTHY
            else:
                config_data[key] = value

            logger.debug("env_override_applied", env_var=env_var, config_path=key)

        return config_data

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of validation warning messages (empty if no warnings)
        """
        warnings = []

        if self.cycle_allowed:
            warnings.append(
                "Cycle pre-check is disabled - will_make_dependency_cycle() "
                "returns None and cyclic graphs are accepted",
            )

        if self.logging_level == "DEBUG" and self.json_logs:
            warnings.append("DEBUG logging with JSON output logs every graph mutation")

        return warnings


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: GraphConfig | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> GraphConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file. If None, looks for
                depgraph.yaml, depgraph.yml or depgraph.json in the current
                directory.

        Returns:
            Loaded GraphConfig instance

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if config_path is None:
            for default_name in DEFAULT_CONFIG_FILES:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                msg = (
                    "No configuration file found. "
                    "Expected depgraph.yaml, depgraph.yml, or depgraph.json"
                )
                raise FileNotFoundError(msg)

        return GraphConfig.from_yaml(config_path)

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> GraphConfig:
        """Get configuration instance (singleton pattern).

        Uses double-checked locking so concurrent first calls load once.

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            GraphConfig instance
        """
        if cls._instance is not None and not reload:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None or reload:
                cls._instance = cls.load_config(config_path)

            return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> GraphConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> GraphConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "ConfigManager",
    "GraphConfig",
    "get_config",
    "load_config",
    "reset_config",
]
