"""
Configuration manager for loading and managing stash configuration.

This module provides the ConfigManager class that resolves the configuration
and cache locations once, reads ``config.toml`` and ``sites.toml``, and applies
environment variable overrides.
"""

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .defaults import (
    CONFIG_FILENAME,
    DEFAULT_USER_AGENTS,
    ERROR_LOG_FILENAME,
    SITES_FILENAME,
    get_default_cache_dir,
    get_default_config_dir,
)
from .logging import get_logger
from .models import ExternalAPIConfig, ManualMethod, SystemConfig
from .sites import MethodRegistry
from .validation import ConfigValidator, ConfigurationError, validate_configuration


logger = get_logger(__name__)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(
        self,
        config_dir: Optional[str] = None,
        cache_dir: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory holding config.toml and sites.toml
            cache_dir: Directory receiving the diagnostic error log
            environ: Environment mapping, defaults to os.environ
        """
        self.environ = os.environ if environ is None else environ
        self.config_dir = Path(config_dir).expanduser() if config_dir else get_default_config_dir(self.environ)
        self.cache_dir = Path(cache_dir).expanduser() if cache_dir else get_default_cache_dir(self.environ)
        self._system_config: Optional[SystemConfig] = None
        self._registry: Optional[MethodRegistry] = None

    @property
    def config_path(self) -> Path:
        return self.config_dir / CONFIG_FILENAME

    def load_configuration(self) -> SystemConfig:
        """
        Load the system configuration from config.toml and the environment.

        Returns:
            SystemConfig object with all loaded settings

        Raises:
            ConfigurationError: If config.toml is malformed or a value is invalid
        """
        if self._system_config is None:
            self._system_config = self._build_system_config()
        return self._system_config

    def load_registry(self) -> MethodRegistry:
        """
        Load the per-domain method registry.

        Raises:
            FormatError: If sites.toml is malformed
        """
        if self._registry is None:
            config = self.load_configuration()
            self._registry = MethodRegistry.load(config.sites_path)
            for domain, method in self._registry.items():
                if isinstance(method, ManualMethod):
                    for error in ConfigValidator.validate_manual_method(domain, method):
                        logger.warning("Site rule validation warning", field=error.field, issue=error.message, value=error.value)
        return self._registry

    def reload_configuration(self) -> SystemConfig:
        """Force reload of configuration and registry."""
        self._system_config = None
        self._registry = None
        return self.load_configuration()

    def _build_system_config(self) -> SystemConfig:
        """Build system configuration from file and environment."""
        file_config = self._load_config_file()

        try:
            system_config = SystemConfig(
                config_dir=self.config_dir,
                sites_path=self.config_dir / SITES_FILENAME,
                error_log_path=self.cache_dir / ERROR_LOG_FILENAME,
                output_dir=str(file_config.get("output_dir", ".")),
                user_agents=self._read_user_agents(file_config),
                sink=str(file_config.get("sink", "epub")),
                external_api_config=self._load_external_api_config(file_config.get("submit", {})),
                log_level=str(file_config.get("log_level", "WARNING")).upper()
            )

            self._apply_environment_overrides(system_config)
            # Re-run model validation after overrides
            system_config.__post_init__()
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration in {self.config_path}: {e}") from e

        validation_errors = validate_configuration(system_config, raise_on_error=False)
        for error in validation_errors:
            logger.warning("Configuration validation warning", field=error.field, issue=error.message)

        return system_config

    def _read_user_agents(self, file_config: Mapping[str, Any]) -> Tuple[str, ...]:
        """The user_agents array; a bare string or non-string entries are rejected."""
        value = file_config.get("user_agents", DEFAULT_USER_AGENTS)
        if not isinstance(value, (list, tuple)) or not all(isinstance(agent, str) for agent in value):
            raise ValueError("user_agents must be an array of strings")
        return tuple(value)

    def _load_config_file(self) -> Dict[str, Any]:
        """Read config.toml; a missing file means all defaults."""
        if not self.config_path.exists():
            logger.debug("No configuration file found, using defaults", path=str(self.config_path))
            return {}

        try:
            with open(self.config_path, 'rb') as f:
                return tomllib.load(f)
        except (tomllib.TOMLDecodeError, OSError) as e:
            raise ConfigurationError(f"Unable to load {self.config_path}: {e}") from e

    def _load_external_api_config(self, section: Mapping[str, Any]) -> ExternalAPIConfig:
        """Load submission sink settings from the [submit] table and environment."""
        if not isinstance(section, Mapping):
            raise ValueError("[submit] must be a table")

        config = ExternalAPIConfig(
            endpoint_url=section.get("endpoint_url"),
            max_retries=int(section.get("max_retries", 3)),
            retry_delay_seconds=float(section.get("retry_delay_seconds", 1.0))
        )

        if endpoint := self.environ.get("STASH_SUBMIT_ENDPOINT"):
            config.endpoint_url = endpoint

        # Credentials are only ever read from the environment
        if token := self.environ.get("STASH_SUBMIT_TOKEN"):
            config.auth_header = f"Bearer {token}"

        return config

    def _apply_environment_overrides(self, config: SystemConfig) -> None:
        """Apply environment-specific configuration overrides."""
        if output_dir := self.environ.get("STASH_OUTPUT_DIR"):
            config.output_dir = output_dir

        if sink := self.environ.get("STASH_SINK"):
            config.sink = sink.lower()

        if log_level := self.environ.get("LOG_LEVEL"):
            config.log_level = log_level.upper()

        if structured := self.environ.get("STASH_STRUCTURED_LOGS"):
            config.enable_structured_logging = structured.lower() in ("true", "1", "yes")
