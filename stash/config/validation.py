"""
Configuration validation utilities.

This module provides the error classes raised while loading configuration and
validation helpers that report problems with per-domain selector rules before
any page is fetched.
"""

import re
from pathlib import Path
from typing import Any, List, Optional, Union
from urllib.parse import urlparse

import soupsieve

from .models import ExternalAPIConfig, ManualMethod, SystemConfig


class ConfigurationError(Exception):
    """Base exception for configuration-related errors."""
    pass


class ValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"Validation error for '{field}': {message}")


class FormatError(ConfigurationError):
    """Raised when a persisted configuration document cannot be understood."""

    def __init__(self, path: Union[str, Path], message: str, domain: Optional[str] = None):
        self.path = str(path)
        self.message = message
        self.domain = domain
        location = f"{self.path} [{domain}]" if domain else self.path
        super().__init__(f"Malformed configuration in {location}: {message}")


class ConfigValidator:
    """Validates configuration objects and provides detailed error reporting."""

    @staticmethod
    def validate_manual_method(domain: str, method: ManualMethod) -> List[ValidationError]:
        """
        Validate the selectors of a rule-based extraction method.

        Args:
            domain: Domain the method is registered for
            method: ManualMethod to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not ConfigValidator._is_valid_domain(domain):
            errors.append(ValidationError("domain", "Invalid domain format", domain))

        for field_name, selector in method.selectors():
            if not ConfigValidator._is_valid_css_selector(selector):
                errors.append(ValidationError(
                    f"{domain}.{field_name}",
                    "Invalid CSS selector syntax",
                    selector
                ))

        return errors

    @staticmethod
    def validate_external_api_config(config: ExternalAPIConfig) -> List[ValidationError]:
        """
        Validate ExternalAPIConfig object.

        Args:
            config: ExternalAPIConfig to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if config.endpoint_url:
            if not ConfigValidator._is_valid_url(config.endpoint_url):
                errors.append(ValidationError("endpoint_url", "Invalid URL format", config.endpoint_url))

        if config.max_retries > 20:
            errors.append(ValidationError("max_retries", "Max retries should not exceed 20", config.max_retries))

        return errors

    @staticmethod
    def validate_system_config(config: SystemConfig) -> List[ValidationError]:
        """
        Validate complete SystemConfig object.

        Args:
            config: SystemConfig to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        errors.extend(ConfigValidator.validate_external_api_config(config.external_api_config))

        for index, user_agent in enumerate(config.user_agents):
            if not isinstance(user_agent, str) or not user_agent.strip():
                errors.append(ValidationError(f"user_agents[{index}]", "User agent cannot be empty", user_agent))

        if config.sink == "submit" and not config.external_api_config.endpoint_url:
            errors.append(ValidationError("submit.endpoint_url", "Submission sink selected without an endpoint"))

        return errors

    @staticmethod
    def _is_valid_domain(domain: str) -> bool:
        """Check if domain has valid format."""
        domain_pattern = re.compile(
            r'^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)*[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$'
        )
        return bool(domain_pattern.match(domain))

    @staticmethod
    def _is_valid_css_selector(selector: str) -> bool:
        """Check that a selector compiles."""
        if not selector or not selector.strip():
            return False

        try:
            soupsieve.compile(selector)
        except soupsieve.SelectorSyntaxError:
            return False
        return True

    @staticmethod
    def _is_valid_url(url: str) -> bool:
        """Check if URL has valid format."""
        try:
            result = urlparse(url)
            return all([result.scheme, result.netloc])
        except ValueError:
            return False


def validate_configuration(config: SystemConfig, raise_on_error: bool = False) -> List[ValidationError]:
    """
    Validate a complete system configuration.

    Args:
        config: SystemConfig to validate
        raise_on_error: If True, raise ConfigurationError on validation failure

    Returns:
        List of validation errors (empty if valid)

    Raises:
        ConfigurationError: If validation fails and raise_on_error is True
    """
    errors = ConfigValidator.validate_system_config(config)

    if errors and raise_on_error:
        error_messages = [str(error) for error in errors]
        raise ConfigurationError("Configuration validation failed:\n" + "\n".join(error_messages))

    return errors
