"""
Configuration management module for stash.

This module provides configuration management capabilities including:
- Per-domain extraction method registry
- Client identity defaults and well-known file locations
- Submission sink settings
- File and environment variable based configuration loading
"""

from .models import (
    AutoMethod,
    ManualMethod,
    ExtractionMethod,
    ExternalAPIConfig,
    SystemConfig
)
from .manager import ConfigManager
from .sites import MethodRegistry, parse_method
from .defaults import DEFAULT_USER_AGENTS
from .validation import (
    ConfigValidator,
    ConfigurationError,
    FormatError,
    ValidationError,
    validate_configuration
)

__all__ = [
    # Data models
    "AutoMethod",
    "ManualMethod",
    "ExtractionMethod",
    "ExternalAPIConfig",
    "SystemConfig",

    # Configuration manager
    "ConfigManager",

    # Site registry
    "MethodRegistry",
    "parse_method",
    "DEFAULT_USER_AGENTS",

    # Validation
    "ConfigValidator",
    "ConfigurationError",
    "FormatError",
    "ValidationError",
    "validate_configuration"
]
