"""
Configuration data models for stash.

This module defines the core data structures used for configuration management,
including the per-domain extraction methods and the settings of both output sinks.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Union

from .defaults import DEFAULT_USER_AGENTS


@dataclass(frozen=True)
class AutoMethod:
    """Extract with the readability heuristic; no per-site configuration."""


@dataclass(frozen=True)
class ManualMethod:
    """Extract each field with its own CSS selector."""

    title: str
    body: str
    authors: str
    date: str

    def selectors(self) -> Tuple[Tuple[str, str], ...]:
        """Return (field, selector) pairs in a stable order."""
        return (
            ("title", self.title),
            ("body", self.body),
            ("authors", self.authors),
            ("date", self.date),
        )


ExtractionMethod = Union[AutoMethod, ManualMethod]

SINKS = ("epub", "submit")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ExternalAPIConfig:
    """Configuration for the remote submission sink."""

    endpoint_url: Optional[str] = None
    auth_header: Optional[str] = None
    max_retries: int = 3
    retry_delay_seconds: float = 1.0

    def __post_init__(self):
        """Validate external API configuration."""
        if self.max_retries < 0:
            raise ValueError("Max retries must be non-negative")
        if self.retry_delay_seconds < 0:
            raise ValueError("Retry delay must be non-negative")


@dataclass
class SystemConfig:
    """Overall configuration, resolved once at startup."""

    config_dir: Path
    sites_path: Path
    error_log_path: Path
    output_dir: str = "."
    user_agents: Tuple[str, ...] = DEFAULT_USER_AGENTS
    sink: str = "epub"
    external_api_config: ExternalAPIConfig = field(default_factory=ExternalAPIConfig)
    log_level: str = "WARNING"
    enable_structured_logging: bool = True

    def __post_init__(self):
        """Validate system configuration."""
        if not self.user_agents:
            raise ValueError("At least one user agent is required")
        if self.sink not in SINKS:
            raise ValueError(f"Unknown sink '{self.sink}', expected one of {', '.join(SINKS)}")
        if not self.output_dir:
            raise ValueError("Output directory cannot be empty")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level '{self.log_level}'")
