"""
Timeout configuration for all outbound HTTP calls.

This module provides centralized timeout management for page fetches and
remote submissions, with values overridable from the environment.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class TimeoutConfig:
    """Timeout configuration for all external operations."""

    # Page fetch timeouts
    http_connect_timeout: int = 10
    http_read_timeout: int = 30

    # Submission sink timeouts
    submit_connect_timeout: int = 5
    submit_read_timeout: int = 15

    # Retry timeouts
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0
    retry_exponential_base: float = 2.0

    @classmethod
    def from_environment(cls) -> 'TimeoutConfig':
        """Create timeout configuration from environment variables."""
        return cls(
            http_connect_timeout=int(os.getenv('HTTP_CONNECT_TIMEOUT', '10')),
            http_read_timeout=int(os.getenv('HTTP_READ_TIMEOUT', '30')),

            submit_connect_timeout=int(os.getenv('SUBMIT_CONNECT_TIMEOUT', '5')),
            submit_read_timeout=int(os.getenv('SUBMIT_READ_TIMEOUT', '15')),

            retry_base_delay=float(os.getenv('RETRY_BASE_DELAY', '1.0')),
            retry_max_delay=float(os.getenv('RETRY_MAX_DELAY', '30.0')),
            retry_exponential_base=float(os.getenv('RETRY_EXPONENTIAL_BASE', '2.0'))
        )

    def validate(self) -> None:
        """Validate timeout configuration values."""
        if self.http_connect_timeout <= 0:
            raise ValueError("HTTP connect timeout must be positive")
        if self.http_read_timeout <= 0:
            raise ValueError("HTTP read timeout must be positive")

        if self.submit_connect_timeout <= 0:
            raise ValueError("Submit connect timeout must be positive")
        if self.submit_read_timeout <= 0:
            raise ValueError("Submit read timeout must be positive")

        if self.retry_base_delay < 0:
            raise ValueError("Retry base delay must be non-negative")
        if self.retry_max_delay < self.retry_base_delay:
            raise ValueError("Retry max delay must be greater than or equal to base delay")
        if self.retry_exponential_base <= 1:
            raise ValueError("Retry exponential base must be greater than 1")


class TimeoutManager:
    """Centralized timeout management for the application."""

    def __init__(self, config: Optional[TimeoutConfig] = None):
        """
        Initialize timeout manager.

        Args:
            config: Optional timeout configuration. If None, loads from environment.
        """
        self.config = config or TimeoutConfig.from_environment()
        self.config.validate()

    def get_http_timeout(self, operation_type: str = "fetch") -> Tuple[int, int]:
        """
        Get HTTP timeout configuration for specific operation types.

        Args:
            operation_type: "fetch" for page downloads, "submit" for the submission sink

        Returns:
            Tuple of (connect_timeout, read_timeout)
        """
        if operation_type == "submit":
            return (self.config.submit_connect_timeout, self.config.submit_read_timeout)
        return (self.config.http_connect_timeout, self.config.http_read_timeout)

    def get_retry_delay(self, attempt: int, base_delay: Optional[float] = None) -> float:
        """
        Calculate retry delay with exponential backoff.

        Args:
            attempt: Retry attempt number (0-based)
            base_delay: Overrides the configured base delay

        Returns:
            Delay in seconds
        """
        base = self.config.retry_base_delay if base_delay is None else base_delay
        delay = base * (self.config.retry_exponential_base ** attempt)
        return min(delay, self.config.retry_max_delay)


# Global timeout manager instance
_timeout_manager: Optional[TimeoutManager] = None


def get_timeout_manager() -> TimeoutManager:
    """Get the global timeout manager instance."""
    global _timeout_manager
    if _timeout_manager is None:
        _timeout_manager = TimeoutManager()
    return _timeout_manager

