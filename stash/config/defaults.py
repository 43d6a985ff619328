"""
Default configuration values.

This module holds the built-in client identities and the well-known file
locations used when the configuration does not say otherwise.
"""

import os
from pathlib import Path
from typing import Optional

APP_NAME = "stash"

CONFIG_FILENAME = "config.toml"
SITES_FILENAME = "sites.toml"
ERROR_LOG_FILENAME = "stash-error.log"

# Tried in order; the first identity that gets a 2xx response wins.
DEFAULT_USER_AGENTS = (
    "curl/8.11",
    (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
)


def get_default_config_dir(environ: Optional[dict] = None) -> Path:
    """
    Resolve the per-user configuration directory.

    Args:
        environ: Environment mapping, defaults to os.environ

    Returns:
        STASH_CONFIG_DIR, $XDG_CONFIG_HOME/stash or ~/.config/stash
    """
    environ = os.environ if environ is None else environ

    if config_dir := environ.get("STASH_CONFIG_DIR"):
        return Path(config_dir).expanduser()

    if xdg_config := environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_config).expanduser() / APP_NAME

    return Path.home() / ".config" / APP_NAME


def get_default_cache_dir(environ: Optional[dict] = None) -> Path:
    """Resolve the per-user cache directory ($XDG_CACHE_HOME or ~/.cache)."""
    environ = os.environ if environ is None else environ

    if xdg_cache := environ.get("XDG_CACHE_HOME"):
        return Path(xdg_cache).expanduser()

    return Path.home() / ".cache"
