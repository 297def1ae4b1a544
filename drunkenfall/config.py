"""
drunkenfall/config.py - Local configuration management

Reads user config from a platform-appropriate config directory:
  - macOS/Linux: ~/.drunkenfall/config.toml
  - Windows: %APPDATA%\\drunkenfall\\config.toml

Example:
    [api]
    server = "http://localhost:42001"
    timeout = 5

    [viewer]
    host = "127.0.0.1"
    port = 8080
    refresh_seconds = 2

DRUNKENFALL_API in the environment overrides [api] server.
"""

import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================


def _get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "drunkenfall"
    return Path.home() / ".drunkenfall"


CONFIG_DIR = _get_config_dir()
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_API_URL = "https://drunkenfall.com"
API_ENV_VAR = "DRUNKENFALL_API"


# ============================================================================
# Data Types
# ============================================================================


@dataclass
class ApiConfig:
    """Where the tournament API lives."""

    server: str = DEFAULT_API_URL
    timeout: float = 10.0


@dataclass
class ViewerConfig:
    """Settings for the local view server."""

    host: str = "127.0.0.1"
    port: int = 8080
    refresh_seconds: float = 2.0  # minimum age before tournaments are re-fetched


@dataclass
class DrunkenfallConfig:
    """Top-level configuration."""

    api: ApiConfig = field(default_factory=ApiConfig)
    viewer: ViewerConfig = field(default_factory=ViewerConfig)


# ============================================================================
# Parsing
# ============================================================================


def _section(raw: dict, name: str) -> dict:
    data = raw.get(name, {})
    return data if isinstance(data, dict) else {}


def _apply_env(config: DrunkenfallConfig) -> DrunkenfallConfig:
    server = os.environ.get(API_ENV_VAR)
    if server:
        config.api.server = server
    return config


def load_config(path: Path | None = None) -> DrunkenfallConfig:
    """
    Read config from TOML file.

    Args:
        path: Override config file path (default: ~/.drunkenfall/config.toml)

    Returns:
        DrunkenfallConfig. Missing file or bad TOML returns defaults.
    """
    config_path = path or CONFIG_PATH

    if not config_path.exists():
        return _apply_env(DrunkenfallConfig())

    try:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return _apply_env(DrunkenfallConfig())

    api_data = _section(raw, "api")
    viewer_data = _section(raw, "viewer")
    _api, _viewer = ApiConfig(), ViewerConfig()

    api = ApiConfig(
        server=api_data.get("server", _api.server),
        timeout=float(api_data.get("timeout", _api.timeout)),
    )
    viewer = ViewerConfig(
        host=viewer_data.get("host", _viewer.host),
        port=int(viewer_data.get("port", _viewer.port)),
        refresh_seconds=float(viewer_data.get("refresh_seconds", _viewer.refresh_seconds)),
    )

    return _apply_env(DrunkenfallConfig(api=api, viewer=viewer))
