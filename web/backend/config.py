#!/usr/bin/env python3
"""
Configuration management for the ATS web application.

Thin cached wrapper over core.config_loader so the web layer and the CLI read
the same config.yaml and environment overrides.
"""

import os
from pathlib import Path
from functools import lru_cache

from core.config_loader import AppConfig, load_config


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


@lru_cache()
def get_config() -> AppConfig:
    """
    Get application configuration with caching.

    Loads from CONFIG_PATH (default: <project root>/config.yaml) and applies
    environment variable overrides. Call get_config.cache_clear() in tests
    after changing the environment.
    """
    config_path = os.environ.get("CONFIG_PATH", str(get_project_root() / 'config.yaml'))
    return load_config(config_path)
