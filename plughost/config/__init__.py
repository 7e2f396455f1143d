"""
Plughost Configuration - TOML-based plugin configuration.

This module provides:
- PluginsConfig: declared plugin specs plus lifecycle settings
- Loading from and dumping to a TOML section

Example usage:
    from plughost.config import load_plugins_config

    config = load_plugins_config(Path("config/host.toml"))
    config.validate()
"""

from plughost.config.plugins import (
    ConfigError,
    PluginsConfig,
    dump_plugins_config,
    load_plugins_config,
)

__all__ = ["ConfigError", "PluginsConfig", "dump_plugins_config", "load_plugins_config"]
