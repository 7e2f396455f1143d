"""
Plughost - Lifecycle management for pluggable host components.

This is the main package that exports the public API for plughost.
"""

__version__ = "0.1.0"

from plughost.config import PluginsConfig, load_plugins_config
from plughost.environment import Environment
from plughost.plugin.base import Plugin
from plughost.plugin.errors import (
    DuplicateRegistrationError,
    InitializationError,
    InvalidArgumentError,
    LoadError,
    PluginError,
    PluginLoadError,
    PluginTimeoutError,
    ValidationError,
)
from plughost.plugin.lifecycle import PluginLifecycle
from plughost.plugin.loader import CodeLoader
from plughost.plugin.registry import CapabilityRegistry
from plughost.plugin.spec import PluginSpec, validate_specs

__all__ = [
    "__version__",
    "CapabilityRegistry",
    "CodeLoader",
    "DuplicateRegistrationError",
    "Environment",
    "InitializationError",
    "InvalidArgumentError",
    "LoadError",
    "Plugin",
    "PluginError",
    "PluginLifecycle",
    "PluginLoadError",
    "PluginSpec",
    "PluginTimeoutError",
    "PluginsConfig",
    "ValidationError",
    "load_plugins_config",
    "validate_specs",
]
