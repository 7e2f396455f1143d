"""
Plugin Error Kinds.

This module defines the exceptions raised by the plugin subsystem.

Key points:
- ValidationError is a precondition failure and is never recovered automatically
- LoadError and InitializationError are subject to the continue-on-error policy
- Registry errors indicate programmer error and are always raised to the caller
"""


class PluginError(Exception):
    """Base exception for plugin-related errors."""

    pass


class ValidationError(PluginError, ValueError):
    """Raised when the declared plugin spec list is structurally inconsistent."""

    pass


class LoadError(PluginError):
    """Raised when a plugin location, type or implementation cannot be resolved."""

    pass


class InitializationError(PluginError):
    """Raised when a plugin's own initialize call fails or times out."""

    pass


class PluginTimeoutError(PluginError, TimeoutError):
    """Raised when a plugin initialize or shutdown call exceeds the stage timeout."""

    pass


class PluginLoadError(PluginError):
    """
    Raised by the lifecycle when initialization fails.

    Attributes:
        plugin: Implementation name of the offending spec (None for locations
            and multi-instance specs)
        spec: The offending PluginSpec (None for locations)
    """

    def __init__(self, message: str, plugin: str | None = None, spec=None):
        super().__init__(message)
        self.plugin = plugin
        self.spec = spec


class RegistryError(PluginError, ValueError):
    """Base exception for capability registry errors."""

    pass


class DuplicateRegistrationError(RegistryError):
    """Raised when a (capability, id) key is already occupied."""

    pass


class InvalidArgumentError(RegistryError):
    """Raised when a registry call gets a null capability or instance."""

    pass


class LifecycleError(PluginError):
    """Raised when an initialization or shutdown chain is already running."""

    pass
