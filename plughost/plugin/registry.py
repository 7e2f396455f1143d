"""
Capability Registry.

This module provides the mapping from (capability type, id) to live plugin
instances.

Key features:
- Insert-if-absent registration, never overwrites
- Default lookup under a None id
- Thread-safe insert and lookup
"""

import threading
from typing import Any

from plughost.plugin.base import Plugin
from plughost.plugin.errors import DuplicateRegistrationError, InvalidArgumentError


class CapabilityRegistry:
    """
    Registry of loaded plugins.

    The host creates one registry and hands it to the lifecycle and to any
    component that needs lookup access.
    """

    def __init__(self):
        # capability -> id -> instance
        self._plugins: dict[type, dict[str | None, Plugin]] = {}
        self._order: list[Plugin] = []
        self._lock = threading.Lock()

    def register(self, capability: type, id: str | None, instance: Plugin) -> None:
        """
        Register a plugin instance.

        The instance should already be initialized.

        Args:
            capability: Capability type the instance is registered under
            id: Identifier, or None for the default instance
            instance: Live plugin instance

        Raises:
            InvalidArgumentError: If capability or instance is None, or the
                instance does not implement the capability
            DuplicateRegistrationError: If the key is already occupied
        """
        if capability is None:
            raise InvalidArgumentError("Capability cannot be None.")
        if instance is None:
            raise InvalidArgumentError("Plugin cannot be None.")
        if not isinstance(instance, capability):
            raise InvalidArgumentError(
                f"Plugin {instance!r} is not an instance of {capability.__name__}"
            )

        with self._lock:
            by_id = self._plugins.setdefault(capability, {})
            extant = by_id.get(id)
            if extant is not None:
                raise DuplicateRegistrationError(
                    f"Plugin with ID {id} and capability {capability.__name__} "
                    f"already exists: {extant!r}"
                )
            by_id[id] = instance
            self._order.append(instance)

    def lookup(self, capability: type, id: str | None = None) -> Any:
        """
        Get the plugin registered under a key.

        Args:
            capability: Capability type
            id: Identifier, or None for the default

        Returns:
            Plugin instance, or None if not registered

        Raises:
            InvalidArgumentError: If capability is None
        """
        if capability is None:
            raise InvalidArgumentError("Capability cannot be None.")
        with self._lock:
            by_id = self._plugins.get(capability)
            if by_id is None:
                return None
            return by_id.get(id)

    def lookup_default(self, capability: type) -> Any:
        """Get the default plugin for a capability."""
        return self.lookup(capability, None)

    def instances(self) -> list[Plugin]:
        """
        List registered instances.

        Returns:
            Instances in registration order
        """
        with self._lock:
            return list(self._order)

    def __contains__(self, key: tuple[type, str | None]) -> bool:
        capability, id = key
        with self._lock:
            return id in self._plugins.get(capability, {})

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)
