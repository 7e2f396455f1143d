"""
Plugin Spec System.

This module provides the declared form of a plugin and validation of the
declared spec list.

Key features:
- PluginSpec dataclass with transient resolution fields
- Multi-instance vs. specific (id or default) plugin modes
- Per-type uniqueness of ids, defaults and multi-instance entries
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from plughost.plugin.base import Plugin
from plughost.plugin.errors import ValidationError


@dataclass
class PluginSpec:
    """
    Declared intent to load one plugin.

    Attributes:
        type: Name of the capability type the plugin implements
        plugin: Implementation name (empty for multi-instance mode)
        id: Identifier distinguishing instances of the same type
        is_default: Register under a None id and serve default lookups
        capability: Resolved capability type (set during initialization)
        instance: Resolved live plugin (set during initialization)
    """

    type: str
    plugin: str | None = None
    id: str | None = None
    is_default: bool = False
    capability: type | None = field(default=None, compare=False, repr=False)
    instance: Plugin | None = field(default=None, compare=False, repr=False)

    @property
    def is_multi_instance(self) -> bool:
        """True when every implementation of the type should be loaded."""
        return not self.plugin and not self.id and not self.is_default

    @property
    def registry_id(self) -> str | None:
        """Id used as registry key for a specific spec."""
        return None if self.is_default else self.id

    def to_dict(self) -> dict[str, Any]:
        """
        Get the declared form of this plugin spec.

        Returns:
            Dictionary with only the populated declared fields
        """
        data: dict[str, Any] = {"type": self.type}
        if self.plugin:
            data["plugin"] = self.plugin
        if self.id:
            data["id"] = self.id
        if self.is_default:
            data["is_default"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PluginSpec":
        """
        Build a spec from its declared form.

        Unknown keys are ignored. "default" is accepted as an alias of
        "is_default".

        Args:
            data: Declared spec mapping

        Returns:
            PluginSpec instance

        Raises:
            ValidationError: If a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Plugin spec must be a table, got: {data!r}")

        for key in ("type", "plugin", "id"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"'{key}' field must be a string: {data!r}")

        is_default = data.get("is_default", data.get("default", False))
        if not isinstance(is_default, bool):
            raise ValidationError(f"'is_default' field must be a boolean: {data!r}")

        return cls(
            type=data.get("type") or "",
            plugin=data.get("plugin") or None,
            id=data.get("id") or None,
            is_default=is_default,
        )

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)


def validate_specs(specs: Iterable[PluginSpec] | None) -> None:
    """
    Validate a declared spec list.

    Rules:
    1. Every spec must have a type
    2. Only one multi-instance spec per type
    3. Specs naming a plugin need an id or is_default, never both
    4. Ids are unique per type
    5. Only one default per type

    Args:
        specs: Declared specs (None or empty is valid)

    Raises:
        ValidationError: On the first violation, naming the offending spec
    """
    if not specs:
        return

    type_ids: dict[str, set[str]] = {}
    defaults: set[str] = set()
    multi_types: set[str] = set()

    for spec in specs:
        if not spec.type:
            raise ValidationError(f"Type cannot be null or empty: {spec}")

        if spec.is_multi_instance:
            if spec.type in multi_types:
                raise ValidationError(
                    f"Duplicate multi-type found. Remove one of them: {spec}"
                )
            multi_types.add(spec.type)
            continue

        if spec.is_default and spec.id:
            raise ValidationError(f"Default configs cannot have an ID: {spec}")

        if not spec.id and not spec.is_default:
            raise ValidationError(
                f"Specific plugin instance must have an ID if it is not the default: {spec}"
            )

        if spec.is_default:
            if spec.type in defaults:
                raise ValidationError(
                    f"Cannot have more than one default for a plugin type: {spec}"
                )
            defaults.add(spec.type)
        else:
            ids = type_ids.setdefault(spec.type, set())
            if spec.id in ids:
                raise ValidationError(f"Duplicate ID found. Remove or rename one: {spec}")
            ids.add(spec.id)
