"""
Host Environment.

The environment is handed unchanged to every plugin's initialize call. The
lifecycle only reads the legacy single plugin location from it.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from plughost.plugin.registry import CapabilityRegistry

PLUGIN_PATH_KEY = "core.plugin_path"


@dataclass
class Environment:
    """
    Configuration and runtime handles shared with plugins.

    Attributes:
        config: Flat host configuration mapping
        registry: Capability registry owned by the host
    """

    config: dict[str, Any] = field(default_factory=dict)
    registry: CapabilityRegistry | None = None


def legacy_plugin_path(environment: Any) -> str | None:
    """
    Get the legacy single plugin location from an environment.

    Args:
        environment: Environment object, or a plain mapping

    Returns:
        Location string, or None if unset or blank
    """
    config = environment if isinstance(environment, Mapping) else getattr(
        environment, "config", None
    )
    if not isinstance(config, Mapping):
        return None

    value = config.get(PLUGIN_PATH_KEY)
    if value is None:
        return None
    value = str(value).strip()
    return value or None
