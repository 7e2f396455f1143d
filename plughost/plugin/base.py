"""
Plugin Contract.

Every loadable plugin implements this interface. The lifecycle only observes
whether initialize/shutdown complete or raise, and in which order.
"""

from abc import ABC, abstractmethod
from typing import Any


class Plugin(ABC):
    """Base class for all host plugins."""

    @abstractmethod
    async def initialize(self, environment: Any) -> None:
        """
        Initialize the plugin.

        Args:
            environment: Host environment, passed through unchanged
        """

    @abstractmethod
    async def shutdown(self) -> None:
        """Release any resources held by the plugin."""

    @abstractmethod
    def id(self) -> str:
        """Return a descriptive identifier for the plugin."""

    @abstractmethod
    def version(self) -> str:
        """Return the plugin version string."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id()!r}, version={self.version()!r})"


def qualified_name(obj: Any) -> str:
    """
    Get the fully-qualified class name of an object or class.

    Args:
        obj: Class or instance

    Returns:
        "module.QualName" string
    """
    cls = obj if isinstance(obj, type) else type(obj)
    return f"{cls.__module__}.{cls.__qualname__}"
