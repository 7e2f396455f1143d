"""
Plugin Code Loader.

This module resolves capability types and plugin implementations by name.

Key features:
- Explicit factory table keyed by stable implementation names
- importlib loading of plugin files and directories
- Module-level register(loader) hooks
- Entry point discovery for installed distributions
- Module caching and unloading
"""

import hashlib
import importlib
import importlib.metadata
import importlib.util
import re
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from types import ModuleType

from loguru import logger

from plughost.plugin.base import Plugin, qualified_name
from plughost.plugin.errors import LoadError

ENTRY_POINT_GROUP = "plughost.plugins"


@dataclass
class Factory:
    """
    A registered plugin implementation.

    Attributes:
        name: Stable implementation name
        factory: Zero-argument callable returning a new plugin instance
        capabilities: Capability types the implementation provides
    """

    name: str
    factory: Callable[[], Plugin]
    capabilities: tuple[type, ...] = ()

    @property
    def produces(self) -> type | None:
        """Class the factory instantiates, looking through functools.partial."""
        target = self.factory
        while isinstance(target, partial):
            target = target.func
        return target if isinstance(target, type) else None

    def implements(self, capability: type) -> bool:
        """
        Check if this implementation provides a capability.

        Args:
            capability: Capability type

        Returns:
            True if declared, or inherited by the produced class
        """
        if any(issubclass(cap, capability) for cap in self.capabilities):
            return True
        produces = self.produces
        return produces is not None and issubclass(produces, capability)

    def create(self) -> Plugin:
        """Instantiate the implementation."""
        try:
            return self.factory()
        except Exception as e:
            raise LoadError(f"Failed to instantiate plugin {self.name}: {e}") from e


class CodeLoader:
    """
    Registry of loadable plugin code.

    Plugin modules register their capability types and implementations
    through a module-level hook:

        def register(loader):
            loader.register_capability("Filter", Filter)
            loader.register_factory("my.Filter", MyFilter)
    """

    def __init__(self):
        self._capabilities: dict[str, type] = {}
        self._factories: dict[str, Factory] = {}
        self._entries: list[Factory] = []
        # Module cache: resolved path -> module
        self._modules: dict[Path, ModuleType] = {}

    def register_capability(self, name: str, capability: type) -> None:
        """
        Register a capability type under a stable name.

        Args:
            name: Capability name used in plugin specs
            capability: Capability type

        Raises:
            LoadError: If the name is taken by another type
        """
        extant = self._capabilities.get(name)
        if extant is not None and extant is not capability:
            raise LoadError(f"Capability '{name}' already registered as {extant}")
        self._capabilities[name] = capability

    def register_factory(
        self,
        name: str,
        factory: Callable[[], Plugin],
        *capabilities: type,
        aliases: Iterable[str] = (),
    ) -> Factory:
        """
        Register a plugin implementation.

        Args:
            name: Stable implementation name
            factory: Zero-argument callable (usually the plugin class)
            *capabilities: Extra capabilities, needed when the produced class is unknown
            aliases: Additional names for the same implementation

        Returns:
            The registered Factory

        Raises:
            LoadError: If a name is taken by another implementation
        """
        entry = Factory(name=name, factory=factory, capabilities=capabilities)
        names = [name, *aliases]

        for key in names:
            extant = self._factories.get(key)
            if extant is not None and extant.factory is not factory:
                raise LoadError(f"Plugin implementation '{key}' already registered")

        existing = self._factories.get(name)
        if existing is not None:
            return existing

        for key in names:
            self._factories[key] = entry
        self._entries.append(entry)
        return entry

    def implementation(self, *aliases: str) -> Callable[[type], type]:
        """
        Class decorator registering a plugin under its qualified name.

        Args:
            *aliases: Additional names for the implementation

        Returns:
            Decorator returning the class unchanged
        """

        def decorator(cls: type) -> type:
            self.register_factory(qualified_name(cls), cls, aliases=aliases)
            return cls

        return decorator

    def resolve_capability(self, name: str) -> type:
        """
        Resolve a capability type by name.

        Registered names are checked first, then "module.Class" imports.

        Args:
            name: Capability name

        Returns:
            Capability type

        Raises:
            LoadError: If the type cannot be resolved
        """
        if name in self._capabilities:
            return self._capabilities[name]

        module_name, _, attr = name.rpartition(".")
        if not module_name:
            raise LoadError(f"Unknown capability type: {name}")

        try:
            module = importlib.import_module(module_name)
            capability = getattr(module, attr)
        except (ImportError, AttributeError) as e:
            raise LoadError(f"Unable to resolve capability type {name}: {e}") from e

        if not isinstance(capability, type):
            raise LoadError(f"Capability {name} is not a type: {capability!r}")
        return capability

    def load_specific(self, name: str, capability: type) -> Plugin | None:
        """
        Instantiate one named implementation.

        Args:
            name: Implementation name
            capability: Capability the implementation must provide

        Returns:
            New plugin instance, or None if no matching implementation

        Raises:
            LoadError: If instantiation fails
        """
        entry = self._factories.get(name) if name else None
        if entry is None or not entry.implements(capability):
            return None
        return entry.create()

    def load_all_implementing(self, capability: type) -> list[Plugin]:
        """
        Instantiate every implementation of a capability.

        Args:
            capability: Capability type

        Returns:
            One new instance per implementation, in registration order

        Raises:
            LoadError: If instantiation fails
        """
        return [entry.create() for entry in self._entries if entry.implements(capability)]

    def load_all(self, location: str | Path) -> list[ModuleType]:
        """
        Load plugin code from a file or directory.

        A directory is scanned for .py files and packages (non-recursive).

        Args:
            location: Path to a .py file or a directory

        Returns:
            Loaded modules

        Raises:
            LoadError: If the location is missing or a module fails to load
        """
        path = Path(location)
        if not path.exists():
            raise LoadError(f"Plugin location not found: {location}")

        if path.is_file():
            if path.suffix != ".py":
                raise LoadError(f"Plugin location is not a Python file: {location}")
            return [self._load_module(path)]

        modules = []
        for child in sorted(path.iterdir()):
            if child.name.startswith((".", "_")):
                continue
            if child.is_file() and child.suffix == ".py":
                modules.append(self._load_module(child))
            elif child.is_dir() and (child / "__init__.py").exists():
                modules.append(self._load_module(child / "__init__.py", package=child))
        return modules

    def load_entry_points(self, group: str = ENTRY_POINT_GROUP) -> int:
        """
        Call register hooks advertised by installed distributions.

        Args:
            group: Entry point group name

        Returns:
            Number of hooks called

        Raises:
            LoadError: If an entry point fails to load
        """
        count = 0
        for entry_point in importlib.metadata.entry_points(group=group):
            try:
                hook = entry_point.load()
                hook(self)
            except Exception as e:
                raise LoadError(
                    f"Failed to load entry point {entry_point.name}: {e}"
                ) from e
            count += 1
            logger.info("Loaded plugin entry point: {}", entry_point.name)
        return count

    def _load_module(self, file_path: Path, package: Path | None = None) -> ModuleType:
        """
        Load a single plugin module and run its register hook.

        Args:
            file_path: Module file (a package's __init__.py for packages)
            package: Package directory, if loading a package

        Returns:
            Loaded module

        Raises:
            LoadError: If loading fails
        """
        key = file_path.resolve()
        if key in self._modules:
            return self._modules[key]

        module_name = _module_name(package or file_path)

        try:
            spec = importlib.util.spec_from_file_location(
                module_name,
                file_path,
                submodule_search_locations=[str(package)] if package else None,
            )
            if spec is None or spec.loader is None:
                raise LoadError(f"Failed to create module spec for {file_path}")

            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            spec.loader.exec_module(module)

            hook = getattr(module, "register", None)
            if callable(hook):
                hook(self)
            else:
                logger.warning("Plugin module {} has no register hook", file_path)

        except Exception as e:
            sys.modules.pop(module_name, None)
            if isinstance(e, LoadError):
                raise
            raise LoadError(f"Failed to load plugin module {file_path}: {e}") from e

        self._modules[key] = module
        return module

    def unload_all(self) -> None:
        """Forget loaded modules and remove them from sys.modules."""
        for module in self._modules.values():
            sys.modules.pop(module.__name__, None)
        self._modules.clear()

    def is_loaded(self, location: str | Path) -> bool:
        """Check if a plugin file has been loaded."""
        return Path(location).resolve() in self._modules


def _module_name(path: Path) -> str:
    """Build a unique module name for a plugin file or package."""
    stem = re.sub(r"\W", "_", path.stem)
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:8]
    return f"plughost_plugin_{stem}_{digest}"
