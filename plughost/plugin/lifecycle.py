"""
Plugin Lifecycle Management.

This module initializes and shuts down the plugins declared in a
PluginsConfig.

Key features:
- Strictly sequential initialization in declared order
- Concurrent fan-out for multi-instance specs with a join before the next spec
- Continue-on-error policy for load and init failures
- Shutdown in reverse (or same) initialization completion order
- Shutdown failures are logged and never stop the chain
- Optional per-call timeout
"""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from plughost.config.plugins import PluginsConfig
from plughost.environment import legacy_plugin_path
from plughost.plugin.base import Plugin, qualified_name
from plughost.plugin.errors import (
    InitializationError,
    LifecycleError,
    LoadError,
    PluginLoadError,
    PluginTimeoutError,
    RegistryError,
)
from plughost.plugin.loader import CodeLoader
from plughost.plugin.registry import CapabilityRegistry
from plughost.plugin.spec import PluginSpec, validate_specs


@dataclass(frozen=True)
class _InitStage:
    """One step of the initialization chain."""

    index: int
    spec: PluginSpec


@dataclass
class _Pending:
    """
    An initialized plugin awaiting registration.

    Attributes:
        capability: Capability type to register under
        id: Registry id (None for defaults)
        instance: Initialized plugin
    """

    capability: type
    id: str | None
    instance: Plugin


class PluginLifecycle:
    """
    Orchestrates plugin initialization and shutdown.

    The host owns the registry and loader and calls initialize() and
    shutdown() in sequence. Only one chain of each kind may run at a time.
    """

    def __init__(
        self,
        config: PluginsConfig,
        registry: CapabilityRegistry,
        loader: CodeLoader | None = None,
        stage_timeout: float | None = None,
    ):
        """
        Initialize PluginLifecycle.

        Args:
            config: Declared plugin configuration
            registry: Registry populated during initialization
            loader: Code loader (a fresh one if not given)
            stage_timeout: Seconds allowed per plugin initialize/shutdown
                call, or None to wait indefinitely
        """
        self._config = config
        self._registry = registry
        self._loader = loader or CodeLoader()
        self._stage_timeout = stage_timeout
        self._initialized: list[Plugin] = []
        self._stopped: list[Plugin] = []
        self._initializing = False
        self._shutting_down = False

    @property
    def config(self) -> PluginsConfig:
        return self._config

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    @property
    def loader(self) -> CodeLoader:
        return self._loader

    @property
    def initialized_plugins(self) -> list[Plugin]:
        """Plugins in initialization completion order."""
        return list(self._initialized)

    def validate(self) -> None:
        """
        Validate the declared specs.

        Raises:
            ValidationError: On the first structural violation
        """
        validate_specs(self._config.configs)

    def register_plugin(self, capability: type, id: str | None, plugin: Plugin) -> None:
        """
        Register a plugin loaded outside the declared specs.

        The plugin must already be initialized. It is shut down after the
        declared plugins.

        Raises:
            InvalidArgumentError: If capability or plugin is invalid
            DuplicateRegistrationError: If the key is occupied
        """
        self._registry.register(capability, id, plugin)

    def lookup(self, capability: type | str, id: str | None = None) -> Any:
        """
        Get a registered plugin.

        Args:
            capability: Capability type or registered capability name
            id: Identifier, or None for the default

        Returns:
            Plugin instance, or None if not found

        Raises:
            InvalidArgumentError: If capability is None
        """
        if isinstance(capability, str):
            try:
                capability = self._loader.resolve_capability(capability)
            except LoadError:
                return None
        return self._registry.lookup(capability, id)

    def lookup_default(self, capability: type | str) -> Any:
        """Get the default plugin for a capability."""
        return self.lookup(capability, None)

    async def initialize(self, environment: Any) -> None:
        """
        Load plugin locations and initialize the declared plugins in order.

        Args:
            environment: Host environment passed to every plugin

        Raises:
            PluginLoadError: If a location or plugin fails and
                continue_on_error is not set
            LifecycleError: If initialization is already running
        """
        if self._initializing:
            raise LifecycleError("Plugin initialization already in progress")

        self._initializing = True
        try:
            self._load_locations(environment)

            specs = self._config.configs
            if not specs:
                return

            stages = [_InitStage(index, spec) for index, spec in enumerate(specs)]
            pending: list[_Pending] = []
            producer: _InitStage | None = None

            for stage in stages:
                self._flush(pending, producer)
                logger.debug("Starting plugin stage {}: {}", stage.index, stage.spec)
                pending = await self._run_stage(stage, environment)
                producer = stage

            self._flush(pending, producer)
            logger.info("Completed loading {} plugin(s)", len(self._initialized))
        finally:
            self._initializing = False

    async def shutdown(self) -> None:
        """
        Shut down every initialized or registered plugin.

        Declared plugins go first, in reverse initialization order unless
        shutdown_reverse is False, followed by directly registered plugins.
        Failures are logged and the remaining plugins are still shut down.
        The initialization record is cleared afterwards and a plugin is never
        shut down twice.

        Raises:
            LifecycleError: If shutdown is already running
        """
        if self._shutting_down:
            raise LifecycleError("Plugin shutdown already in progress")

        plugins = self._shutdown_order()
        if not plugins:
            return

        self._shutting_down = True
        try:
            if self._config.shutdown_reverse:
                logger.info("Shutting down plugins in reverse order of initialization")
            else:
                logger.info("Shutting down plugins in same order as initialization")

            for plugin in plugins:
                try:
                    await self._call(plugin.shutdown(), "shutdown")
                except Exception:
                    logger.exception("Failed shutting down plugin: {!r}", plugin)

            self._stopped.extend(plugins)
            self._initialized.clear()
            logger.info("Completed shutdown of plugins.")
        finally:
            self._shutting_down = False

    def _load_locations(self, environment: Any) -> None:
        """
        Hand every configured location to the code loader.

        The environment's legacy plugin path is merged into the list.

        Raises:
            PluginLoadError: If a location fails and continue_on_error is unset
        """
        locations = self._config.plugin_locations
        legacy = legacy_plugin_path(environment)
        if legacy:
            if locations is None:
                locations = []
            if legacy not in locations:
                locations.append(legacy)
            self._config.plugin_locations = locations

        for location in locations or []:
            try:
                self._loader.load_all(location)
            except (LoadError, OSError) as e:
                if self._config.continue_on_error:
                    logger.exception(
                        "Unable to read from the plugin location: {} but "
                        "configured to continue.",
                        location,
                    )
                    continue
                raise PluginLoadError(
                    f"Unable to read from plugin location: {location}"
                ) from e
            logger.info("Loaded plugin location: {}", location)

    async def _run_stage(self, stage: _InitStage, environment: Any) -> list[_Pending]:
        """
        Load and initialize the plugin(s) of one spec.

        Returns:
            Plugins to register before the next stage starts

        Raises:
            PluginLoadError: If the stage fails and continue_on_error is unset
        """
        spec = stage.spec
        try:
            if spec.is_multi_instance:
                return await self._init_multi(spec, environment)
            return await self._init_specific(spec, environment)
        except Exception as e:
            if self._config.continue_on_error:
                logger.exception("Unable to load plugin(s): {}", spec)
                return []
            if isinstance(e, LoadError):
                message = f"Unable to find instances of plugin {spec.plugin or spec.type}"
            else:
                message = f"Initialization failed for plugin {spec.plugin or spec.type}"
            raise PluginLoadError(f"{message}: {spec}", plugin=spec.plugin, spec=spec) from e

    async def _init_specific(self, spec: PluginSpec, environment: Any) -> list[_Pending]:
        capability = self._loader.resolve_capability(spec.type)
        plugin = self._loader.load_specific(spec.plugin, capability)
        if plugin is None:
            raise LoadError(f"No plugin found for type: {spec.type}")

        spec.capability = capability
        spec.instance = plugin
        logger.info("Loaded plugin {} version: {}", plugin.id(), plugin.version())

        await self._initialize_plugin(plugin, environment)
        return [_Pending(capability, spec.registry_id, plugin)]

    async def _init_multi(self, spec: PluginSpec, environment: Any) -> list[_Pending]:
        capability = self._loader.resolve_capability(spec.type)
        spec.capability = capability

        plugins = self._loader.load_all_implementing(capability)
        if not plugins:
            logger.info("No plugins found for type: {}", spec.type)
            return []

        results = await asyncio.gather(
            *(self._initialize_plugin(plugin, environment) for plugin in plugins),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        return [_Pending(capability, qualified_name(plugin), plugin) for plugin in plugins]

    async def _initialize_plugin(self, plugin: Plugin, environment: Any) -> None:
        try:
            await self._call(plugin.initialize(environment), "initialize")
        except InitializationError:
            raise
        except Exception as e:
            raise InitializationError(
                f"Plugin {plugin!r} failed to initialize: {e}"
            ) from e

    async def _call(self, awaitable: Awaitable[Any], action: str) -> None:
        """Await a plugin initialize or shutdown call, honoring the stage timeout."""
        if self._stage_timeout is None:
            await awaitable
            return
        try:
            await asyncio.wait_for(awaitable, self._stage_timeout)
        except asyncio.TimeoutError as e:
            raise PluginTimeoutError(
                f"Plugin {action} timed out after {self._stage_timeout} seconds"
            ) from e

    def _flush(self, pending: list[_Pending], producer: _InitStage | None) -> None:
        """
        Register the plugins produced by a completed stage.

        Each plugin is recorded for shutdown before registration, so a plugin
        that fails to register is still shut down.

        Raises:
            PluginLoadError: If registration fails and continue_on_error is unset
        """
        for entry in pending:
            self._initialized.append(entry.instance)
            try:
                self._registry.register(entry.capability, entry.id, entry.instance)
            except RegistryError as e:
                spec = producer.spec if producer else None
                if self._config.continue_on_error:
                    logger.exception("Unable to register plugin(s): {}", spec)
                    continue
                raise PluginLoadError(
                    f"Initialization failed for plugin {spec.plugin or spec.type}: {spec}",
                    plugin=spec.plugin,
                    spec=spec,
                ) from e
            logger.info(
                "Registered plugin {!r} as {}[{}]",
                entry.instance,
                entry.capability.__name__,
                entry.id,
            )

    def _shutdown_order(self) -> list[Plugin]:
        """
        Build the shutdown order.

        Returns:
            Each plugin not yet shut down, exactly once: the initialization
            record (reversed by default), then registry-only plugins in
            registration order
        """
        if self._config.shutdown_reverse:
            ordered = list(reversed(self._initialized))
        else:
            ordered = list(self._initialized)
        ordered.extend(self._registry.instances())

        seen = {id(plugin) for plugin in self._stopped}
        plugins = []
        for plugin in ordered:
            if id(plugin) in seen:
                continue
            seen.add(id(plugin))
            plugins.append(plugin)
        return plugins
