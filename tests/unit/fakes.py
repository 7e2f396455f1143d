"""
Instrumented fake plugins for lifecycle tests.

Every plugin records start/end events into a shared Recorder so tests can
assert on the exact interleaving of initialize and shutdown calls.
"""

import asyncio
from functools import partial
from typing import Any

from plughost.plugin.base import Plugin


class Recorder:
    """Ordered log of plugin events."""

    def __init__(self):
        self.events: list[tuple[str, str]] = []

    def record(self, event: str, name: str) -> None:
        self.events.append((event, name))

    def names(self, event: str) -> list[str]:
        return [name for kind, name in self.events if kind == event]

    def index(self, event: str, name: str) -> int:
        return self.events.index((event, name))


class FakePlugin(Plugin):
    """Concrete plugin with configurable failures and delays."""

    def __init__(
        self,
        recorder: Recorder | None = None,
        name: str | None = None,
        fail_init: bool = False,
        fail_shutdown: bool = False,
        delay: float = 0.0,
    ):
        self.recorder = recorder or Recorder()
        self.name = name or type(self).__name__
        self.fail_init = fail_init
        self.fail_shutdown = fail_shutdown
        self.delay = delay
        self.environment: Any = None
        self.initialized = False
        self.shut_down = False

    async def initialize(self, environment: Any) -> None:
        self.recorder.record("init-start", self.name)
        await asyncio.sleep(self.delay)
        if self.fail_init:
            raise RuntimeError(f"{self.name} failed to initialize")
        self.environment = environment
        self.initialized = True
        self.recorder.record("init-end", self.name)

    async def shutdown(self) -> None:
        self.recorder.record("shutdown", self.name)
        await asyncio.sleep(0)
        if self.fail_shutdown:
            raise RuntimeError(f"{self.name} failed to shut down")
        self.shut_down = True

    def id(self) -> str:
        return self.name

    def version(self) -> str:
        return "1.0.0"


class Auth(FakePlugin):
    """Capability: authentication."""


class LdapAuth(Auth):
    pass


class TokenAuth(Auth):
    pass


class Filter(FakePlugin):
    """Capability: filtering."""


class RegexFilter(Filter):
    pass


class PrefixFilter(Filter):
    pass


class SuffixFilter(Filter):
    pass


class Executor(FakePlugin):
    """Capability: query execution."""


class LocalExecutor(Executor):
    pass


class Hanging(FakePlugin):
    """Plugin whose initialize never completes on its own."""

    async def initialize(self, environment: Any) -> None:
        self.recorder.record("init-start", self.name)
        await asyncio.Event().wait()


def factory(cls: type, recorder: Recorder, **kwargs: Any):
    """Zero-argument factory bound to a recorder."""
    return partial(cls, recorder, **kwargs)


class HangingAuth(Hanging, Auth):
    pass


class StuckAuth(Auth):
    """Auth plugin whose shutdown never completes on its own."""

    async def shutdown(self) -> None:
        self.recorder.record("shutdown", self.name)
        await asyncio.Event().wait()
