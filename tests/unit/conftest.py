"""Shared fixtures for plughost unit tests."""

import pytest
from fakes import Auth, Executor, Filter, Recorder
from loguru import logger

from plughost.plugin.loader import CodeLoader
from plughost.plugin.registry import CapabilityRegistry


@pytest.fixture
def recorder():
    """Shared event recorder for fake plugins."""
    return Recorder()


@pytest.fixture
def registry():
    """Empty capability registry."""
    return CapabilityRegistry()


@pytest.fixture
def loader():
    """Code loader with the fake capability types registered."""
    loader = CodeLoader()
    loader.register_capability("Auth", Auth)
    loader.register_capability("Filter", Filter)
    loader.register_capability("Executor", Executor)
    yield loader
    loader.unload_all()


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def log_exceptions():
    """Capture exceptions attached to loguru records during a test."""
    errors: list[BaseException] = []

    def sink(message):
        exception = message.record["exception"]
        if exception is not None:
            errors.append(exception.value)

    handler_id = logger.add(sink, level="DEBUG")
    yield errors
    logger.remove(handler_id)
