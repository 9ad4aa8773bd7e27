import asyncio

import pytest

from automator.handlers import REGISTRY, HandlerRegistry


class Recorder:
    """Handler factory recording every call made to the handlers it builds."""

    def __init__(self):
        self.calls: list[tuple[str, dict, dict]] = []

    def returning(self, name: str, value=None, delay: float = 0):
        async def handler(descriptor, context):
            self.calls.append((name, descriptor, dict(context)))
            if delay:
                await asyncio.sleep(delay)
            return value
        return handler

    def failing(self, name: str, error: Exception, delay: float = 0):
        async def handler(descriptor, context):
            self.calls.append((name, descriptor, dict(context)))
            if delay:
                await asyncio.sleep(delay)
            raise error
        return handler

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def context_of(self, name: str) -> dict:
        return next(call[2] for call in self.calls if call[0] == name)


@pytest.fixture
def registry():
    return HandlerRegistry()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture(autouse=True)
def isolate_default_registry():
    # Tests registering into the process-wide registry must not leak
    saved = {name: REGISTRY.get(name) for name in REGISTRY.names()}
    yield
    REGISTRY.clear()
    for name, handler in saved.items():
        REGISTRY.register(name, handler)


@pytest.fixture(autouse=True)
def automator_home(monkeypatch, tmp_path):
    home = tmp_path / "automator_home"
    monkeypatch.setenv("AUTOMATOR_HOME", str(home))
    return home
