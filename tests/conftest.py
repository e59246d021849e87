"""
Shared fixtures for the test suite.

Centralizes the fake registry, the arbitration components built on it and
the sleep recorder so individual test files don't repeat that boilerplate.
"""

import pytest
from PySide6.QtCore import Qt

from fakes import FakeRegistry
from hcb.core.intensity_channel import IntensityChannel
from hcb.core.position_arbiter import PositionArbiter
from hcb.session_context import SessionContext


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> FakeRegistry:
    """A registry with a single vibrate + linear device."""
    reg = FakeRegistry()
    reg.add("stroker", vibrate=1, linear=1)
    return reg


@pytest.fixture
def empty_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def context() -> SessionContext:
    return SessionContext()


@pytest.fixture
def sleeps(context: SessionContext) -> list[float]:
    """Replaces the context's sleep with a recorder that returns at once."""
    recorded: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        recorded.append(seconds)

    context.sleep = fake_sleep
    return recorded


@pytest.fixture
def messages(context: SessionContext) -> list[str]:
    """Collects every log_message emitted on the context's signal bus."""
    collected: list[str] = []

    def on_message(message: str) -> None:
        collected.append(message)

    context.signals.log_message.connect(on_message, Qt.ConnectionType.DirectConnection)
    return collected


@pytest.fixture
def arbiter(context: SessionContext) -> PositionArbiter:
    return PositionArbiter(context)


@pytest.fixture
def channel(context: SessionContext, registry: FakeRegistry,
            arbiter: PositionArbiter) -> IntensityChannel:
    return IntensityChannel(context, registry, arbiter)
