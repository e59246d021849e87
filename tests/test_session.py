"""
Session lifecycle: connecting, the public control surface, and exit.
"""

import asyncio
import time

import pytest
from PySide6.QtCore import Qt

from fakes import FakeRegistry
from hcb.errors import ServiceConnectionError
from hcb.session import Session
from hcb.session_context import SessionContext, SessionSignals, StrokeMode


class SignalRecorder:
    """Records lifecycle signals emitted on a SessionSignals bus."""

    def __init__(self, signals: SessionSignals) -> None:
        self.messages: list[str] = []
        self.connection: list[bool] = []
        self.loops: list[tuple[str, bool]] = []
        direct = Qt.ConnectionType.DirectConnection
        signals.log_message.connect(self.messages.append, direct)
        signals.connection_changed.connect(self.connection.append, direct)
        signals.loop_status_changed.connect(self.on_loop_status, direct)

    def on_loop_status(self, name: str, running: bool) -> None:
        self.loops.append((name, running))


@pytest.fixture
def signals() -> SessionSignals:
    return SessionSignals()


@pytest.fixture
def recorder(signals: SessionSignals) -> SignalRecorder:
    return SignalRecorder(signals)


def make_factory(registry: FakeRegistry):
    async def factory(context: SessionContext) -> FakeRegistry:
        return registry
    return factory


async def failing_factory(context: SessionContext) -> FakeRegistry:
    raise ServiceConnectionError("Could not connect to ws://127.0.0.1:1")


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_starts_both_loops(self, registry: FakeRegistry,
                                             signals: SessionSignals,
                                             recorder: SignalRecorder) -> None:
        session = await Session.connect(signals=signals,
                                        registry_factory=make_factory(registry))
        await asyncio.sleep(0.02)

        assert session.oscillation_loop.is_running
        assert session.stroke_loop.is_running
        assert recorder.connection == [True]
        assert ("oscillation", True) in recorder.loops
        assert ("stroke", True) in recorder.loops

        await session.exit()

    @pytest.mark.asyncio
    async def test_settings_override_defaults(self, registry: FakeRegistry) -> None:
        session = await Session.connect(settings={'loop_join_timeout_s': 5.0},
                                        registry_factory=make_factory(registry))
        assert session.context.config['loop_join_timeout_s'] == 5.0
        assert session.context.config['default_fade_smoothness'] == 1.0
        await session.exit()

    @pytest.mark.asyncio
    async def test_failed_connect_starts_nothing(self, signals: SessionSignals,
                                                 recorder: SignalRecorder) -> None:
        with pytest.raises(ServiceConnectionError):
            await Session.connect(signals=signals, registry_factory=failing_factory)

        assert recorder.connection == []
        assert recorder.loops == []
        assert [t.get_name() for t in asyncio.all_tasks()
                if t.get_name().endswith("_loop")] == []


class TestControlSurface:
    @pytest.mark.asyncio
    async def test_set_starts_oscillating(self, registry: FakeRegistry) -> None:
        session = await Session.connect(registry_factory=make_factory(registry))
        started = time.monotonic()
        await session.set(0.5)

        assert session.position.mode is StrokeMode.AUTO
        assert session.position.oscillation_speed == 0.5
        assert session.intensity.current == 0.5
        assert registry.commands("vibrate") == [("vibrate", "stroker", 0.5)]

        deadline = started + 2.0
        while not registry.commands("linear") and time.monotonic() < deadline:
            await asyncio.sleep(0.01)
        assert registry.commands("linear") == [("linear", "stroker", 1250, 0.35)]

        await session.exit()

    @pytest.mark.asyncio
    async def test_manual_strokes_follow_requests(self, registry: FakeRegistry) -> None:
        session = await Session.connect(registry_factory=make_factory(registry))
        await session.control(0.5)
        await session.control(0.3)

        deadline = time.monotonic() + 1.5
        while len(registry.commands("linear")) < 2 and time.monotonic() < deadline:
            await asyncio.sleep(0.01)
        assert registry.commands("linear") == [
            ("linear", "stroker", 500, 0.5),
            ("linear", "stroker", 200, 0.3),
        ]
        assert session.position.last_position == 0.3

        await session.exit()

    @pytest.mark.asyncio
    async def test_stop_zeroes_intensity_and_speed(self, registry: FakeRegistry) -> None:
        session = await Session.connect(registry_factory=make_factory(registry))
        await session.set(0.8)
        await session.stop()

        assert session.intensity.current == 0.0
        assert session.position.oscillation_speed == 0.0
        assert session.position.mode is StrokeMode.MANUAL
        assert registry.commands("vibrate")[-1] == ("vibrate", "stroker", 0.0)

        await session.exit()


class TestExit:
    @pytest.mark.asyncio
    async def test_exit_zeroes_devices_before_disconnecting(
            self, registry: FakeRegistry, signals: SessionSignals,
            recorder: SignalRecorder) -> None:
        session = await Session.connect(signals=signals,
                                        registry_factory=make_factory(registry))
        await session.set(0.5)
        await asyncio.sleep(0.05)

        await session.exit()

        kinds = [(entry[0],) + tuple(entry[2:-1]) for entry in registry.log
                 if entry[0] != "vibrate" or entry[2] == 0.0]
        assert kinds == [
            ("vibrate", 0.0),
            ("linear", 500, 0.0),
            ("stop_all",),
            ("disconnect",),
        ]
        assert not session.oscillation_loop.is_running
        assert not session.stroke_loop.is_running
        assert recorder.connection == [True, False]
        assert ("oscillation", False) in recorder.loops
        assert ("stroke", False) in recorder.loops

    @pytest.mark.asyncio
    async def test_loops_observe_cancellation_promptly(self, registry: FakeRegistry) -> None:
        session = await Session.connect(registry_factory=make_factory(registry))
        await asyncio.sleep(0.05)

        exit_task = asyncio.create_task(session.exit())
        await asyncio.sleep(0.02)
        assert not session.stroke_loop.is_running
        linear = registry.commands("linear")
        assert linear == [("linear", "stroker", 500, 0.0)]

        await exit_task

    @pytest.mark.asyncio
    async def test_running_fade_goes_quiet_after_exit(self, registry: FakeRegistry) -> None:
        session = await Session.connect(registry_factory=make_factory(registry))
        fade_task = asyncio.create_task(session.fade(1.0))
        await asyncio.sleep(0.1)

        await session.exit()
        await asyncio.wait_for(fade_task, timeout=1.0)

        disconnected_at = next(i for i, e in enumerate(registry.log) if e[0] == "disconnect")
        assert [e for e in registry.log[disconnected_at + 1:] if e[0] == "vibrate"] == []
        assert session.intensity.fading is False

    @pytest.mark.asyncio
    async def test_second_exit_is_ignored(self, registry: FakeRegistry,
                                          signals: SessionSignals,
                                          recorder: SignalRecorder) -> None:
        session = await Session.connect(signals=signals,
                                        registry_factory=make_factory(registry))
        await session.exit()
        log_length = len(registry.log)

        await session.exit()

        assert len(registry.log) == log_length
        assert "Session has already exited." in recorder.messages
        assert recorder.connection == [True, False]

    @pytest.mark.asyncio
    async def test_calls_after_exit_are_ignored(self, registry: FakeRegistry,
                                                caplog: pytest.LogCaptureFixture) -> None:
        session = await Session.connect(registry_factory=make_factory(registry))
        await session.exit()
        log_length = len(registry.log)

        with caplog.at_level("WARNING"):
            await session.control(0.7)
            await session.pulse(0.5)
            await session.fade_in()

        assert len(registry.log) == log_length
        assert "Ignoring control(); the session has exited." in caplog.text
        assert "Ignoring pulse(); the session has exited." in caplog.text
