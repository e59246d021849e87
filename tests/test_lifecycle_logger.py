"""
LifecycleLogger: signal bus events end up in the logging system.
"""

import logging

import pytest

from hcb.services.lifecycle_logger import LifecycleLogger
from hcb.session_context import SessionSignals


@pytest.fixture
def lifecycle_logger() -> LifecycleLogger:
    return LifecycleLogger(SessionSignals())


@pytest.fixture
def signals(lifecycle_logger: LifecycleLogger) -> SessionSignals:
    return lifecycle_logger.signals


class TestLifecycleLogger:
    def test_log_messages_are_forwarded(self, signals: SessionSignals,
                                        caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            signals.log_message.emit("Connected to device server.")
        assert "Connected to device server." in caplog.messages

    def test_connection_and_devices(self, signals: SessionSignals,
                                    caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            signals.connection_changed.emit(True)
            signals.device_added.emit("Handy")
            signals.device_removed.emit("Handy")
            signals.connection_changed.emit(False)
        assert caplog.messages == [
            "Connection established.",
            "Device added: Handy",
            "Device removed: Handy",
            "Connection closed.",
        ]

    def test_loop_status(self, signals: SessionSignals,
                         caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            signals.loop_status_changed.emit("stroke", True)
            signals.loop_status_changed.emit("stroke", False)
        assert caplog.messages == ["Stroke loop running.", "Stroke loop ended."]

    def test_mode_and_fade_only_at_debug(self, signals: SessionSignals,
                                         caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            signals.mode_changed.emit("auto")
            signals.fade_status_changed.emit(True)
        assert caplog.messages == []

        with caplog.at_level(logging.DEBUG):
            signals.mode_changed.emit("manual")
            signals.fade_status_changed.emit(False)
        assert caplog.messages == ["Stroke mode is now manual.", "Fade finished."]
