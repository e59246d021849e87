# hcb/services/lifecycle_logger.py
"""
Contains the LifecycleLogger, which forwards the session's lifecycle signals
to the standard logging system.
"""
import logging

from PySide6.QtCore import Qt

from hcb.session_context import SessionSignals


class LifecycleLogger:
    """Subscribes to a SessionSignals bus and logs every event."""

    def __init__(self, signals: SessionSignals):
        """
        Connects the logger to the signal bus.

        Args:
            signals: The session signal bus to observe.
        """
        self.signals = signals
        # Events arrive from the session loop thread; no Qt event loop is
        # required to deliver them.
        direct = Qt.ConnectionType.DirectConnection
        signals.log_message.connect(self.on_log_message, direct)
        signals.connection_changed.connect(self.on_connection_changed, direct)
        signals.device_added.connect(self.on_device_added, direct)
        signals.device_removed.connect(self.on_device_removed, direct)
        signals.loop_status_changed.connect(self.on_loop_status_changed, direct)
        signals.mode_changed.connect(self.on_mode_changed, direct)
        signals.fade_status_changed.connect(self.on_fade_status_changed, direct)

    def on_log_message(self, message: str):
        logging.info(message)

    def on_connection_changed(self, connected: bool):
        logging.info("Connection %s.", "established" if connected else "closed")

    def on_device_added(self, name: str):
        logging.info("Device added: %s", name)

    def on_device_removed(self, name: str):
        logging.info("Device removed: %s", name)

    def on_loop_status_changed(self, name: str, running: bool):
        logging.info("%s loop %s.", name.capitalize(), "running" if running else "ended")

    def on_mode_changed(self, mode: str):
        logging.debug("Stroke mode is now %s.", mode)

    def on_fade_status_changed(self, fading: bool):
        logging.debug("Fade %s.", "started" if fading else "finished")
