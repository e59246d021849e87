# hcb/services/session_service.py
"""
Contains the SessionService, which hosts a Session on a dedicated event loop
thread so that synchronous callers can drive it.
"""
import asyncio
import concurrent.futures
import logging
import threading
from typing import Optional

from hcb.session import RegistryFactory, Session
from hcb.session_context import SessionSignals


class SessionService:
    """A service that runs the arbitration core in the background."""

    def __init__(self, settings: dict, signals: Optional[SessionSignals] = None,
                 registry_factory: Optional[RegistryFactory] = None):
        """
        Initializes the session service.

        Args:
            settings: The loaded settings dictionary.
            signals: The signal bus to publish lifecycle events on.
            registry_factory: Optional override for creating the registry.
        """
        self.settings = settings
        self.signals = signals if signals is not None else SessionSignals()
        self.registry_factory = registry_factory
        self.session: Optional[Session] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self.session is not None and not self.session.is_closed

    def start(self, timeout: float = 10.0):
        """
        Starts the event loop thread and connects a session on it. Blocks
        until the connection succeeds or fails.

        Args:
            timeout: Maximum time to wait for the connection, in seconds.

        Raises:
            ServiceConnectionError: If the server cannot be reached. The
                loop thread is torn down again before raising.
        """
        if self.is_running:
            self.signals.log_message.emit("Session is already running.")
            return

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name="SessionLoopThread")
        self._thread.start()

        future = asyncio.run_coroutine_threadsafe(
            Session.connect(self.settings, self.signals, self.registry_factory),
            self._loop)
        try:
            self.session = future.result(timeout=timeout)
        except Exception:
            self._shutdown_loop()
            raise

    def stop(self, timeout: float = 10.0):
        """Exits the session and waits for the loop thread to finish."""
        if not self._loop:
            return

        if self.is_running:
            self.signals.log_message.emit("Stopping session...")
            future = asyncio.run_coroutine_threadsafe(self.session.exit(), self._loop)
            try:
                future.result(timeout=timeout)
            except Exception as e:
                logging.error("Error while exiting session: %s", e, exc_info=True)
        self._shutdown_loop()
        self.signals.log_message.emit("Session stopped.")

    def _run_loop(self):
        """Runs the event loop on the dedicated thread until stopped."""
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()

    def _shutdown_loop(self):
        """Stops the event loop and joins its thread."""
        self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread:
            self._thread.join(timeout=2.0)
            if self._thread.is_alive():
                self.signals.log_message.emit(
                    "Warning: session loop thread did not stop in time.")
        self._thread = None
        self._loop = None

    def _submit(self, operation: str, *args) -> concurrent.futures.Future:
        """Schedules a session operation on the loop thread."""
        if not self.is_running:
            raise RuntimeError(f"Cannot {operation}; session service is not running.")
        coro = getattr(self.session, operation)(*args)
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def control(self, intensity: float, position: Optional[float] = None,
                oscillate: bool = False) -> concurrent.futures.Future:
        return self._submit('control', intensity, position, oscillate)

    def set(self, intensity: float) -> concurrent.futures.Future:
        return self._submit('set', intensity)

    def press(self, value: float) -> concurrent.futures.Future:
        return self._submit('press', value)

    def fade(self, target: float, smoothness: float = 1.0) -> concurrent.futures.Future:
        return self._submit('fade', target, smoothness)

    def fade_in(self) -> concurrent.futures.Future:
        return self._submit('fade_in')

    def fade_out(self) -> concurrent.futures.Future:
        return self._submit('fade_out')

    def pulse(self, rebound_speed: float) -> concurrent.futures.Future:
        return self._submit('pulse', rebound_speed)

    def hold(self, rebound_speed: float) -> concurrent.futures.Future:
        return self._submit('hold', rebound_speed)

    def stop_devices(self) -> concurrent.futures.Future:
        """Submits the session's Stop; `stop()` tears the service down."""
        return self._submit('stop')
