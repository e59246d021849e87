# hcb/session.py
"""
Defines the Session, the arbitration core for one connection to the
device-control service. It owns the device registry, the shared state, and
both background loops, and exposes the public control surface.
"""
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from hcb.core import gestures
from hcb.core.intensity_channel import IntensityChannel
from hcb.core.oscillation_loop import OscillationLoop
from hcb.core.position_arbiter import PositionArbiter
from hcb.core.stroke_loop import StrokeLoop
from hcb.session_context import (
    IntensitySnapshot, PositionSnapshot, SessionContext, SessionSignals
)

if TYPE_CHECKING:
    from hcb.core.device_registry import DeviceRegistry

RegistryFactory = Callable[[SessionContext], Awaitable['DeviceRegistry']]


class Session:
    """Orchestrates the intensity channel, the arbiter, and both loops."""

    def __init__(self, context: SessionContext, registry: 'DeviceRegistry'):
        """
        Initializes the Session. Use `Session.connect` to create one from
        settings; the constructor expects an already connected registry.

        Args:
            context: The session context holding settings, state, and signals.
            registry: The connected device registry.
        """
        self.context = context
        self.registry = registry
        self.arbiter = PositionArbiter(context)
        self.channel = IntensityChannel(context, registry, self.arbiter)
        self.oscillation_loop = OscillationLoop(context, registry, self.arbiter)
        self.stroke_loop = StrokeLoop(context, registry, self.arbiter)

    @classmethod
    async def connect(cls, settings: Optional[dict] = None,
                      signals: Optional[SessionSignals] = None,
                      registry_factory: Optional[RegistryFactory] = None
                      ) -> 'Session':
        """
        Establishes the connection and starts both background loops.

        Args:
            settings: The loaded settings dictionary.
            signals: The signal bus to publish lifecycle events on.
            registry_factory: Coroutine function creating the registry.
                Defaults to the buttplug client adapter.

        Returns:
            A running Session.

        Raises:
            ServiceConnectionError: If the service cannot be reached. No
                loops are started in that case.
        """
        if registry_factory is None:
            from hcb.services.buttplug_client import connect as registry_factory

        context = SessionContext(settings, signals)
        registry = await registry_factory(context)
        session = cls(context, registry)
        context.signals.connection_changed.emit(True)
        context.signals.log_message.emit("Connected to device server.")
        session.start()
        return session

    def start(self):
        """Spawns the oscillation and stroke loops."""
        self.oscillation_loop.start()
        self.stroke_loop.start()

    @property
    def is_closed(self) -> bool:
        return self.context.is_closed

    @property
    def intensity(self) -> IntensitySnapshot:
        return self.context.intensity_snapshot()

    @property
    def position(self) -> PositionSnapshot:
        return self.context.position_snapshot()

    def _is_usable(self, operation: str) -> bool:
        if self.is_closed:
            logging.warning("Ignoring %s(); the session has exited.", operation)
            return False
        return True

    async def control(self, intensity: float, position: Optional[float] = None,
                      oscillate: bool = False):
        """
        Directly controls all devices.

        Args:
            intensity: Intensity for vibrators, oscillators, and rotators.
            position: Position of linear actuators; defaults to intensity.
            oscillate: Oscillate the linear actuators automatically at a speed
                based on intensity. Only applies when position is omitted.
        """
        if self._is_usable('control'):
            await self.channel.control(intensity, position, oscillate)

    async def set(self, intensity: float):
        if self._is_usable('set'):
            await self.channel.set(intensity)

    async def press(self, value: float):
        if self._is_usable('press'):
            await self.channel.press(value)

    async def fade(self, target: float, smoothness: float = 1.0):
        if self._is_usable('fade'):
            await self.channel.fade(target, smoothness)

    async def fade_in(self):
        if self._is_usable('fade_in'):
            await self.channel.fade_in()

    async def fade_out(self):
        if self._is_usable('fade_out'):
            await self.channel.fade_out()

    async def pulse(self, rebound_speed: float):
        if self._is_usable('pulse'):
            await gestures.pulse(self.channel, self.arbiter, rebound_speed)

    async def hold(self, rebound_speed: float):
        if self._is_usable('hold'):
            await gestures.hold(self.channel, rebound_speed)

    async def stop(self):
        if self._is_usable('stop'):
            await self.channel.stop()

    async def exit(self):
        """
        Stops all devices, cancels and joins both loops, then closes the
        server connection. Only the first call has any effect.
        """
        if self.is_closed:
            self.context.signals.log_message.emit("Session has already exited.")
            return

        self.context.is_closed = True
        await self.channel.stop()

        self.oscillation_loop.cancel()
        self.stroke_loop.cancel()
        timeout = float(self.context.config.get('loop_join_timeout_s', 3.0))
        await self.oscillation_loop.join(timeout)
        await self.stroke_loop.join(timeout)

        await self.registry.stop_all()
        await self.registry.disconnect()
        self.context.signals.connection_changed.emit(False)
