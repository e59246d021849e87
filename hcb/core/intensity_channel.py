# hcb/core/intensity_channel.py
"""
Contains the IntensityChannel, the single entry point through which every
intensity-affecting request flows, including the fade state machine.
"""
import logging
from typing import TYPE_CHECKING, Optional

from hcb.core.device_registry import send_raw
from hcb.core.motion_math import (
    clamp_unit, fade_steps, fade_tick_seconds, resolve_position
)

if TYPE_CHECKING:
    from hcb.core.device_registry import DeviceRegistry
    from hcb.core.position_arbiter import PositionArbiter
    from hcb.session_context import SessionContext


class IntensityChannel:
    """Owns the overall intensity and routes position requests."""

    def __init__(self, context: 'SessionContext', registry: 'DeviceRegistry',
                 arbiter: 'PositionArbiter'):
        """
        Initializes the IntensityChannel.

        Args:
            context: The session context holding the shared state.
            registry: The live device registry.
            arbiter: The position arbiter receiving mode switches and targets.
        """
        self.context = context
        self.registry = registry
        self.arbiter = arbiter

    async def control(self, intensity: float, position: Optional[float] = None,
                      oscillate: bool = False):
        """
        Directly controls all devices with the provided parameters.

        Args:
            intensity: Intensity for vibrators, oscillators, and rotators.
            position: Position of linear actuators. If omitted (or negative),
                the intensity is used as the position.
            oscillate: If True and no position is given, let the linear
                actuators oscillate automatically at a speed based on the
                intensity.
        """
        if not self.registry.devices():
            return

        intensity = clamp_unit(intensity)
        position = resolve_position(position)

        with self.context.state_lock:
            if not self.context.intensity.fading:
                self.context.intensity.current = intensity
        location = intensity if position is None else position

        if position is None and oscillate:
            self.arbiter.engage_auto(intensity)
        elif not self.arbiter.request_position(location):
            logging.debug("Position %.3f suppressed as a duplicate.", location)

        await send_raw(self.context, self.registry, intensity)

    async def set(self, intensity: float):
        """Vibrates, oscillates, and strokes all devices at one intensity."""
        await self.control(intensity, oscillate=True)

    async def press(self, value: float):
        """Sets all devices to the same constant intensity and position."""
        await self.control(value)

    async def stop(self):
        """Brings all devices and the oscillation speed to zero."""
        await self.control(0.0)
        self.arbiter.reset_oscillation_speed()

    async def fade(self, target: float, smoothness: float = 1.0):
        """
        Fades the intensity of all devices to a target.

        Only one fade may run at a time; a request made while another fade
        is in progress is ignored.

        Args:
            target: The target intensity, higher or lower than the current.
            smoothness: Between 0.1 and 1.0; lower values tick more slowly.
        """
        with self.context.state_lock:
            if self.context.intensity.fading:
                rejected = True
            else:
                rejected = False
                self.context.intensity.fading = True
                start = self.context.intensity.current
        if rejected:
            self.context.signals.log_message.emit(
                "Fade request ignored; a fade is already in progress.")
            return

        target = clamp_unit(target)
        tick_s = fade_tick_seconds(smoothness)
        self.context.signals.fade_status_changed.emit(True)
        try:
            for value in fade_steps(start, target):
                if self.context.is_closed:
                    return
                with self.context.state_lock:
                    self.context.intensity.current = clamp_unit(value)
                await self.press(value)
                await self.context.sleep(tick_s)
            if self.context.is_closed:
                return
            with self.context.state_lock:
                self.context.intensity.current = target
            await self.press(target)
        finally:
            with self.context.state_lock:
                self.context.intensity.fading = False
            self.context.signals.fade_status_changed.emit(False)

    async def fade_in(self):
        """Fades all devices in from the current intensity to full power."""
        await self.fade(1.0, self.context.config.get('default_fade_smoothness', 1.0))

    async def fade_out(self):
        """Fades all devices out from the current intensity to zero."""
        await self.fade(0.0, self.context.config.get('default_fade_smoothness', 1.0))

    async def raw(self, intensity: float):
        """Sets every non-linear actuator to one intensity, bypassing state."""
        await send_raw(self.context, self.registry, clamp_unit(intensity))
