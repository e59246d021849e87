# hcb/core/device_registry.py
"""
Defines the boundary with the external device-control service: the abstract
DeviceHandle and DeviceRegistry types, and the fan-out helpers that send one
logical command to every capable device.
"""
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hcb.session_context import SessionContext


class DeviceHandle(ABC):
    """
    A single connected device. Each capability count is the number of
    independent actuator channels in that group; a count above zero means
    the device is capable.
    """
    name: str = 'device'

    @property
    @abstractmethod
    def vibrate_count(self) -> int: ...

    @property
    @abstractmethod
    def rotate_count(self) -> int: ...

    @property
    @abstractmethod
    def oscillate_count(self) -> int: ...

    @property
    @abstractmethod
    def linear_count(self) -> int: ...

    @abstractmethod
    async def send_vibrate(self, intensity: float): ...

    @abstractmethod
    async def send_rotate(self, intensity: float, clockwise: bool): ...

    @abstractmethod
    async def send_oscillate(self, intensity: float): ...

    @abstractmethod
    async def send_linear(self, duration_ms: int, position: float): ...


class DeviceRegistry(ABC):
    """The live, continuously changing set of connected devices."""

    @abstractmethod
    def devices(self) -> list[DeviceHandle]:
        """Returns a snapshot of the currently connected devices."""

    @abstractmethod
    async def stop_all(self):
        """Stops scanning and halts every connected device."""

    @abstractmethod
    async def disconnect(self):
        """Terminates the connection to the device-control service."""


async def send_raw(context: 'SessionContext', registry: DeviceRegistry,
                   intensity: float):
    """
    Sets every vibrator, oscillator, and rotator to the same intensity.

    Args:
        context: The session context, used for command logging.
        registry: The device registry to fan out across.
        intensity: The shared intensity, from 0.0 to 1.0.
    """
    if context.config.get('print_device_commands', False):
        logging.info("RAW: intensity=%.3f", intensity)

    for device in registry.devices():
        try:
            if device.vibrate_count > 0:
                await device.send_vibrate(intensity)
            if device.oscillate_count > 0:
                await device.send_oscillate(intensity)
            if device.rotate_count > 0:
                await device.send_rotate(intensity, True)
        except Exception as e:
            logging.warning("Raw command to '%s' failed: %s", device.name, e)


async def send_linear(context: 'SessionContext', registry: DeviceRegistry,
                      duration_ms: int, position: float):
    """
    Moves every linear actuator to the same position.

    Args:
        context: The session context, used for command logging.
        registry: The device registry to fan out across.
        duration_ms: The transition duration in milliseconds.
        position: The target position, from 0.0 to 1.0.
    """
    if context.config.get('print_device_commands', False):
        logging.info("LINEAR: duration=%dms position=%.3f",
                     duration_ms, position)

    for device in registry.devices():
        if device.linear_count <= 0:
            continue
        try:
            await device.send_linear(int(duration_ms), position)
        except Exception as e:
            logging.warning("Linear command to '%s' failed: %s", device.name, e)
