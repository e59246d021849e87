# hcb/services/buttplug_client.py
"""
Contains the adapter between the arbitration core and the `buttplug` client
library, which speaks to an Intiface / Buttplug server over a websocket.
"""
import logging
from typing import TYPE_CHECKING

from buttplug import Client, ProtocolSpec, WebsocketConnector

from hcb.config.constants import SERVER_ADDRESS_SCHEMES
from hcb.core.device_registry import DeviceHandle, DeviceRegistry
from hcb.errors import ServiceConnectionError

if TYPE_CHECKING:
    from hcb.session_context import SessionContext


class ButtplugDeviceHandle(DeviceHandle):
    """Exposes a buttplug Device through the capability-group interface."""

    def __init__(self, device):
        """
        Initializes the handle.

        Args:
            device: The `buttplug.client.Device` to wrap.
        """
        self.device = device
        self.name = device.name

    def _scalar_actuators(self, actuator_type: str) -> list:
        return [a for a in self.device.actuators if a.type == actuator_type]

    @property
    def vibrate_count(self) -> int:
        return len(self._scalar_actuators('Vibrate'))

    @property
    def rotate_count(self) -> int:
        return len(self.device.rotatory_actuators)

    @property
    def oscillate_count(self) -> int:
        return len(self._scalar_actuators('Oscillate'))

    @property
    def linear_count(self) -> int:
        return len(self.device.linear_actuators)

    async def send_vibrate(self, intensity: float):
        for actuator in self._scalar_actuators('Vibrate'):
            await actuator.command(intensity)

    async def send_rotate(self, intensity: float, clockwise: bool):
        for actuator in self.device.rotatory_actuators:
            await actuator.command(intensity, clockwise)

    async def send_oscillate(self, intensity: float):
        for actuator in self._scalar_actuators('Oscillate'):
            await actuator.command(intensity)

    async def send_linear(self, duration_ms: int, position: float):
        for actuator in self.device.linear_actuators:
            await actuator.command(duration_ms, position)


class ButtplugDeviceRegistry(DeviceRegistry):
    """
    The live device set of a connected buttplug Client.

    Every snapshot is compared with the previous one so that attached and
    detached devices are published on the session's signal bus.
    """

    def __init__(self, context: 'SessionContext', client: Client):
        """
        Initializes the registry.

        Args:
            context: The session context whose signals receive device events.
            client: A connected `buttplug.Client`.
        """
        self.context = context
        self.client = client
        self.is_scanning: bool = False
        self._handles: dict[int, ButtplugDeviceHandle] = {}

    def devices(self) -> list[DeviceHandle]:
        current = {index: device for index, device in self.client.devices.items()
                   if not device.removed}

        for index in list(self._handles):
            if index not in current:
                handle = self._handles.pop(index)
                self.context.signals.device_removed.emit(handle.name)

        for index, device in current.items():
            if index not in self._handles:
                self._handles[index] = ButtplugDeviceHandle(device)
                self.context.signals.device_added.emit(device.name)

        return list(self._handles.values())

    async def start_scanning(self):
        """Lets devices attach at any time during the session."""
        await self.client.start_scanning()
        self.is_scanning = True
        self.context.signals.log_message.emit("Scanning for devices...")

    async def stop_all(self):
        if self.is_scanning:
            await self.client.stop_scanning()
            self.is_scanning = False
        for device in self.client.devices.values():
            if not device.removed:
                await device.stop()

    async def disconnect(self):
        await self.client.disconnect()
        self.context.signals.log_message.emit("Disconnected from device server.")


async def connect(context: 'SessionContext') -> ButtplugDeviceRegistry:
    """
    Connects to the device-control server named in the configuration.

    Args:
        context: The session context providing settings and signals.

    Returns:
        A registry for the connected client.

    Raises:
        ServiceConnectionError: If the address is invalid or the server
            cannot be reached.
    """
    address = str(context.config.get('server_address', ''))
    if not address.startswith(SERVER_ADDRESS_SCHEMES):
        raise ServiceConnectionError(f"Invalid server address: '{address}'.")

    client = Client(context.config.get('client_name', 'HapticCommandBridge'),
                    ProtocolSpec.v3)
    connector = WebsocketConnector(address, logger=client.logger)

    context.signals.log_message.emit(f"Connecting to device server at {address}...")
    try:
        await client.connect(connector)
    except Exception as e:
        logging.warning("Failed to connect to device server %s: %s", address, e)
        raise ServiceConnectionError(
            f"Could not connect to device server at {address}: {e}") from e

    registry = ButtplugDeviceRegistry(context, client)
    if context.config.get('scan_on_connect', True):
        await registry.start_scanning()
    return registry
