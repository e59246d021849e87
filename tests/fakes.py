"""
In-memory doubles for the device-control boundary.

Provides an in-memory device registry whose devices record every command
they receive, so tests can assert on the exact command stream without a
Buttplug server.
"""

import time

from hcb.core.device_registry import DeviceHandle, DeviceRegistry


class FakeDevice(DeviceHandle):
    """Device double recording (kind, name, *args, timestamp) tuples."""

    def __init__(self, name: str, log: list, vibrate: int = 0, rotate: int = 0,
                 oscillate: int = 0, linear: int = 0) -> None:
        self.name = name
        self.log = log
        self._counts = {"vibrate": vibrate, "rotate": rotate,
                        "oscillate": oscillate, "linear": linear}

    @property
    def vibrate_count(self) -> int:
        return self._counts["vibrate"]

    @property
    def rotate_count(self) -> int:
        return self._counts["rotate"]

    @property
    def oscillate_count(self) -> int:
        return self._counts["oscillate"]

    @property
    def linear_count(self) -> int:
        return self._counts["linear"]

    async def send_vibrate(self, intensity: float) -> None:
        self.log.append(("vibrate", self.name, intensity, time.monotonic()))

    async def send_rotate(self, intensity: float, clockwise: bool) -> None:
        self.log.append(("rotate", self.name, intensity, clockwise, time.monotonic()))

    async def send_oscillate(self, intensity: float) -> None:
        self.log.append(("oscillate", self.name, intensity, time.monotonic()))

    async def send_linear(self, duration_ms: int, position: float) -> None:
        self.log.append(("linear", self.name, duration_ms, position, time.monotonic()))


class FakeRegistry(DeviceRegistry):
    """Registry double sharing one command log across its devices."""

    def __init__(self) -> None:
        self.log: list = []
        self.attached: list[FakeDevice] = []
        self.stopped = False
        self.disconnected = False

    def add(self, name: str = "toy", **capabilities: int) -> FakeDevice:
        device = FakeDevice(name, self.log, **capabilities)
        self.attached.append(device)
        return device

    def devices(self) -> list[DeviceHandle]:
        return list(self.attached)

    async def stop_all(self) -> None:
        self.stopped = True
        self.log.append(("stop_all", time.monotonic()))

    async def disconnect(self) -> None:
        self.disconnected = True
        self.log.append(("disconnect", time.monotonic()))

    def commands(self, kind: str) -> list[tuple]:
        """Returns logged commands of one kind without their timestamps."""
        return [entry[:-1] for entry in self.log if entry[0] == kind]
