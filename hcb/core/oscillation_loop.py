# hcb/core/oscillation_loop.py
"""
Contains the OscillationLoop, the background driver that moves the linear
axis back and forth while the session is in automatic mode.
"""
import asyncio

from hcb.config.constants import (
    OSCILLATION_ENDPOINTS, POLL_INTERVAL_S, REST_RETURN_MS,
    SHUTDOWN_RETURN_MS, SHUTDOWN_SETTLE_MS
)
from hcb.core.background_loop import BackgroundLoop
from hcb.core.device_registry import send_linear
from hcb.core.motion_math import oscillation_interval_ms, oscillation_wait_seconds
from hcb.session_context import StrokeMode


class OscillationLoop(BackgroundLoop):
    """
    Produces a triangle-wave motion between the two oscillation endpoints.

    The command for each half-cycle is issued only after waiting 110% of
    the half-cycle, so a device always finishes its previous move first. On
    cancellation the loop returns every linear device to zero and settles
    before exiting.
    """
    name = 'oscillation'

    async def run(self):
        """Polls for automatic mode until cancelled, then winds down."""
        flip_flop = 0
        while not await self._wait(POLL_INTERVAL_S):
            if not self.arbiter.is_authoritative(StrokeMode.AUTO):
                continue

            speed = self.arbiter.oscillation_speed
            if speed <= 0.0:
                if self.arbiter.last_position == 0.0:
                    continue
                if await self._return_to_rest():
                    break
                continue

            interval_ms = oscillation_interval_ms(speed)
            position = OSCILLATION_ENDPOINTS[flip_flop]
            flip_flop = (flip_flop + 1) % 2

            if await self._wait(oscillation_wait_seconds(interval_ms)):
                break

            async with self.arbiter.linear_axis:
                if not self.arbiter.is_authoritative(StrokeMode.AUTO):
                    continue
                self.arbiter.record_position(position)
                await send_linear(self.context, self.registry,
                                  int(interval_ms), position)

        await self._wind_down()

    async def _return_to_rest(self) -> bool:
        """
        Parks the linear axis at zero while oscillation speed is zero.

        Returns:
            True if the loop was cancelled while settling.
        """
        async with self.arbiter.linear_axis:
            if not self.arbiter.is_authoritative(StrokeMode.AUTO):
                return False
            self.arbiter.record_position(0.0)
            await send_linear(self.context, self.registry, REST_RETURN_MS, 0.0)
        return await self._wait(REST_RETURN_MS / 1000.0)

    async def _wind_down(self):
        """Returns every linear device to zero and lets it settle."""
        async with self.arbiter.linear_axis:
            self.arbiter.record_position(0.0)
            await send_linear(self.context, self.registry, SHUTDOWN_RETURN_MS, 0.0)
        await asyncio.sleep(SHUTDOWN_SETTLE_MS / 1000.0)
