# hcb/core/stroke_loop.py
"""
Contains the StrokeLoop, the background driver that drains manually
requested positions while the session is in manual mode.
"""
from hcb.config.constants import POLL_INTERVAL_S
from hcb.core.background_loop import BackgroundLoop
from hcb.core.device_registry import send_linear


class StrokeLoop(BackgroundLoop):
    """
    Moves the linear axis to each queued target at a fixed virtual speed.

    Unlike the OscillationLoop, cancellation ends this loop immediately:
    remaining targets stay queued and devices are not reset.
    """
    name = 'stroke'

    async def run(self):
        """Drains the stroke queue until cancelled."""
        while not self.is_cancelled:
            async with self.arbiter.linear_axis:
                if self.is_cancelled:
                    break
                claim = self.arbiter.claim_next_stroke()
                if claim is not None:
                    target, duration_ms = claim
                    await send_linear(self.context, self.registry, duration_ms, target)

            if claim is None:
                if await self._wait(POLL_INTERVAL_S):
                    break
                continue

            if await self._wait(duration_ms / 1000.0):
                break
