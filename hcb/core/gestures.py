# hcb/core/gestures.py
"""
Contains the composite gestures: Pulse, a single instantaneous buzz and
stroke, and Hold, its slower faded counterpart.
"""
from typing import TYPE_CHECKING

from hcb.config.constants import PULSE_MOVE_MS
from hcb.core.device_registry import send_linear
from hcb.core.motion_math import rebound_hold_seconds
from hcb.errors import ValidationError

if TYPE_CHECKING:
    from hcb.core.intensity_channel import IntensityChannel
    from hcb.core.position_arbiter import PositionArbiter


def validate_rebound_speed(rebound_speed: float) -> float:
    """
    Checks a rebound speed is within 0.0 to 1.0.

    Raises:
        ValidationError: If the value is out of range.
    """
    if not 0.0 <= rebound_speed <= 1.0:
        raise ValidationError(f"Invalid rebound speed: {rebound_speed}.")
    return float(rebound_speed)


async def pulse(channel: 'IntensityChannel', arbiter: 'PositionArbiter',
                rebound_speed: float):
    """
    Presses all devices for a single buzz, squeeze, stroke, or spin.

    Callers should not pulse much more often than about once per second.

    Args:
        channel: The session's intensity channel.
        arbiter: The position arbiter, whose linear axis is held for the
            duration of the stroke.
        rebound_speed: How quickly the action is released, from 0.0 to 1.0.

    Raises:
        ValidationError: If rebound_speed is out of range.
    """
    hold_s = rebound_hold_seconds(validate_rebound_speed(rebound_speed))
    context = channel.context

    await channel.raw(1.0)
    async with arbiter.linear_axis:
        await send_linear(context, channel.registry, PULSE_MOVE_MS, 1.0)
        await context.sleep(hold_s)
        await send_linear(context, channel.registry, PULSE_MOVE_MS, 0.0)
        arbiter.record_position(0.0)
    await channel.raw(0.0)


async def hold(channel: 'IntensityChannel', rebound_speed: float):
    """
    Fades all devices in, holds for a while, then fades them back out.

    Args:
        channel: The session's intensity channel.
        rebound_speed: How quickly the action is released, from 0.0 to 1.0.

    Raises:
        ValidationError: If rebound_speed is out of range.
    """
    hold_s = rebound_hold_seconds(validate_rebound_speed(rebound_speed))
    await channel.fade_in()
    await channel.context.sleep(hold_s)
    await channel.fade_out()
