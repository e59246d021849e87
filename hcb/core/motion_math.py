# hcb/core/motion_math.py
"""
Contains pure, stateless helper functions for the intensity, fade,
oscillation, and stroke timing calculations.
"""
from typing import Optional

import numpy as np

from hcb.config.constants import (
    FADE_BASE_TICK_MS, FADE_MIN_SMOOTHNESS, FADE_STEP, GESTURE_MAX_HOLD_MS,
    OSCILLATION_SLACK, STROKE_UNITS_PER_S
)


def clamp_unit(value: float) -> float:
    """Clamps a value to the normalized 0.0 to 1.0 range."""
    return float(np.clip(float(value), 0.0, 1.0))


def resolve_position(position: Optional[float]) -> Optional[float]:
    """
    Normalizes an explicit position request.

    Args:
        position: The requested position, or None if omitted.

    Returns:
        The position capped at 1.0, or None when the request is omitted or
        negative (a negative position counts as "no position given").
    """
    if position is None or position < 0.0:
        return None
    return min(1.0, float(position))


def fade_tick_seconds(smoothness: float) -> float:
    """
    Calculates the fade tick period for a smoothness value.

    Args:
        smoothness: The requested smoothness. Clamped to [0.1, 1.0].

    Returns:
        The tick period in seconds (0.5s at full smoothness, 5s at 0.1).
    """
    smoothness = float(np.clip(smoothness, FADE_MIN_SMOOTHNESS, 1.0))
    return (FADE_BASE_TICK_MS / smoothness) / 1000.0


def fade_steps(current: float, target: float) -> list[float]:
    """
    Computes the intensity values a fade presses before its final
    overshoot correction.

    Each step advances by FADE_STEP toward the target and the sequence stops
    once the target has been reached or passed, so the last value may
    overshoot. Values are rounded to suppress float drift.

    Args:
        current: The starting intensity.
        target: The target intensity.

    Returns:
        The ordered list of intermediate values, empty if already at target.
    """
    steps: list[float] = []
    if np.isclose(current, target):
        return steps
    direction = 1.0 if target > current else -1.0
    value = current
    while (target - value) * direction > 1e-9:
        value = round(value + FADE_STEP * direction, 6)
        steps.append(value)
    return steps


def oscillation_interval_ms(speed: float) -> float:
    """
    Calculates the half-cycle duration of the oscillation triangle wave.

    Args:
        speed: The oscillation speed, from 0.0 to 1.0.

    Returns:
        The half-cycle in milliseconds, 1000ms at full speed and approaching
        1500ms as the speed approaches zero.
    """
    return 1000.0 * (1.5 - 0.5 * clamp_unit(speed))


def oscillation_wait_seconds(interval_ms: float) -> float:
    """Returns the slack-padded wait before the next half-cycle command."""
    return interval_ms * OSCILLATION_SLACK / 1000.0


def stroke_duration_ms(target: float, last_position: float) -> int:
    """Calculates the distance-proportional duration of a manual stroke."""
    distance = abs(float(target) - float(last_position))
    return int(round(distance * 1000.0 / STROKE_UNITS_PER_S))


def rebound_hold_seconds(rebound_speed: float) -> float:
    """Returns how long a gesture holds its peak for a rebound speed."""
    return GESTURE_MAX_HOLD_MS * (1.0 - rebound_speed) / 1000.0
