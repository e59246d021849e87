# hcb/core/position_arbiter.py
"""
Contains the PositionArbiter, the sole owner of the stroke mode, the stroke
queue, and the shared last-known-position state. It decides which of the two
background loops is authoritative over the linear axis at any instant.
"""
import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from hcb.config.constants import DEDUP_THRESHOLD
from hcb.core.motion_math import clamp_unit, stroke_duration_ms
from hcb.session_context import StrokeMode

if TYPE_CHECKING:
    from hcb.session_context import SessionContext


class PositionArbiter:
    """
    Arbitrates between the automatic oscillation driver and the manual
    stroke queue.

    All state lives in the SessionContext and is only touched while holding
    its state_lock. Linear fan-outs are additionally serialized through
    `linear_axis`, and the issuing loop re-checks the mode while holding it,
    so at most one loop ever moves the linear axis.
    """

    def __init__(self, context: 'SessionContext'):
        """
        Initializes the PositionArbiter.

        Args:
            context: The session context holding the shared state.
        """
        self.context = context
        self.linear_axis = asyncio.Lock()

    @property
    def mode(self) -> StrokeMode:
        with self.context.state_lock:
            return self.context.position.mode

    @property
    def oscillation_speed(self) -> float:
        with self.context.state_lock:
            return self.context.position.oscillation_speed

    @property
    def last_position(self) -> float:
        with self.context.state_lock:
            return self.context.position.last_position

    def is_authoritative(self, mode: StrokeMode) -> bool:
        """Returns True if the given mode currently owns the linear axis."""
        return self.mode is mode

    def engage_auto(self, speed: float):
        """
        Hands the linear axis to the oscillation loop.

        Args:
            speed: The oscillation speed, from 0.0 to 1.0.
        """
        with self.context.state_lock:
            previous = self.context.position.mode
            self.context.position.mode = StrokeMode.AUTO
            self.context.position.oscillation_speed = clamp_unit(speed)
        self._announce_mode_change(previous, StrokeMode.AUTO)

    def request_position(self, location: float) -> bool:
        """
        Hands the linear axis to the stroke loop and queues a target,
        unless it is a near-duplicate of the previous raw request.

        Args:
            location: The requested position, from 0.0 to 1.0.

        Returns:
            True if the target was queued, False if it was suppressed.
        """
        with self.context.state_lock:
            state = self.context.position
            previous = state.mode
            state.mode = StrokeMode.MANUAL
            queued = abs(location - state.last_raw_request) >= DEDUP_THRESHOLD
            if queued:
                self.context.stroke_queue.append(location)
                state.last_raw_request = location
        self._announce_mode_change(previous, StrokeMode.MANUAL)
        return queued

    def reset_oscillation_speed(self):
        """Brings the oscillation speed to rest."""
        with self.context.state_lock:
            self.context.position.oscillation_speed = 0.0

    def record_position(self, position: float):
        """Stores the position most recently commanded to the linear axis."""
        with self.context.state_lock:
            self.context.position.last_position = position

    def claim_next_stroke(self) -> Optional[tuple[float, int]]:
        """
        Dequeues the next manual target when the stroke loop is
        authoritative, recording it as the last position immediately.

        Returns:
            A (target, duration_ms) tuple, or None if the mode is not MANUAL
            or the queue is empty.
        """
        with self.context.state_lock:
            state = self.context.position
            if state.mode is not StrokeMode.MANUAL or not self.context.stroke_queue:
                return None
            target = self.context.stroke_queue.popleft()
            duration_ms = stroke_duration_ms(target, state.last_position)
            state.last_position = target
        return target, duration_ms

    def _announce_mode_change(self, previous: StrokeMode, current: StrokeMode):
        """Publishes a mode transition on the signal bus."""
        if previous is current:
            return
        logging.debug("Stroke mode %s -> %s", previous.value, current.value)
        self.context.signals.mode_changed.emit(current.value)
