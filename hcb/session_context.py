# hcb/session_context.py
"""
Defines the central SessionContext, SessionSignals, and the stateful data
structures shared by the arbitration core and its background loops.
"""
import asyncio
import collections
import copy
import enum
import threading
from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QObject, Signal

from hcb.config.constants import DEFAULT_SETTINGS


class StrokeMode(enum.Enum):
    """Which background loop owns the linear-position axis."""
    AUTO = 'auto'
    MANUAL = 'manual'


@dataclass
class IntensityState:
    """Overall intensity and the fade flag."""
    current: float = 0.0
    fading: bool = False


@dataclass
class PositionState:
    """Mode and position bookkeeping for the linear axis."""
    mode: StrokeMode = StrokeMode.MANUAL
    last_position: float = 0.0
    last_raw_request: float = 0.0
    oscillation_speed: float = 0.0


@dataclass(frozen=True)
class IntensitySnapshot:
    """An immutable copy of IntensityState."""
    current: float
    fading: bool


@dataclass(frozen=True)
class PositionSnapshot:
    """An immutable copy of PositionState plus the pending stroke targets."""
    mode: StrokeMode
    last_position: float
    last_raw_request: float
    oscillation_speed: float
    queued_positions: tuple[float, ...]


class SessionSignals(QObject):
    """Container for the session's lifecycle signal bus."""
    log_message = Signal(str)
    connection_changed = Signal(bool)
    device_added = Signal(str)
    device_removed = Signal(str)
    loop_status_changed = Signal(str, bool)
    mode_changed = Signal(str)
    fade_status_changed = Signal(bool)


class SessionContext:
    """A centralized context holding one session's entire state."""

    def __init__(self, settings: Optional[dict] = None,
                 signals: Optional[SessionSignals] = None):
        """
        Initializes the SessionContext.

        Args:
            settings: The loaded settings dictionary. Missing keys fall back
                to DEFAULT_SETTINGS.
            signals: An existing signal bus to publish on. A new one is
                created if omitted.
        """
        self.config: dict = copy.deepcopy(DEFAULT_SETTINGS)
        if settings:
            self.config.update(settings)
        self.signals = signals if signals is not None else SessionSignals()

        # Guards intensity, position, and the stroke queue. Never held
        # across an await.
        self.state_lock = threading.RLock()
        self.intensity = IntensityState()
        self.position = PositionState()
        self.stroke_queue: collections.deque[float] = collections.deque()

        # Set once by Session.exit; in-flight fades stop issuing commands.
        self.is_closed: bool = False

        # Replaced by tests to record gesture and fade waits.
        self.sleep = asyncio.sleep

    def intensity_snapshot(self) -> IntensitySnapshot:
        """Returns a consistent copy of the intensity state."""
        with self.state_lock:
            return IntensitySnapshot(
                current=self.intensity.current, fading=self.intensity.fading)

    def position_snapshot(self) -> PositionSnapshot:
        """Returns a consistent copy of the position state and queue."""
        with self.state_lock:
            state = self.position
            return PositionSnapshot(
                mode=state.mode,
                last_position=state.last_position,
                last_raw_request=state.last_raw_request,
                oscillation_speed=state.oscillation_speed,
                queued_positions=tuple(self.stroke_queue),
            )
