# hcb/core/background_loop.py
"""
Defines the abstract base class for the session's long-lived background
actuation loops.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from hcb.core.device_registry import DeviceRegistry
    from hcb.core.position_arbiter import PositionArbiter
    from hcb.session_context import SessionContext


class BackgroundLoop(ABC):
    """
    A supervised asyncio task that polls the arbitration state for the
    lifetime of a session.

    Each loop owns a one-shot cancellation event. Once set it is never
    cleared, and a loop whose task has been started cannot be started again.
    Subclasses implement `run`, using `_wait` for every suspension so that
    cancellation is observed as soon as it is signaled.
    """
    name: str = 'loop'

    def __init__(self, context: 'SessionContext', registry: 'DeviceRegistry',
                 arbiter: 'PositionArbiter'):
        """
        Initializes the BackgroundLoop.

        Args:
            context: The session context holding the shared state.
            registry: The live device registry to send commands to.
            arbiter: The position arbiter deciding which loop is active.
        """
        self.context = context
        self.registry = registry
        self.arbiter = arbiter
        self._cancel_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Spawns the loop task on the running event loop."""
        if self._task is not None:
            logging.warning("%s loop was already started; not restarting.", self.name)
            return
        self._task = asyncio.get_running_loop().create_task(
            self._supervise(), name=f"{self.name}_loop")

    def cancel(self):
        """Signals the loop to terminate."""
        self._cancel_event.set()

    async def join(self, timeout: float):
        """
        Waits for the loop task to finish, cancelling it outright if it does
        not wind down within the timeout.

        Args:
            timeout: The maximum time to wait, in seconds.
        """
        if self._task is None:
            return
        done, _ = await asyncio.wait({self._task}, timeout=timeout)
        if self._task in done:
            return
        self.context.signals.log_message.emit(
            f"Warning: {self.name} loop did not stop in time.")
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _supervise(self):
        """Runs the loop body and publishes its start and stop."""
        self.context.signals.loop_status_changed.emit(self.name, True)
        self.context.signals.log_message.emit(f"{self.name.capitalize()} loop started.")
        try:
            await self.run()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logging.error("%s loop crashed: %s", self.name, e, exc_info=True)
            self.context.signals.log_message.emit(
                f"FATAL: {self.name} loop crashed: {e}")
        finally:
            self.context.signals.loop_status_changed.emit(self.name, False)
            self.context.signals.log_message.emit(f"{self.name.capitalize()} loop stopped.")

    async def _wait(self, seconds: float) -> bool:
        """
        Suspends for the given time unless cancellation arrives first.

        Args:
            seconds: How long to wait.

        Returns:
            True if the loop was cancelled, False if the time elapsed.
        """
        if self._cancel_event.is_set():
            return True
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=max(0.0, seconds))
            return True
        except asyncio.TimeoutError:
            return False

    @abstractmethod
    async def run(self):
        """The loop body. Returns when the loop is cancelled."""
