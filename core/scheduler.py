"""
Cancellable sleeps for the monitor loop.
"""
import asyncio
import logging

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Sleeps that wake up early when cancelled.

    The monitor loop waits through a Scheduler instead of asyncio.sleep so a
    shutdown request interrupts the current delay immediately.
    """

    def __init__(self):
        self._cancel_event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self):
        """Cancel the current and all future sleeps."""
        self._cancel_event.set()

    async def sleep(self, seconds: float) -> bool:
        """
        Wait for `seconds` or until cancelled.

        Returns:
            True if the wait ended because of cancellation
        """
        if self.cancelled:
            return True
        if seconds <= 0:
            return False

        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
