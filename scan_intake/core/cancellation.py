import asyncio
import logging
from typing import Optional


class CancellationContext:
    """
    Explicit shutdown signal shared by the watch loop and the worker pool.

    Replaces a process-wide running flag: whoever owns the service creates
    one context and passes it to every component that must observe shutdown.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def event(self) -> asyncio.Event:
        return self._event

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "shutdown requested") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logging.info(f"Cancellation requested: {reason}")

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait until cancelled. Returns False if the timeout expired first."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False
