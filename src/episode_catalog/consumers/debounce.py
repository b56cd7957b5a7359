"""
Debounce gate for free-text input
"""
import asyncio
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    """
    Delays a callback until input has been quiet for `delay` seconds

    Only the latest value pushed during the quiet period reaches the
    callback. Once the callback has started it is never cancelled.

    Usage:
        debouncer = Debouncer(0.4, view.apply_search)
        for text in ("a", "ab", "abc"):
            debouncer.push(text)     # apply_search("abc") runs once, 400ms later
    """

    def __init__(self, delay: float, callback: Callable[[T], None]):
        self.delay = delay
        self.callback = callback
        self._pending: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def push(self, value: T) -> None:
        """Restart the quiet period with a new value; needs a running loop"""
        self.cancel()
        self._pending = asyncio.create_task(self._fire(value))

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def drain(self) -> None:
        """Wait until the pending value (if any) has been delivered"""
        while self._pending is not None:
            task = self._pending
            await asyncio.gather(task, return_exceptions=True)
            if self._pending is task:
                self._pending = None

    async def _fire(self, value: T) -> None:
        await asyncio.sleep(self.delay)
        if self._pending is asyncio.current_task():
            self._pending = None
        self.callback(value)
