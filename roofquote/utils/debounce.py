"""
Asyncio debouncer.

A timer is armed on every call and re-armed by each subsequent call inside
the window, so the wrapped coroutine fires exactly once after the input has
been quiet for `delay` seconds. Only the timer is cancelled on re-arm; a
coroutine that already started keeps running and callers are expected to
discard its result if it has been superseded.

Usage:
    debouncer = Debouncer(0.3, fetch_predictions)
    debouncer.call("123 Te")
    debouncer.call("123 Test")   # only this one fires
    await debouncer.flush()
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class Debouncer:
    """Trailing-edge debouncer for an async callback."""

    def __init__(self, delay: float, callback: Callable[..., Awaitable[Any]]):
        if delay < 0:
            raise ValueError("Debounce delay cannot be negative")
        self.delay = delay
        self.callback = callback
        self.fire_count = 0
        self._handle: Optional[asyncio.TimerHandle] = None
        self._inflight: Set[asyncio.Future] = set()

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired yet."""
        return self._handle is not None

    @property
    def busy(self) -> bool:
        return self.pending or bool(self._inflight)

    def call(self, *args: Any, **kwargs: Any) -> None:
        """Arm (or re-arm) the timer with the latest arguments."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, args, kwargs)

    def cancel(self) -> None:
        """Disarm the timer without touching work that already started."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, args: tuple, kwargs: dict) -> None:
        self._handle = None
        self.fire_count += 1
        task = asyncio.ensure_future(self.callback(*args, **kwargs))
        self._inflight.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Future) -> None:
        self._inflight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Debounced callback failed: {task.exception()}")

    async def flush(self) -> None:
        """Wait until the armed timer has fired and all started work finished."""
        loop = asyncio.get_running_loop()
        while self.busy:
            if self._inflight:
                await asyncio.gather(*list(self._inflight), return_exceptions=True)
            elif self._handle is not None:
                await asyncio.sleep(max(0.0, self._handle.when() - loop.time()))
