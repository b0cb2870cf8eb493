"""Timer-based debouncing for coroutine callbacks."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from placepin.core.logging import get_logger

logger = get_logger().bind(module="debounce")


class Debouncer:
    """Run ``callback`` once the calls to ``call`` have been quiet for ``delay``.

    Every ``call`` restarts the quiet period and replaces the pending
    arguments. A callback that has already started is never cancelled.
    """

    def __init__(
        self,
        callback: Callable[..., Awaitable[Any]],
        delay: float,
    ) -> None:
        self.callback = callback
        self.delay = delay
        self._timer: Optional[asyncio.Task[None]] = None
        self._pending: Optional[tuple[tuple[Any, ...], dict[str, Any]]] = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        """Whether a call is waiting for its quiet period to end."""
        return self._pending is not None

    def call(self, *args: Any, **kwargs: Any) -> None:
        self.cancel()
        self._pending = (args, kwargs)
        self._timer = asyncio.create_task(self._wait_and_fire())

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
        self._pending = None

    async def flush(self) -> Any:
        """Run the pending call now and return its result."""
        if self._pending is None:
            return None
        args, kwargs = self._pending
        self.cancel()
        return await self.callback(*args, **kwargs)

    async def wait(self) -> None:
        """Wait for the pending timer and any started callbacks."""
        while self._timer is not None or self._running:
            tasks = [t for t in (self._timer, *self._running) if t is not None]
            await asyncio.gather(*tasks, return_exceptions=True)
            if self._timer is not None and self._timer.done():
                self._timer = None

    async def _wait_and_fire(self) -> None:
        await asyncio.sleep(self.delay)
        if self._pending is None:
            return
        args, kwargs = self._pending
        self._pending = None
        self._timer = None

        task = asyncio.create_task(self._invoke(args, kwargs))
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _invoke(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        try:
            await self.callback(*args, **kwargs)
        except Exception as e:
            logger.error(
                "debounced_callback_failed",
                callback=getattr(self.callback, "__qualname__", repr(self.callback)),
                error=str(e),
                exc_info=True,
            )
