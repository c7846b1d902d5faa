# This project was developed with assistance from AI tools.
"""Fixed-interval status polling with a bounded observation window.

The backend finishes diagnosis and translation asynchronously; callers see
completion by polling a status endpoint. A poller stops on the first
terminal value, on ``stop()`` (or leaving its ``async with`` block), or
once the window has elapsed. Failed ticks are logged and retried on the
next interval; the window bounds how long that can go on.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from .errors import ApiError

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"completed", "failed"})


def _status_of(body: Any) -> Any:
    return body.get("status") if isinstance(body, dict) else body


class StatusPoller:
    """Poll ``fetch`` until it reports a terminal status.

    Args:
        fetch: coroutine function returning the status body (a dict with a
            ``status`` key, or the bare status value).
        on_update: called with every successfully fetched body.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Any]],
        *,
        interval: float = 5.0,
        window: float = 600.0,
        terminal: frozenset[str] = TERMINAL_STATUSES,
        on_update: Callable[[Any], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self.interval = interval
        self.window = window
        self.terminal = terminal
        self._on_update = on_update
        self._sleep = sleep
        self._clock = clock
        self._stopped = False
        self._task: asyncio.Task | None = None
        self.last_status: Any = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self) -> Any:
        """Poll in the current task; returns the terminal status or None."""
        started = self._clock()
        while not self._stopped:
            if self._clock() - started >= self.window:
                logger.info("Polling window of %.0fs elapsed without a terminal status", self.window)
                return None
            self.ticks += 1
            try:
                body = await self._fetch()
            except ApiError as exc:
                logger.warning("Status poll tick %d failed: %s", self.ticks, exc.message)
            else:
                self.last_status = _status_of(body)
                if self._on_update is not None:
                    self._on_update(body)
                if self.last_status in self.terminal:
                    return self.last_status
            if self._stopped:
                break
            await self._sleep(self.interval)
        return None

    def start(self) -> asyncio.Task:
        """Run the loop in a background task."""
        if self._task is None:
            self._task = asyncio.create_task(self.run())
        return self._task

    async def wait(self) -> Any:
        return await self.start()

    async def stop(self) -> None:
        """Stop polling. No request is issued after this returns."""
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def __aenter__(self) -> "StatusPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
