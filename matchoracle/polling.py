"""Periodic odds refresh as a cancellable asyncio task.

Cancellation is cooperative: ``cancel()`` sets the stop event, a fetch that is
already in flight is allowed to finish, and its result is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from matchoracle.schemas import OddsQuote

logger = logging.getLogger(__name__)

FetchOdds = Callable[[], Awaitable[Optional[OddsQuote]]]
WaitFn = Callable[[asyncio.Event, float], Awaitable[None]]


async def wait_or_stop(stop_event: asyncio.Event, seconds: float) -> None:
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


class PollHandle:
    def __init__(self, stop_event: asyncio.Event) -> None:
        self._stop_event = stop_event
        self.task: asyncio.Task | None = None
        self.latest: OddsQuote | None = None
        self.updates = 0

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def cancel(self) -> None:
        self._stop_event.set()

    async def wait_closed(self) -> None:
        if self.task is not None:
            await self.task


class OddsPoller:
    def __init__(
        self,
        fetch: FetchOdds,
        interval_seconds: float,
        on_update: Callable[[OddsQuote], None] | None = None,
        *,
        wait: WaitFn = wait_or_stop,
        label: str = "odds",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._fetch = fetch
        self._interval = interval_seconds
        self._on_update = on_update
        self._wait = wait
        self._label = label

    def start(self) -> PollHandle:
        """Must be called from a running event loop."""
        handle = PollHandle(asyncio.Event())
        handle.task = asyncio.create_task(self._run(handle))
        return handle

    async def _run(self, handle: PollHandle) -> None:
        stop_event = handle._stop_event
        logger.info("Poller %s started (interval=%ss)", self._label, self._interval)
        while not stop_event.is_set():
            await self._wait(stop_event, self._interval)
            if stop_event.is_set():
                break
            try:
                odds = await self._fetch()
            except Exception:
                logger.exception("Poller %s: fetch failed", self._label)
                continue
            if stop_event.is_set():
                logger.debug("Poller %s: dropping result that arrived after cancel", self._label)
                break
            if odds is None:
                continue
            handle.latest = odds
            handle.updates += 1
            if self._on_update is not None:
                self._on_update(odds)
        logger.info("Poller %s stopped.", self._label)
