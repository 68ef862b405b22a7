"""Debounced free-text search over the content source."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Awaitable, Callable

from ..models import Movie

logger = logging.getLogger(__name__)

SearchFunction = Callable[[str], Awaitable[list[Movie]]]


class DebouncedSearch:
    """Issue at most one search per settled typing pause.

    Each keystroke cancels the pending timer and restarts the window. Requests
    already sent are left to finish; every request is numbered and a response
    older than the last applied one is dropped.
    """

    def __init__(
        self,
        search: SearchFunction,
        *,
        delay_seconds: float = 0.6,
        min_length: int = 2,
    ):
        self._search = search
        self._delay = delay_seconds
        self._min_length = min_length
        self.query = ""
        self.results: list[Movie] = []
        self._timer: asyncio.Task[None] | None = None
        self._requests: set[asyncio.Task[None]] = set()
        self._issued = 0
        self._applied = 0

    @property
    def pending(self) -> bool:
        """True while a timer is armed or a request is in flight."""

        if self._timer is not None and not self._timer.done():
            return True
        return any(not task.done() for task in self._requests)

    def update(self, query: str) -> None:
        self.query = query
        self._cancel_timer()
        if len(query) <= self._min_length:
            self._clear_results()
            return
        self._timer = asyncio.create_task(self._wait_then_search(query))

    def reset(self) -> None:
        self.query = ""
        self._cancel_timer()
        self._clear_results()

    async def wait_until_idle(self) -> None:
        while True:
            waiting = [
                task
                for task in (self._timer, *self._requests)
                if task is not None and not task.done()
            ]
            if not waiting:
                return
            await asyncio.gather(*waiting, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel the timer and any request still running."""

        self._cancel_timer()
        for task in list(self._requests):
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    def _clear_results(self) -> None:
        # Counts as an applied result so older responses cannot repopulate.
        self._issued += 1
        self._applied = self._issued
        self.results = []

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _wait_then_search(self, query: str) -> None:
        await asyncio.sleep(self._delay)
        self._timer = None
        self._issued += 1
        task = asyncio.create_task(self._run(query, self._issued))
        self._requests.add(task)
        task.add_done_callback(self._requests.discard)

    async def _run(self, query: str, sequence: int) -> None:
        results = await self._search(query)
        if sequence < self._applied:
            logger.info("Dropping stale results for %r (request %s)", query, sequence)
            return
        self._applied = sequence
        self.results = results
