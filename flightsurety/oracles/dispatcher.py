"""Fan-out of ledger status requests to the matching oracles."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from typing import List, Optional, Set, Tuple

import bittensor as bt

from flightsurety.core.models import StatusRequest, StatusVote
from flightsurety.ledger.base import RequestSubscription
from flightsurety.oracles.registry import IndexRegistry
from flightsurety.oracles.submitter import ResponseSubmitter

DEFAULT_DEDUPE_WINDOW = 1024


class RequestDispatcher:
    def __init__(
        self,
        registry: IndexRegistry,
        submitter: ResponseSubmitter,
        *,
        dedupe: bool = False,
        dedupe_window: int = DEFAULT_DEDUPE_WINDOW,
    ):
        self.registry = registry
        self.submitter = submitter
        self.dedupe = dedupe
        self.dedupe_window = max(1, int(dedupe_window))
        self.request_count = 0
        self.duplicates_skipped = 0
        self._seen: "OrderedDict[Tuple[int, str, str, int], None]" = OrderedDict()
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def _is_duplicate(self, request: StatusRequest) -> bool:
        if not self.dedupe:
            return False
        key = request.key
        if key in self._seen:
            self._seen.move_to_end(key)
            return True
        self._seen[key] = None
        while len(self._seen) > self.dedupe_window:
            self._seen.popitem(last=False)
        return False

    def on_request(self, request: StatusRequest) -> List[asyncio.Task]:
        """
        Schedule one submission per oracle registered under `request.index`.

        Must be called from a running event loop. Returns the scheduled tasks; an
        index nobody holds yields an empty list.
        """
        if self._is_duplicate(request):
            self.duplicates_skipped += 1
            bt.logging.debug(f"Skipping redelivered request {request.key}")
            return []

        self.request_count += 1
        oracles = self.registry.lookup(request.index)
        if not oracles:
            bt.logging.debug(f"No oracle holds index {request.index}; request for {request.flight} left unanswered")
            return []

        bt.logging.info(
            f"[Request #{self.request_count}] {request.flight}@{request.timestamp} index={request.index} -> {len(oracles)} oracles"
        )
        tasks: List[asyncio.Task] = []
        for oracle in oracles:
            task = asyncio.create_task(self.submitter.submit(oracle, request))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            tasks.append(task)
        return tasks

    async def dispatch(self, request: StatusRequest) -> List[Optional[StatusVote]]:
        tasks = self.on_request(request)
        if not tasks:
            return []
        return list(await asyncio.gather(*tasks))

    async def drain(self) -> None:
        """Wait for every in-flight submission to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def run(self, subscription: RequestSubscription) -> None:
        """Consume `subscription` until it is closed, then drain pending votes."""
        bt.logging.info("Listening for oracle requests")
        try:
            async for request in subscription:
                try:
                    self.on_request(request)
                except Exception as exc:
                    bt.logging.error(f"Dispatch failed for request {request.key}: {exc}")
        finally:
            await self.drain()
            bt.logging.info(
                f"Dispatcher stopped after {self.request_count} requests, {self.duplicates_skipped} duplicates skipped "
                f"({self.submitter.submitted} votes submitted, {self.submitter.failed} failed)"
            )
