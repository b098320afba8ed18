from __future__ import annotations

import abc
import asyncio
from typing import AsyncIterator, List, Optional, Protocol

from flightsurety.core.models import IndexSet, OracleIdentity, StatusCode, StatusRequest


class RequestSubscription(abc.ABC):
    """
    Restartable stream of `StatusRequest` values.

    Iterate with `async for`; iteration ends once `close()` is called. Delivery is
    at-least-once and unordered.
    """

    def __init__(self) -> None:
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        self._closed.set()

    async def _wait_closed(self, timeout: float) -> bool:
        """Sleep up to `timeout` seconds; return True if closed meanwhile."""
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def __aiter__(self) -> AsyncIterator[StatusRequest]:
        return self._iterate()

    @abc.abstractmethod
    def _iterate(self) -> AsyncIterator[StatusRequest]:
        ...


class Ledger(Protocol):
    async def is_operational(self) -> bool:
        ...

    async def list_accounts(self) -> List[str]:
        ...

    async def get_registration_fee(self) -> int:
        ...

    async def register_oracle(self, payer: str, fee: int) -> OracleIdentity:
        ...

    async def get_assigned_indexes(self, oracle: OracleIdentity) -> IndexSet:
        ...

    async def subscribe_requests(self, from_block: Optional[int] = 0) -> RequestSubscription:
        ...

    async def submit_vote(
        self,
        *,
        index: int,
        airline: str,
        flight: str,
        timestamp: int,
        status_code: StatusCode,
        oracle: OracleIdentity,
    ) -> None:
        ...

    async def register_flight(self, flight: str, timestamp: int, by_identity: str) -> None:
        ...

    async def request_flight_status(self, airline: str, flight: str, timestamp: int, by_identity: str) -> None:
        ...
