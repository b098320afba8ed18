"""In-process ledger used by tests and the mock runner.

It keeps the same shapes as the FlightSurety app contract (fee, three distinct
indexes per oracle, index checks on submission) without any chain.
"""

from __future__ import annotations

import asyncio
import random
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import bittensor as bt

from flightsurety.core.models import (
    DEFAULT_INDEX_SPACE,
    INDEXES_PER_ORACLE,
    IndexSet,
    OracleIdentity,
    StatusCode,
    StatusRequest,
    StatusVote,
)
from flightsurety.exceptions import LedgerError, RegistrationRejected
from flightsurety.ledger.base import RequestSubscription

DEFAULT_REGISTRATION_FEE = 10**18  # 1 ether in wei

_CLOSED = object()


class QueueSubscription(RequestSubscription):
    def __init__(self, backlog: Iterable[StatusRequest] = ()) -> None:
        super().__init__()
        self._queue: asyncio.Queue = asyncio.Queue()
        for request in backlog:
            self._queue.put_nowait(request)

    def push(self, request: StatusRequest) -> None:
        if not self.closed:
            self._queue.put_nowait(request)

    def close(self) -> None:
        if self.closed:
            return
        super().close()
        self._queue.put_nowait(_CLOSED)

    async def _iterate(self) -> AsyncIterator[StatusRequest]:
        while not self.closed:
            item = await self._queue.get()
            if item is _CLOSED or self.closed:
                return
            yield item


class InMemoryLedger:
    def __init__(
        self,
        *,
        accounts: Optional[Sequence[str]] = None,
        num_accounts: int = 50,
        registration_fee: int = DEFAULT_REGISTRATION_FEE,
        index_space: int = DEFAULT_INDEX_SPACE,
        rng: Optional[random.Random] = None,
        operational: bool = True,
    ) -> None:
        if accounts is None:
            accounts = [f"0x{i + 1:040x}" for i in range(num_accounts)]
        self.accounts: List[str] = list(accounts)
        self.registration_fee = int(registration_fee)
        self.index_space = int(index_space)
        self.operational = operational
        self._rng = rng or random.Random()

        self.oracles: Dict[str, IndexSet] = {}
        self.flights: Dict[Tuple[str, str, int], int] = {}
        self.events: List[StatusRequest] = []
        self.votes: List[StatusVote] = []

        # Test hooks.
        self.preassigned_indexes: Dict[str, Sequence[int]] = {}
        self.rejected_payers: Set[str] = set()
        self.failing_oracles: Set[str] = set()
        self.submit_delay_s: float = 0.0

        self._subscriptions: List[QueueSubscription] = []

    # -- contract views ---------------------------------------------------

    async def is_operational(self) -> bool:
        return self.operational

    async def list_accounts(self) -> List[str]:
        return list(self.accounts)

    async def get_registration_fee(self) -> int:
        return self.registration_fee

    async def get_assigned_indexes(self, oracle: OracleIdentity) -> IndexSet:
        indexes = self.oracles.get(oracle.address)
        if indexes is None:
            raise LedgerError(f"{oracle} is not registered as an oracle")
        return indexes

    # -- transactions -----------------------------------------------------

    async def register_oracle(self, payer: str, fee: int) -> OracleIdentity:
        if payer not in self.accounts:
            raise RegistrationRejected(f"unknown account {payer}")
        if payer in self.rejected_payers:
            raise RegistrationRejected(f"registration reverted for {payer}")
        if int(fee) < self.registration_fee:
            raise RegistrationRejected("Registration fee is required")
        raw = self.preassigned_indexes.get(payer) or self._generate_indexes()
        self.oracles[payer] = IndexSet.from_ledger(raw, index_space=self.index_space)
        return OracleIdentity(payer)

    async def register_flight(self, flight: str, timestamp: int, by_identity: str) -> None:
        key = (by_identity, flight, int(timestamp))
        if key in self.flights:
            raise LedgerError(f"flight {flight}@{timestamp} already registered")
        self.flights[key] = int(StatusCode.UNKNOWN)

    async def request_flight_status(self, airline: str, flight: str, timestamp: int, by_identity: str) -> None:
        request = StatusRequest(
            index=self._rng.randrange(self.index_space),
            airline=airline,
            flight=flight,
            timestamp=int(timestamp),
        )
        self.emit(request)

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
        if self.submit_delay_s:
            await asyncio.sleep(self.submit_delay_s)
        if oracle.address in self.failing_oracles:
            raise LedgerError(f"transaction from {oracle} reverted")
        indexes = self.oracles.get(oracle.address)
        if indexes is None or index not in indexes:
            raise LedgerError("Index does not match oracle request")
        request = StatusRequest(index=index, airline=airline, flight=flight, timestamp=timestamp)
        self.votes.append(StatusVote(oracle=oracle, request=request, status_code=StatusCode(status_code)))

    # -- events -----------------------------------------------------------

    async def subscribe_requests(self, from_block: Optional[int] = 0) -> QueueSubscription:
        backlog = self.events[from_block:] if from_block is not None else []
        sub = QueueSubscription(backlog)
        self._subscriptions.append(sub)
        return sub

    def emit(self, request: StatusRequest) -> StatusRequest:
        """Append an `OracleRequest` event and deliver it to open subscriptions."""
        request = request.model_copy(update={"block_number": len(self.events)})
        self.events.append(request)
        self._subscriptions = [s for s in self._subscriptions if not s.closed]
        for sub in self._subscriptions:
            sub.push(request)
        bt.logging.trace(f"OracleRequest emitted: {request.key}")
        return request

    def _generate_indexes(self) -> List[int]:
        return self._rng.sample(range(self.index_space), INDEXES_PER_ORACLE)
