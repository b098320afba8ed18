"""FlightSurety app contract over JSON-RPC."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, TypeVar

import bittensor as bt
from web3 import Web3
from web3.exceptions import ContractLogicError

from flightsurety.core.models import DEFAULT_INDEX_SPACE, IndexSet, OracleIdentity, StatusCode, StatusRequest
from flightsurety.exceptions import LedgerError, RegistrationRejected, TransportReconnect, UnconfirmedTransaction
from flightsurety.ledger.base import RequestSubscription

DEFAULT_ABI_PATH = Path(__file__).resolve().parent / "abi" / "FlightSuretyApp.json"
DEFAULT_GAS = 30_000_000

T = TypeVar("T")


def load_abi(path: Optional[Path] = None) -> List[Dict[str, Any]]:
    """Read a contract ABI from a truffle build artifact or a bare ABI list."""
    with open(path or DEFAULT_ABI_PATH, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    abi = data.get("abi") if isinstance(data, dict) else data
    if not isinstance(abi, list):
        raise ValueError(f"no ABI found in {path or DEFAULT_ABI_PATH}")
    return abi


class LogPollingSubscription(RequestSubscription):
    """
    Poll `OracleRequest` logs from a block cursor.

    On a transport error the stream resubscribes from the first block not yet
    delivered, so a partially delivered range may be seen twice.
    """

    def __init__(
        self,
        ledger: "Web3Ledger",
        from_block: Optional[int],
        *,
        poll_interval_s: float = 1.0,
        reconnect_backoff_s: float = 5.0,
    ) -> None:
        super().__init__()
        self._ledger = ledger
        self._from_block = from_block
        self.poll_interval_s = poll_interval_s
        self.reconnect_backoff_s = reconnect_backoff_s
        self.reconnects = 0

    async def _iterate(self) -> AsyncIterator[StatusRequest]:
        next_block = self._from_block
        while not self.closed:
            try:
                latest = await asyncio.to_thread(self._ledger.block_number)
                if next_block is None:
                    next_block = latest + 1
                batch: List[StatusRequest] = []
                if latest >= next_block:
                    for log in await asyncio.to_thread(self._ledger.fetch_request_logs, next_block, latest):
                        try:
                            batch.append(StatusRequest.from_event_args(log["args"], block_number=log["blockNumber"]))
                        except (KeyError, TypeError, ValueError) as exc:
                            bt.logging.warning(f"Skipping malformed OracleRequest log: {exc}")
            except Exception as exc:
                self.reconnects += 1
                reconnect = TransportReconnect(f"request stream dropped at block {next_block}: {exc}")
                bt.logging.warning(f"{reconnect}; resubscribing in {self.reconnect_backoff_s}s")
                if await self._wait_closed(self.reconnect_backoff_s):
                    return
                continue

            for request in batch:
                if self.closed:
                    return
                yield request
            if latest >= next_block:
                next_block = latest + 1

            if await self._wait_closed(self.poll_interval_s):
                return


class Web3Ledger:
    def __init__(
        self,
        w3: Web3,
        app_address: str,
        abi: Optional[Sequence[Dict[str, Any]]] = None,
        *,
        gas: int = DEFAULT_GAS,
        index_space: int = DEFAULT_INDEX_SPACE,
        poll_interval_s: float = 1.0,
        receipt_timeout_s: float = 120.0,
    ):
        self.w3 = w3
        self.contract = w3.eth.contract(
            address=Web3.to_checksum_address(app_address),
            abi=list(abi) if abi is not None else load_abi(),
        )
        self.gas = int(gas)
        self.index_space = index_space
        self.poll_interval_s = poll_interval_s
        self.receipt_timeout_s = receipt_timeout_s

    @classmethod
    def from_url(cls, rpc_url: str, app_address: str, *, abi_path: Optional[Path] = None, **kwargs: Any) -> "Web3Ledger":
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 30}))
        return cls(w3, app_address, load_abi(abi_path), **kwargs)

    # -- sync helpers (run in worker threads) -----------------------------

    def block_number(self) -> int:
        return int(self.w3.eth.block_number)

    def fetch_request_logs(self, from_block: int, to_block: int) -> List[Any]:
        return list(self.contract.events.OracleRequest.get_logs(from_block=from_block, to_block=to_block))

    def _transact(self, fn: Any, tx: Dict[str, Any]) -> Any:
        tx_hash = fn.transact({"gas": self.gas, **tx})
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout_s)
        except Exception as exc:
            raise UnconfirmedTransaction(Web3.to_hex(tx_hash), exc) from exc
        if receipt.get("status", 1) == 0:
            raise ContractLogicError(f"transaction {Web3.to_hex(tx_hash)} reverted")
        return receipt

    async def _run(self, func: Callable[[], T], *, rejected: type = LedgerError) -> T:
        try:
            return await asyncio.to_thread(func)
        except ContractLogicError as exc:
            raise rejected(str(exc)) from exc
        except LedgerError:
            raise
        except Exception as exc:
            raise LedgerError(f"{type(exc).__name__}: {exc}") from exc

    # -- Ledger protocol --------------------------------------------------

    async def is_operational(self) -> bool:
        return bool(await self._run(lambda: self.contract.functions.isOperational().call()))

    async def list_accounts(self) -> List[str]:
        return list(await self._run(lambda: self.w3.eth.accounts))

    async def get_registration_fee(self) -> int:
        return int(await self._run(lambda: self.contract.functions.REGISTRATION_FEE().call()))

    async def register_oracle(self, payer: str, fee: int) -> OracleIdentity:
        await self._run(
            lambda: self._transact(self.contract.functions.registerOracle(), {"from": payer, "value": int(fee)}),
            rejected=RegistrationRejected,
        )
        return OracleIdentity(payer)

    async def get_assigned_indexes(self, oracle: OracleIdentity) -> IndexSet:
        raw = await self._run(lambda: self.contract.functions.getMyIndexes().call({"from": oracle.address}))
        return IndexSet.from_ledger(raw, index_space=self.index_space)

    async def subscribe_requests(self, from_block: Optional[int] = 0) -> LogPollingSubscription:
        return LogPollingSubscription(self, from_block, poll_interval_s=self.poll_interval_s)

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
        fn = self.contract.functions.submitOracleResponse(
            int(index), Web3.to_checksum_address(airline), flight, int(timestamp), int(status_code)
        )
        await self._run(lambda: self._transact(fn, {"from": oracle.address}))

    async def register_flight(self, flight: str, timestamp: int, by_identity: str) -> None:
        fn = self.contract.functions.registerFlight(flight, int(timestamp))
        await self._run(lambda: self._transact(fn, {"from": by_identity}))

    async def request_flight_status(self, airline: str, flight: str, timestamp: int, by_identity: str) -> None:
        fn = self.contract.functions.fetchFlightStatus(Web3.to_checksum_address(airline), flight, int(timestamp))
        await self._run(lambda: self._transact(fn, {"from": by_identity}))
