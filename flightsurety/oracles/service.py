"""Startup and run loop for the oracle server."""

from __future__ import annotations

import asyncio
import random
import traceback
from typing import TYPE_CHECKING, List, Optional

import bittensor as bt

from flightsurety.core.flights import FlightCatalog
from flightsurety.core.models import OracleIdentity
from flightsurety.ledger.base import RequestSubscription
from flightsurety.oracles.dispatcher import RequestDispatcher
from flightsurety.oracles.policy import RandomStatusPolicy, StatusPolicy
from flightsurety.oracles.registrar import OracleRegistrar
from flightsurety.oracles.registry import IndexRegistry
from flightsurety.oracles.submitter import ResponseSubmitter

RECEIPT_TIMEOUT_FRACTION = 0.8

if TYPE_CHECKING:
    from flightsurety.ledger.base import Ledger
    from flightsurety.oracles.config import OracleEnvConfig


class OracleService:
    def __init__(
        self,
        ledger: "Ledger",
        config: "OracleEnvConfig",
        *,
        policy: Optional[StatusPolicy] = None,
        catalog: Optional[FlightCatalog] = None,
    ):
        self.ledger = ledger
        self.config = config
        self.catalog = catalog or FlightCatalog.default()
        self.registry = IndexRegistry(config.registration.index_space)
        self.registrar = OracleRegistrar(ledger, self.registry)
        self.submitter = ResponseSubmitter(
            ledger,
            policy or RandomStatusPolicy(seed=config.dispatch.status_seed),
            timeout_s=config.dispatch.submit_timeout_s,
        )
        self.dispatcher = RequestDispatcher(
            self.registry,
            self.submitter,
            dedupe=config.dispatch.dedupe_requests,
        )
        self.oracles: List[OracleIdentity] = []
        self.airline: Optional[str] = None
        self._subscription: Optional[RequestSubscription] = None
        self._stopping = False

    async def start(self) -> None:
        """Register the oracle pool, freeze the registry and seed the flights."""
        reg = self.config.registration
        if not await self.ledger.is_operational():
            bt.logging.warning("Ledger reports the contract is not operational; transactions may revert.")

        session = await self.registrar.open_session(start_index=reg.oracle_account_start_index)
        self.oracles = await self.registrar.register_all(reg.oracles_count, session=session)
        self.registry.freeze()

        accounts = await self.ledger.list_accounts()
        if reg.airline_account_index < len(accounts):
            self.airline = accounts[reg.airline_account_index]
        else:
            bt.logging.warning(f"No airline account at index {reg.airline_account_index}; flights not seeded.")

        if reg.register_flights and self.airline is not None:
            await self.catalog.seed(self.ledger, self.airline)

    async def run(self) -> None:
        """Dispatch requests until `stop()` is called."""
        self._subscription = await self.ledger.subscribe_requests(self.config.ledger.from_block)
        if self._stopping:
            self._subscription.close()
        await self.dispatcher.run(self._subscription)

    def stop(self) -> None:
        self._stopping = True
        if self._subscription is not None:
            self._subscription.close()

    @property
    def stopping(self) -> bool:
        return self._stopping


async def generate_mock_traffic(service: OracleService, *, interval_s: float, rng: Optional[random.Random] = None) -> None:
    """
    Ask the ledger for flight status updates on random catalog flights.

    Used in memory mode to keep the dispatch loop busy without a chain.
    """
    rng = rng or random.Random()
    flights = list(service.catalog)
    if not flights or service.airline is None or interval_s <= 0:
        return
    while not service.stopping:
        flight = rng.choice(flights)
        try:
            await service.ledger.request_flight_status(service.airline, flight.code, flight.timestamp, service.airline)
        except Exception:
            bt.logging.error("Mock status request failed:\n%s", traceback.format_exc())
        await asyncio.sleep(interval_s)


def build_ledger(config: "OracleEnvConfig") -> "Ledger":
    ledger_cfg = config.ledger
    if ledger_cfg.mode == "web3":
        from flightsurety.ledger.web3_ledger import Web3Ledger

        bt.logging.info(f"Connecting to FlightSuretyApp {ledger_cfg.app_address} at {ledger_cfg.rpc_url}")
        return Web3Ledger.from_url(
            ledger_cfg.rpc_url,
            ledger_cfg.app_address or "",
            abi_path=ledger_cfg.abi_path,
            gas=ledger_cfg.gas,
            index_space=config.registration.index_space,
            poll_interval_s=ledger_cfg.poll_interval_s,
            # Receipt waits end before the submit timeout so unconfirmed votes keep their tx hash.
            receipt_timeout_s=config.dispatch.submit_timeout_s * RECEIPT_TIMEOUT_FRACTION,
        )

    from flightsurety.ledger.memory import InMemoryLedger

    bt.logging.info(f"Using in-memory ledger with {ledger_cfg.mock_accounts} accounts")
    return InMemoryLedger(num_accounts=ledger_cfg.mock_accounts, index_space=config.registration.index_space)
