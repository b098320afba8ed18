"""One-time onboarding of the oracle pool."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import bittensor as bt

from flightsurety.core.models import IndexSet, OracleIdentity
from flightsurety.exceptions import LedgerError, RegistrationRejected
from flightsurety.oracles.registry import IndexRegistry

if TYPE_CHECKING:
    from flightsurety.ledger.base import Ledger


@dataclass(frozen=True)
class RegistrationSession:
    """
    State threaded through registration calls.

    `accounts` are the funding identities available to become oracles and
    `cursor` points at the next one. Sessions are immutable; `advance()`
    returns the session for the next iteration.
    """

    fee: int
    accounts: Tuple[str, ...]
    cursor: int = 0

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.accounts)

    @property
    def payer(self) -> str:
        if self.exhausted:
            raise RegistrationRejected(f"no funding account left (cursor={self.cursor}, accounts={len(self.accounts)})")
        return self.accounts[self.cursor]

    def advance(self) -> "RegistrationSession":
        return replace(self, cursor=self.cursor + 1)


class OracleRegistrar:
    def __init__(self, ledger: "Ledger", registry: IndexRegistry):
        self.ledger = ledger
        self.registry = registry

    async def open_session(self, *, start_index: int = 0) -> RegistrationSession:
        """Fetch the registration fee (once per run) and the funding accounts."""
        fee = int(await self.ledger.get_registration_fee())
        accounts: Sequence[str] = await self.ledger.list_accounts()
        start = max(0, int(start_index))
        if start >= len(accounts):
            bt.logging.warning(f"Oracle account start index {start} is past the {len(accounts)} ledger accounts")
        return RegistrationSession(fee=fee, accounts=tuple(accounts[start:]))

    async def register_one(self, session: RegistrationSession) -> Tuple[OracleIdentity, IndexSet]:
        oracle = await self.ledger.register_oracle(session.payer, session.fee)
        indexes = await self.ledger.get_assigned_indexes(oracle)
        self.registry.assign_all(oracle, indexes)
        return oracle, indexes

    async def register_all(
        self,
        count: int,
        *,
        session: Optional[RegistrationSession] = None,
        start_index: int = 0,
    ) -> List[OracleIdentity]:
        """
        Attempt `count` sequential registrations.

        Registration is best effort: a rejected or failed iteration is logged
        and skipped, and the pool is whatever succeeded. Index errors are not
        caught.
        """
        if session is None:
            session = await self.open_session(start_index=start_index)

        registered: List[OracleIdentity] = []
        for attempt in range(1, max(0, int(count)) + 1):
            try:
                oracle, indexes = await self.register_one(session)
            except LedgerError as exc:
                bt.logging.warning(f"Oracle registration {attempt}/{count} failed: {exc}")
            else:
                registered.append(oracle)
                bt.logging.info(f"Oracle registered: {oracle} indexes={list(indexes)}")
            session = session.advance()

        bt.logging.info(f"Registered {len(registered)}/{count} oracles")
        return registered
