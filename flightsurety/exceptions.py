"""Exceptions raised by the oracle server."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from flightsurety.core.models import StatusVote


class OracleServerError(RuntimeError):
    """Base exception for oracle server failures."""


class InvalidIndex(OracleServerError, ValueError):
    """Raised when an index falls outside the configured index space."""


class RegistryFrozen(OracleServerError):
    """Raised when the index registry is written after the registration phase."""


class LedgerError(OracleServerError):
    """Raised when a ledger call fails."""


class RegistrationRejected(LedgerError):
    """Raised when the ledger refuses to register an oracle."""


class UnconfirmedTransaction(LedgerError):
    """Raised when a transaction was sent but its receipt never arrived."""

    def __init__(self, tx_hash: str, cause: Optional[BaseException] = None) -> None:
        self.tx_hash = tx_hash
        self.cause = cause
        super().__init__(f"transaction {tx_hash} sent but not confirmed: {cause!r}")


class SubmissionFailed(LedgerError):
    """Raised when a status vote could not be delivered to the ledger."""

    def __init__(self, vote: "StatusVote", cause: Optional[BaseException] = None) -> None:
        self.vote = vote
        self.cause = cause
        # Set when the vote reached the node; replaying it could double-vote.
        self.tx_hash: Optional[str] = getattr(cause, "tx_hash", None)
        request = vote.request
        tx = f" tx={self.tx_hash}" if self.tx_hash else ""
        super().__init__(
            f"oracle={vote.oracle} index={request.index} airline={request.airline} "
            f"flight={request.flight} timestamp={request.timestamp} "
            f"status={int(vote.status_code)}{tx} cause={cause!r}"
        )


class TransportReconnect(LedgerError):
    """Raised when the request event stream dropped and must be resubscribed."""
