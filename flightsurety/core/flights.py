"""Static catalog of known flights registered with the ledger at startup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Sequence, Tuple

import bittensor as bt

if TYPE_CHECKING:
    from flightsurety.ledger.base import Ledger


DEFAULT_FLIGHTS: Tuple[Tuple[str, int], ...] = (
    ("AA111", 1626280168),
    ("AA222", 1636280158),
    ("AA333", 1626270158),
    ("2G111", 1626280258),
    ("DL111", 1626280187),
    ("DL222", 1626280218),
    ("US111", 1626280198),
    ("US222", 1626280658),
    ("CP111", 1624880158),
    ("BP111", 1624880158),
    ("DP111", 1624880158),
    ("CP222", 1624880158),
    ("CL111", 1624880158),
    ("CG111", 1624880158),
)


@dataclass(frozen=True)
class Flight:
    code: str
    timestamp: int


class FlightCatalog:
    def __init__(self, flights: Sequence[Flight]):
        self._flights: Tuple[Flight, ...] = tuple(flights)

    @classmethod
    def default(cls) -> "FlightCatalog":
        return cls([Flight(code, ts) for code, ts in DEFAULT_FLIGHTS])

    def __iter__(self) -> Iterator[Flight]:
        return iter(self._flights)

    def __len__(self) -> int:
        return len(self._flights)

    def codes(self) -> List[str]:
        return [f.code for f in self._flights]

    async def seed(self, ledger: "Ledger", airline: str) -> int:
        """
        Register every catalog flight on the ledger under `airline`.

        Failures are logged and skipped; returns how many flights were registered.
        """
        registered = 0
        for flight in self._flights:
            try:
                await ledger.register_flight(flight.code, flight.timestamp, airline)
            except Exception as exc:
                bt.logging.warning(f"Flight {flight.code}@{flight.timestamp} not registered: {exc}")
                continue
            registered += 1
        bt.logging.info(f"Registered {registered}/{len(self._flights)} catalog flights for airline {airline}")
        return registered
