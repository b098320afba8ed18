import asyncio

from flightsurety.core.flights import DEFAULT_FLIGHTS, FlightCatalog
from flightsurety.ledger.memory import InMemoryLedger

AIRLINE = "0x00000000000000000000000000000000000000a1"


def test_default_catalog_has_known_flights():
    catalog = FlightCatalog.default()
    assert len(catalog) == len(DEFAULT_FLIGHTS) == 14
    assert catalog.codes()[:3] == ["AA111", "AA222", "AA333"]


def test_seed_registers_flights_and_tolerates_failures():
    ledger = InMemoryLedger(num_accounts=2)
    catalog = FlightCatalog.default()

    first = asyncio.run(catalog.seed(ledger, AIRLINE))
    second = asyncio.run(catalog.seed(ledger, AIRLINE))

    assert first == 14
    assert second == 0
    assert (AIRLINE, "AA111", 1626280168) in ledger.flights
