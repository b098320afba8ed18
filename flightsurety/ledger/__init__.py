"""Ledger adapters.

The oracle server talks to the FlightSurety app contract through the
`Ledger` protocol. Two implementations ship here:
- `Web3Ledger`: JSON-RPC against a deployed contract (web3.py)
- `InMemoryLedger`: in-process stand-in for tests and local mock runs
"""

from flightsurety.ledger.base import Ledger, RequestSubscription
from flightsurety.ledger.memory import InMemoryLedger

__all__ = ["Ledger", "RequestSubscription", "InMemoryLedger"]
