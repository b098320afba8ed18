"""Status selection strategies for oracle votes."""

from __future__ import annotations

import itertools
import random
from typing import Iterable, Optional, Protocol

from flightsurety.core.models import STATUS_CODES, OracleIdentity, StatusCode, StatusRequest


class StatusPolicy(Protocol):
    def choose(self, oracle: OracleIdentity, request: StatusRequest) -> StatusCode:
        ...


class RandomStatusPolicy:
    """Uniform draw over all status codes."""

    def __init__(self, rng: Optional[random.Random] = None, *, seed: Optional[int] = None):
        self._rng = rng if rng is not None else random.Random(seed)

    def choose(self, oracle: OracleIdentity, request: StatusRequest) -> StatusCode:
        return self._rng.choice(STATUS_CODES)


class SequenceStatusPolicy:
    """Cycle through a fixed sequence of codes."""

    def __init__(self, codes: Iterable[StatusCode]):
        codes = [StatusCode(c) for c in codes]
        if not codes:
            raise ValueError("SequenceStatusPolicy needs at least one status code")
        self._cycle = itertools.cycle(codes)

    def choose(self, oracle: OracleIdentity, request: StatusRequest) -> StatusCode:
        return next(self._cycle)


class FixedStatusPolicy:
    def __init__(self, code: StatusCode):
        self.code = StatusCode(code)

    def choose(self, oracle: OracleIdentity, request: StatusRequest) -> StatusCode:
        return self.code
