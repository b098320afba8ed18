from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Tuple

from flightsurety.core.models import DEFAULT_INDEX_SPACE, OracleIdentity
from flightsurety.exceptions import InvalidIndex, RegistryFrozen


class IndexRegistry:
    """
    Reverse mapping index -> oracles registered under that index.

    Buckets keep registration order. Writes happen during the registration
    phase only; `freeze()` closes it. The lock keeps reads consistent if
    onboarding ever overlaps with dispatch.
    """

    def __init__(self, index_space: int = DEFAULT_INDEX_SPACE):
        if index_space <= 0:
            raise ValueError("index_space must be positive")
        self.index_space = int(index_space)
        self._buckets: Dict[int, List[OracleIdentity]] = {i: [] for i in range(self.index_space)}
        self._lock = threading.Lock()
        self._frozen = False
        # Distinct oracles, insertion ordered.
        self._order: Dict[OracleIdentity, None] = {}

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    def _check_index(self, index: int) -> int:
        try:
            i = int(index)
        except (TypeError, ValueError):
            raise InvalidIndex(f"index {index!r} is not an integer") from None
        if not 0 <= i < self.index_space:
            raise InvalidIndex(f"index {i} outside index space [0, {self.index_space})")
        return i

    def assign(self, index: int, oracle: OracleIdentity) -> None:
        i = self._check_index(index)
        with self._lock:
            if self._frozen:
                raise RegistryFrozen("registration phase is over")
            self._buckets[i].append(oracle)
            self._order.setdefault(oracle, None)

    def assign_all(self, oracle: OracleIdentity, indexes: Iterable[int]) -> None:
        checked = [self._check_index(i) for i in indexes]
        with self._lock:
            if self._frozen:
                raise RegistryFrozen("registration phase is over")
            for i in checked:
                self._buckets[i].append(oracle)
            self._order.setdefault(oracle, None)

    def lookup(self, index: int) -> Tuple[OracleIdentity, ...]:
        try:
            i = int(index)
        except (TypeError, ValueError):
            return ()
        with self._lock:
            return tuple(self._buckets.get(i, ()))

    def indexes_of(self, oracle: OracleIdentity) -> List[int]:
        with self._lock:
            return [i for i, bucket in self._buckets.items() if oracle in bucket]

    def oracles(self) -> List[OracleIdentity]:
        """Distinct oracles in registration order."""
        with self._lock:
            return list(self._order)

    def snapshot(self) -> Dict[int, List[str]]:
        with self._lock:
            return {i: [o.address for o in bucket] for i, bucket in self._buckets.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)
