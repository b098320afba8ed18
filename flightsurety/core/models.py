"""
Core data models shared by the registrar, dispatcher and submitter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from flightsurety.exceptions import InvalidIndex

INDEXES_PER_ORACLE = 3
DEFAULT_INDEX_SPACE = 10


class StatusCode(IntEnum):
    """Flight status codes as encoded on the ledger."""

    UNKNOWN = 0
    ON_TIME = 10
    LATE_AIRLINE = 20
    LATE_WEATHER = 30
    LATE_TECHNICAL = 40
    LATE_OTHER = 50


STATUS_CODES: Tuple[StatusCode, ...] = tuple(StatusCode)


@dataclass(frozen=True)
class OracleIdentity:
    """A registered oracle. On an EVM ledger this is the account address."""

    address: str

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class IndexSet:
    """The three indices the ledger assigned to one oracle."""

    values: Tuple[int, int, int]

    @classmethod
    def from_ledger(cls, raw: Iterable[Any], *, index_space: int = DEFAULT_INDEX_SPACE) -> "IndexSet":
        values = tuple(int(v) for v in raw)
        if len(values) != INDEXES_PER_ORACLE:
            raise InvalidIndex(f"expected {INDEXES_PER_ORACLE} indexes, got {len(values)}: {values}")
        for v in values:
            if not 0 <= v < index_space:
                raise InvalidIndex(f"index {v} outside index space [0, {index_space})")
        return cls(values=values)  # type: ignore[arg-type]

    def __iter__(self):
        return iter(self.values)

    def __contains__(self, index: object) -> bool:
        return index in self.values


class StatusRequest(BaseModel):
    """An `OracleRequest` event observed on the ledger."""

    model_config = ConfigDict(frozen=True)

    index: int
    # Ledger address of the airline operating the flight.
    airline: str
    flight: str
    timestamp: int
    block_number: Optional[int] = Field(default=None, exclude=True)

    @property
    def key(self) -> Tuple[int, str, str, int]:
        return (self.index, self.airline, self.flight, self.timestamp)

    @classmethod
    def from_event_args(cls, args: Mapping[str, Any], *, block_number: Optional[int] = None) -> "StatusRequest":
        return cls(
            index=int(args["index"]),
            airline=str(args["airline"]),
            flight=str(args["flight"]),
            timestamp=int(args["timestamp"]),
            block_number=block_number,
        )


@dataclass(frozen=True)
class StatusVote:
    """One oracle's answer to one request."""

    oracle: OracleIdentity
    request: StatusRequest
    status_code: StatusCode

    def to_payload(self) -> Dict[str, Any]:
        return {
            "index": self.request.index,
            "airline": self.request.airline,
            "flight": self.request.flight,
            "timestamp": self.request.timestamp,
            "status_code": int(self.status_code),
            "oracle": self.oracle.address,
        }
