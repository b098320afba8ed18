from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from flightsurety import __version__
from flightsurety.oracles.registry import IndexRegistry


class StatusResponse(BaseModel):
    ok: bool = True


class OracleSummary(BaseModel):
    address: str
    indexes: List[int]


class RegistrySnapshot(BaseModel):
    frozen: bool
    index_space: int
    oracles: List[OracleSummary] = Field(default_factory=list)
    buckets: Dict[int, List[str]] = Field(default_factory=dict)


def create_app(registry: Optional[IndexRegistry] = None) -> FastAPI:
    app = FastAPI(title="FlightSurety Oracle Server", version=__version__)

    @app.get("/status", response_model=StatusResponse)
    def status():
        return StatusResponse(ok=True)

    @app.get("/api")
    def api():
        return {"message": "An API for use with your Dapp!"}

    @app.get("/oracles", response_model=RegistrySnapshot)
    def oracles():
        if registry is None:
            return RegistrySnapshot(frozen=False, index_space=0)
        return RegistrySnapshot(
            frozen=registry.frozen,
            index_space=registry.index_space,
            oracles=[
                OracleSummary(address=o.address, indexes=registry.indexes_of(o))
                for o in registry.oracles()
            ],
            buckets=registry.snapshot(),
        )

    return app
