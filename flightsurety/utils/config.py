"""Command-line configuration for the oracle server."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

import bittensor as bt


def add_args(parser: Optional[argparse.ArgumentParser] = None) -> argparse.ArgumentParser:
    if parser is None:
        parser = argparse.ArgumentParser(description="FlightSurety oracle server")
    bt.logging.add_args(parser)

    parser.add_argument(
        "--oracles.once",
        action="store_true",
        default=False,
        help="Register oracles and seed flights, then exit without listening.",
    )
    parser.add_argument(
        "--oracles.no_http",
        action="store_true",
        default=False,
        help="Do not serve the HTTP status endpoint (overrides FLIGHTSURETY_HTTP_ENABLED).",
    )
    return parser


def config(args: Optional[Sequence[str]] = None) -> bt.Config:
    """Build the runner config; logging flags come from bittensor."""
    parser = add_args()
    return bt.Config(parser=parser, args=list(args) if args is not None else None)


def setup_logging(cfg: bt.Config) -> None:
    bt.logging.set_config(config=cfg.logging)
