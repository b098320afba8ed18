"""FlightSurety oracle server: registers oracles and answers flight status requests."""

__version__ = "0.1.0"
