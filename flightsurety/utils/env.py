from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env once on import.
load_dotenv()

ENV_PREFIX = "FLIGHTSURETY_"


def _key(name: str) -> str:
    return name if name.startswith(ENV_PREFIX) or name == "TESTING" else f"{ENV_PREFIX}{name}"


def _env_str(name: str, default: str = "") -> str:
    """Read a string env var (prefix added when missing), stripping whitespace."""
    return (os.getenv(_key(name), default) or "").strip()


def _env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean env var with common truthy values."""
    raw = _env_str(name, str(default)).lower()
    return raw in {"y", "yes", "t", "true", "on", "1"}


def _test_override(name: str) -> str:
    # TESTING=true lets TEST_<NAME> take precedence.
    if _env_bool("TESTING", False):
        return (os.getenv(f"TEST_{_key(name)}") or "").strip()
    return ""


def _env_int(name: str, default: int = 0) -> int:
    v = _test_override(name) or _env_str(name, str(default))
    return int(v)


def _env_float(name: str, default: float = 0.0) -> float:
    v = _test_override(name) or _env_str(name, str(default))
    return float(v)


def _env_optional_int(name: str) -> Optional[int]:
    """Read an int env var that may be unset (empty -> None)."""
    v = _test_override(name) or _env_str(name, "")
    return int(v) if v else None
