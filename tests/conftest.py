import os
import sys
from pathlib import Path

import pytest

# Ensure repo root is on sys.path so `import flightsurety` works under all pytest import modes.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def clean_env(monkeypatch):
    """Drop every FLIGHTSURETY_* variable so config tests start from defaults."""
    for key in list(os.environ):
        if key.startswith("FLIGHTSURETY_") or key.startswith("TEST_FLIGHTSURETY_") or key == "TESTING":
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
