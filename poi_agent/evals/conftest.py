"""
pytest conftest for the POI proximity test suite.

1. Makes the repository root and this directory importable, so the suite
   runs without installing the package.
2. Provides a Settings fixture that points the cache at a tmp dir and
   turns the pagination delay off, and clears the invocation log between
   tests. No test touches the network: provider calls go through
   httpx.MockTransport or the fakes in fakes.py.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
sys.path.insert(0, os.path.dirname(__file__))

import pytest

from poi_agent.proximity import clear_invocation_log
from poi_agent.settings import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(
        google_maps_api_key="test-key",
        cache_dir=tmp_path / "places_cache",
        page_delay_seconds=0.0,
        request_timeout=2.0,
    )


@pytest.fixture(autouse=True)
def fresh_invocation_log():
    clear_invocation_log()
    yield
    clear_invocation_log()
