"""
Shared fixtures for Mutineer tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from mutineer import ChaosRegistry, ConfigStore, Mutineer, MutineerConfig  # noqa: E402


@pytest.fixture
def store():
    """A private, enabled config store"""
    return ConfigStore(MutineerConfig(enabled=True, default_failure_rate=0.1))


@pytest.fixture
def gateway(store):
    """Gateway bound to the private store"""
    return Mutineer(store)


@pytest.fixture
def registry():
    return ChaosRegistry()


@pytest.fixture
def calls():
    """Operation that counts its invocations"""

    class Counter:
        def __init__(self):
            self.count = 0

        def __call__(self):
            self.count += 1
            return ("ok", "success")

    return Counter()
