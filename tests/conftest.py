"""
Pytest configuration and shared fixtures
"""

import tempfile
from unittest.mock import Mock
import pytest

from kubesim.models.config import ConfigFile
from kubesim.simulator.notifier import ChangeNotifier
from kubesim.simulator.simulator import Simulator
from kubesim.simulator.store import ResourceStore
from kubesim.utils.rng import RNG

# 2023-11-14T22:13:20Z, a Tuesday
FIXED_NOW = 1_700_000_000_000


@pytest.fixture
def temp_output_dir():
    """Create a temporary output directory"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def clock():
    """Clock frozen at FIXED_NOW"""
    return lambda: FIXED_NOW


@pytest.fixture
def minimal_config():
    """Create minimal configuration with a fixed seed"""
    return ConfigFile(seed=42)


@pytest.fixture
def simulator(minimal_config, clock):
    """Seeded simulator with a frozen clock"""
    return Simulator(minimal_config, clock=clock)


@pytest.fixture
def store(simulator):
    """Resource store behind the simulator fixture"""
    return simulator.store


@pytest.fixture
def bare_store(clock):
    """Standalone store with its own notifier"""
    return ResourceStore(rng=RNG(7), clock=clock, notifier=ChangeNotifier())


@pytest.fixture
def observer(simulator):
    """Mock callback subscribed to state changes"""
    callback = Mock()
    simulator.on_state_change(callback)
    return callback


@pytest.fixture
def run(simulator):
    """Execute a command line and return the CommandResult"""
    return simulator.execute_command
