"""Shared fixtures: model stores, interpreter and sandbox.

Function scope throughout so no test sees another test's store or worker.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.interpreter import CommandInterpreter, InterpreterConfig
from core.model_store import SimulationModelStore
from templates import default_flowsheet
from utils.script_sandbox import SandboxConfig, ScriptSandbox

from factories import make_heater, make_settings, make_stream

FAST_LATENCY_S = 0.05


@pytest.fixture
def default_store():
    """Default ethanol plant (thermodynamic package unset)."""
    return default_flowsheet()


@pytest.fixture
def ready_store(default_store):
    """Default plant with a valid thermodynamic package."""
    return default_store.with_property(
        "flowsheet_settings", "Thermodynamic Package", "Peng-Robinson"
    )


@pytest.fixture
def interpreter(default_store):
    """Interpreter over the default plant with a short calculation latency."""
    return CommandInterpreter(
        default_store,
        config=InterpreterConfig(calculation_latency_s=FAST_LATENCY_S),
    )


@pytest.fixture
def ready_interpreter(ready_store):
    """Interpreter over a plant that passes validation."""
    return CommandInterpreter(
        ready_store,
        config=InterpreterConfig(calculation_latency_s=FAST_LATENCY_S),
    )


@pytest.fixture
def conflicting_heaters_store():
    """Two heaters that both violate thermal consistency.

    heater_a: 50 C -> 40 C with +100 kW
    heater_b: 60 C -> 90 C with -20 kW
    """
    return SimulationModelStore([
        make_stream("s1", 50),
        make_stream("s2", 40),
        make_stream("s3", 60),
        make_stream("s4", 90),
        make_heater("heater_a", "s1", "s2", 100),
        make_heater("heater_b", "s3", "s4", -20),
        make_settings(),
    ])


@pytest.fixture
async def sandbox(default_store):
    """Sandbox over the default plant; worker killed after the test."""
    sb = ScriptSandbox(default_store, SandboxConfig(timeout_s=5.0))
    yield sb
    await sb.close()
