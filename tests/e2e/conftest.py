"""E2E fixtures: real sandbox worker processes.

Function scope for every worker so a killed or mutated worker never
carries over into another test.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


@pytest.fixture(scope="session")
def worker_path():
    """Path to worker.py (session-scoped, never changes)."""
    path = Path(__file__).parent.parent.parent / "worker.py"
    assert path.exists(), f"worker.py not found at {path}"
    return path
