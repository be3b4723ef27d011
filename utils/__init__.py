# DWSIM Agent Engine - Utils Module
"""Utility modules for the DWSIM agent MCP server."""

from .script_sandbox import ScriptSandbox, SandboxConfig, SandboxResult, SandboxState, SandboxStatus
from .topology import StreamConnection, extract_connections, render_flowsheet_diagram
from .composition import ComponentFraction, extract_composition

# Note: sandbox_prelude installs sys.modules stubs, only import it in worker.py
# or for its classes; never call run_prelude() in the server process

__all__ = [
    "ScriptSandbox",
    "SandboxConfig",
    "SandboxResult",
    "SandboxState",
    "SandboxStatus",
    "StreamConnection",
    "extract_connections",
    "render_flowsheet_diagram",
    "ComponentFraction",
    "extract_composition",
]
