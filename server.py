#!/usr/bin/env python3
"""DWSIM Agent Engine MCP Server.

FastMCP server exposing the tool-execution core of the process simulation
agent. Provides 9 atomic tools organized by category:

Inspection & Calculation (2):
- dwsim_command: list_objects, get_all_properties, get_property, calculate
- list_objects

Scripting (2):
- run_python, get_sandbox_status

Flowsheet (2):
- get_flowsheet_diagram, get_connections

Agent Steps (3):
- run_agent_steps, extract_composition, prepare_user_message

Design Principles:
- Plain text in, plain text out; errors start with "Error: "
- The model store is a fixed mock dataset built once at startup
- Scripts run in an isolated worker process, never in the server
"""

import logging
import sys
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from core import (
    AgentResponse,
    CommandInterpreter,
    ImageAttachment,
    InterpreterConfig,
    StepRunner,
    UserMessage,
)
from solver import CalculationValidator, ValidatorConfig
from templates import default_flowsheet
from utils import (
    ScriptSandbox,
    SandboxConfig,
    extract_connections,
    render_flowsheet_diagram,
)
from utils.composition import (
    composition_percentages,
    extract_composition as extract_composition_fractions,
)
from utils.topology import dangling_references

logger = logging.getLogger(__name__)


# Initialize FastMCP server
mcp = FastMCP(
    "dwsim-agent-engine",
    instructions="Inspect, calculate and script a mock DWSIM process flowsheet",
)

# Configuration
CALCULATION_LATENCY_S = 1.5
EXECUTION_TIMEOUT_S = 5.0

# Initialize engine (store is fixed for the process lifetime)
store = default_flowsheet()
interpreter = CommandInterpreter(
    store,
    validator=CalculationValidator(ValidatorConfig()),
    config=InterpreterConfig(calculation_latency_s=CALCULATION_LATENCY_S),
)
sandbox = ScriptSandbox(store, SandboxConfig(timeout_s=EXECUTION_TIMEOUT_S))
step_runner = StepRunner(interpreter, sandbox)


# ============================================================================
# INSPECTION & CALCULATION TOOLS (2)
# ============================================================================

@mcp.tool()
async def dwsim_command(command: str) -> str:
    """Run an inspection or calculation command against the flowsheet.

    Args:
        command: One of
            - list_objects
            - get_all_properties <object_name>
            - get_property <object_name> <property_name>
            - calculate [sync|async]

    Returns:
        Formatted result text, or a string starting with "Error: "
    """
    return await interpreter.execute(command)


@mcp.tool()
async def list_objects() -> str:
    """List every flowsheet object with its type.

    Returns:
        One "- name (Type)" line per object
    """
    return await interpreter.execute("list_objects")


# ============================================================================
# SCRIPTING TOOLS (2)
# ============================================================================

@mcp.tool()
async def run_python(script: str) -> str:
    """Run a Python script in the secured sandbox.

    The sandbox pre-binds one variable per flowsheet object (e.g.
    `distillation_column`), plus `flowsheet`, `DWSIM` and
    `configure_logging`. Networking, file system, subprocess and package
    installation are disabled. Scripts are killed after the timeout
    (5 seconds by default). The timeout covers the script only: the first
    call also starts the sandbox worker, which can add up to 30 seconds.

    Args:
        script: Python source code

    Returns:
        Captured stdout/stderr and logs, or a string starting with "Error: "
    """
    return await sandbox.run(script)


@mcp.tool()
def get_sandbox_status() -> Dict[str, Any]:
    """Get the Python sandbox status.

    Returns:
        State (not_started, loading, ready, error), timeout and last error
    """
    return {
        "state": sandbox.state.value,
        "timeout_s": sandbox.config.timeout_s,
        "last_error": sandbox.last_error,
    }


# ============================================================================
# FLOWSHEET TOOLS (2)
# ============================================================================

@mcp.tool()
def get_flowsheet_diagram() -> Dict[str, Any]:
    """Get a text diagram of the flowsheet topology.

    Returns:
        Diagram text, object names and connection count
    """
    return {
        "diagram": render_flowsheet_diagram(store),
        "objects": store.names(),
        "connections": len(extract_connections(store)),
    }


@mcp.tool()
def get_connections() -> Dict[str, Any]:
    """Get connections derived from Inlet/Outlet properties.

    Returns:
        List of {"from", "to"} edges and any references to missing objects
    """
    return {
        "connections": [c.to_dict() for c in extract_connections(store)],
        "dangling": [c.to_dict() for c in dangling_references(store)],
    }


# ============================================================================
# AGENT STEP TOOLS (3)
# ============================================================================

@mcp.tool()
async def run_agent_steps(response: Dict[str, Any]) -> Dict[str, Any]:
    """Execute the steps of an agent response in order.

    Args:
        response: {"plan": [...], "steps": [{"thought", "tool", "tool_input",
            "tool_output", "is_final_answer"}, ...]} where tool is one of
            Python, DWSIM, DataAnalysis, FinalAnswer, Visualization

    Returns:
        Plan and per-step outputs
    """
    try:
        parsed = AgentResponse.from_dict(response)
    except (ValueError, TypeError, AttributeError) as e:
        return {"error": f"Invalid agent response: {e}"}

    outcomes = await step_runner.run_response(parsed)
    return {
        "plan": parsed.plan,
        "outcomes": [o.to_dict() for o in outcomes],
    }


@mcp.tool()
def extract_composition(output: str) -> Dict[str, Any]:
    """Extract component fractions from inspection output.

    Args:
        output: Text returned by dwsim_command (e.g. get_all_properties)

    Returns:
        Components list and percentages of their total, or nulls if fewer
        than two were found
    """
    fractions = extract_composition_fractions(output)
    if not fractions:
        return {"components": None, "percentages": None}
    return {
        "components": [f.to_dict() for f in fractions],
        "percentages": composition_percentages(fractions),
    }


@mcp.tool()
def prepare_user_message(
    content: str,
    image_base64: Optional[str] = None,
    image_mime_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a user chat message for the planning service.

    The image, if any, is passed through unmodified; only its MIME type is
    checked.

    Args:
        content: Message text
        image_base64: Base64 encoded image data
        image_mime_type: MIME type of the image (must start with "image/")

    Returns:
        {"message": {...}} or {"error": "..."}
    """
    image = None
    if image_base64 is not None:
        try:
            image = ImageAttachment(image_base64, image_mime_type or "")
        except ValueError as e:
            return {"error": str(e)}
    return {"message": UserMessage(content, image).to_dict()}


def main():
    """Run the MCP server over stdio."""
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Loaded flowsheet with %d objects", len(store))
    mcp.run()


if __name__ == "__main__":
    main()
