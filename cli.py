#!/usr/bin/env python3
"""DWSIM Agent Engine CLI.

Typer-based CLI providing the same functionality as the MCP server.
Useful for direct interaction and testing without MCP client.

Usage:
    python cli.py list-objects
    python cli.py get-all-properties raw_feed
    python cli.py get-property raw_feed Molar Flow
    python cli.py calculate --mode async
    python cli.py exec get_property distillation_column Reflux Ratio
    python cli.py run-script my_script.py
    python cli.py connections
    python cli.py run-steps agent_response.json
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent))

from core import (
    AgentResponse,
    CommandInterpreter,
    InterpreterConfig,
    StepRunner,
    action_label,
    is_error_output,
)
from templates import default_flowsheet
from utils import ScriptSandbox, SandboxConfig, extract_connections, render_flowsheet_diagram

# Initialize CLI app
app = typer.Typer(
    name="dwsim-agent",
    help="DWSIM agent tool-execution CLI",
    no_args_is_help=True,
)

console = Console(soft_wrap=True)

# Configuration
CALCULATION_LATENCY_S = 1.5
EXECUTION_TIMEOUT_S = 5.0

store = default_flowsheet()
interpreter = CommandInterpreter(
    store,
    config=InterpreterConfig(calculation_latency_s=CALCULATION_LATENCY_S),
)


def emit(output: str) -> None:
    """Print tool output; error outputs print in red and exit 1."""
    if is_error_output(output):
        console.print(f"[red]{escape(output)}[/red]")
        raise typer.Exit(1)
    console.print(output, markup=False, highlight=False)


def run_command(command: str) -> None:
    """Execute an interpreter command and print the result."""
    emit(asyncio.run(interpreter.execute(command)))


async def _run_script(script: str, timeout: float) -> str:
    sandbox = ScriptSandbox(store, SandboxConfig(timeout_s=timeout))
    try:
        return await sandbox.run(script)
    finally:
        await sandbox.close()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    """DWSIM agent tool-execution CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# ============================================================================
# INSPECTION COMMANDS
# ============================================================================

@app.command()
def list_objects():
    """List all flowsheet objects."""
    run_command("list_objects")


@app.command()
def get_all_properties(name: str = typer.Argument(..., help="Object name")):
    """Show every property of an object."""
    run_command(f"get_all_properties {name}")


@app.command()
def get_property(
    name: str = typer.Argument(..., help="Object name"),
    prop: List[str] = typer.Argument(..., help="Property name (may contain spaces)"),
):
    """Show one property of an object."""
    run_command(f"get_property {name} {' '.join(prop)}")


@app.command()
def calculate(mode: str = typer.Option("sync", help="Calculation mode: sync or async")):
    """Validate and calculate the flowsheet."""
    run_command(f"calculate {mode}")


@app.command("exec")
def exec_command(command: List[str] = typer.Argument(..., help="Raw interpreter command")):
    """Run a raw interpreter command."""
    run_command(" ".join(command))


# ============================================================================
# SCRIPT COMMANDS
# ============================================================================

@app.command()
def run_script(
    path: Path = typer.Argument(..., help="Python script to run in the sandbox"),
    timeout: float = typer.Option(EXECUTION_TIMEOUT_S, help="Timeout in seconds"),
):
    """Run a Python script in the secured sandbox."""
    if not path.exists():
        console.print(f"[red]Script '{escape(str(path))}' not found[/red]")
        raise typer.Exit(1)

    emit(asyncio.run(_run_script(path.read_text(), timeout)))


# ============================================================================
# FLOWSHEET COMMANDS
# ============================================================================

@app.command()
def connections():
    """List connections derived from Inlet/Outlet properties."""
    table = Table(title="Flowsheet Connections")
    table.add_column("From", style="cyan")
    table.add_column("To", style="green")

    for conn in extract_connections(store):
        table.add_row(conn.source, conn.target)

    console.print(table)


@app.command()
def diagram():
    """Print a text diagram of the flowsheet."""
    console.print(render_flowsheet_diagram(store), markup=False, highlight=False)


# ============================================================================
# AGENT STEP COMMANDS
# ============================================================================

@app.command()
def run_steps(
    path: Path = typer.Argument(..., help="Agent response JSON file"),
    timeout: float = typer.Option(EXECUTION_TIMEOUT_S, help="Script timeout in seconds"),
):
    """Execute the steps of an agent response JSON file."""
    if not path.exists():
        console.print(f"[red]File '{escape(str(path))}' not found[/red]")
        raise typer.Exit(1)

    try:
        response = AgentResponse.from_json(path.read_text())
    except (ValueError, TypeError, AttributeError) as e:
        console.print(f"[red]Invalid agent response: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    async def _run():
        sandbox = ScriptSandbox(store, SandboxConfig(timeout_s=timeout))
        try:
            return await StepRunner(interpreter, sandbox).run_response(response)
        finally:
            await sandbox.close()

    outcomes = asyncio.run(_run())

    if response.plan:
        console.print("[bold]Plan:[/bold]")
        for item in response.plan:
            console.print(f"  - {escape(item)}")

    failed = False
    for index, outcome in enumerate(outcomes, start=1):
        color = "red" if outcome.is_error else "green"
        label = action_label(outcome.step)
        tool = f"{outcome.step.tool.value}, {label}" if label else outcome.step.tool.value
        console.print(f"\n[{color}]Step {index} ({tool})[/{color}]: {escape(outcome.step.thought)}")
        console.print(outcome.output, markup=False, highlight=False)
        if outcome.composition:
            console.print(
                json.dumps([c.to_dict() for c in outcome.composition]),
                markup=False,
                highlight=False,
            )
        failed = failed or outcome.is_error

    if failed:
        raise typer.Exit(1)


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    app()
