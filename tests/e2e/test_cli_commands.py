"""CLI command tests.

Smoke tests check that every command parses; the rest check output and
exit codes. Only run-script and run-steps start a sandbox worker.
"""

import json

import pytest
from typer.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_app():
    from cli import app
    return app


# =============================================================================
# SMOKE TESTS (fast, no worker)
# =============================================================================

class TestCLISmoke:
    """Fast smoke tests - verify commands exist and parse correctly."""

    @pytest.mark.unit
    @pytest.mark.parametrize("cmd", [
        ["--help"],
        ["list-objects", "--help"],
        ["get-all-properties", "--help"],
        ["get-property", "--help"],
        ["calculate", "--help"],
        ["exec", "--help"],
        ["run-script", "--help"],
        ["connections", "--help"],
        ["diagram", "--help"],
        ["run-steps", "--help"],
    ])
    def test_command_exists_and_has_help(self, runner, cli_app, cmd):
        """All CLI commands should have help and not crash."""
        result = runner.invoke(cli_app, cmd)
        assert result.exit_code == 0


# =============================================================================
# INSPECTION COMMANDS
# =============================================================================

class TestCLIInspection:
    """Inspection and calculation commands."""

    @pytest.mark.unit
    def test_list_objects(self, runner, cli_app):
        result = runner.invoke(cli_app, ["list-objects"])
        assert result.exit_code == 0
        assert "Available objects:" in result.stdout
        assert "- raw_feed (Stream)" in result.stdout

    @pytest.mark.unit
    def test_get_all_properties(self, runner, cli_app):
        result = runner.invoke(cli_app, ["get-all-properties", "distillation_column"])
        assert result.exit_code == 0
        assert "- Inlets           : [heated_feed]" in result.stdout

    @pytest.mark.unit
    def test_get_property_multi_word(self, runner, cli_app):
        result = runner.invoke(cli_app, ["get-property", "raw_feed", "Molar", "Flow"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "raw_feed.Molar Flow: 100 kmol/h"

    @pytest.mark.unit
    def test_unknown_object_exits_nonzero(self, runner, cli_app):
        result = runner.invoke(cli_app, ["get-all-properties", "ghost"])
        assert result.exit_code == 1
        assert "Error: Object 'ghost' not found." in result.stdout

    @pytest.mark.unit
    def test_calculate_blocked(self, runner, cli_app):
        result = runner.invoke(cli_app, ["calculate"])
        assert result.exit_code == 1
        assert "Error: Calculation failed. Invalid or missing thermodynamic package." in result.stdout

    @pytest.mark.unit
    def test_exec_raw_command(self, runner, cli_app):
        result = runner.invoke(cli_app, ["exec", "get_property", "distillation_column", "Reflux", "Ratio"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "distillation_column.Reflux Ratio: 1.5"

    @pytest.mark.unit
    def test_exec_unknown_command(self, runner, cli_app):
        result = runner.invoke(cli_app, ["exec", "delete", "raw_feed"])
        assert result.exit_code == 1
        assert "Error: Unknown command 'delete'." in result.stdout


# =============================================================================
# FLOWSHEET COMMANDS
# =============================================================================

class TestCLIFlowsheet:
    """Topology commands."""

    @pytest.mark.unit
    def test_connections_table(self, runner, cli_app):
        result = runner.invoke(cli_app, ["connections"])
        assert result.exit_code == 0
        assert "Flowsheet Connections" in result.stdout
        assert "feed_preheater" in result.stdout

    @pytest.mark.unit
    def test_diagram(self, runner, cli_app):
        result = runner.invoke(cli_app, ["diagram"])
        assert result.exit_code == 0
        assert "Flowsheet Diagram" in result.stdout
        assert "  raw_feed → feed_pump" in result.stdout


# =============================================================================
# SANDBOX COMMANDS (start a worker)
# =============================================================================

class TestCLIScripts:
    """run-script and run-steps."""

    @pytest.mark.integration
    def test_run_script(self, runner, cli_app, tmp_path):
        script = tmp_path / "check.py"
        script.write_text("print(distillation_column.GetProperty('Reflux Ratio'))\n")

        result = runner.invoke(cli_app, ["run-script", str(script)])
        assert result.exit_code == 0
        assert result.stdout.startswith("1.5")
        assert "--- Captured Logs ---" in result.stdout

    @pytest.mark.integration
    def test_run_script_error(self, runner, cli_app, tmp_path):
        script = tmp_path / "bad.py"
        script.write_text("import socket\nsocket.socket()\n")

        result = runner.invoke(cli_app, ["run-script", str(script)])
        assert result.exit_code == 1
        assert "Module 'socket' is disabled in this sandbox." in result.stdout

    @pytest.mark.unit
    def test_run_script_missing_file(self, runner, cli_app, tmp_path):
        result = runner.invoke(cli_app, ["run-script", str(tmp_path / "missing.py")])
        assert result.exit_code == 1
        assert "not found" in result.stdout

    @pytest.mark.integration
    def test_run_steps(self, runner, cli_app, tmp_path):
        response = tmp_path / "response.json"
        response.write_text(json.dumps({
            "plan": ["Inspect the distillate", "Answer"],
            "steps": [
                {"thought": "Look", "tool": "DWSIM", "tool_input": "get_all_properties distillate"},
                {"thought": "Count", "tool": "Python", "tool_input": "print(len(objects))"},
                {"thought": "Done", "tool": "FinalAnswer", "tool_output": "95% ethanol", "is_final_answer": True},
            ],
        }))

        result = runner.invoke(cli_app, ["run-steps", str(response)])
        assert result.exit_code == 0, result.stdout
        assert "Inspect the distillate" in result.stdout
        assert "Step 1 (DWSIM, Inspect)" in result.stdout
        assert "Step 2 (Python, Run Script)" in result.stdout
        assert "Step 3 (FinalAnswer)" in result.stdout
        assert '[{"name": "Ethanol", "value": 0.95}, {"name": "Water", "value": 0.05}]' in result.stdout
        assert "16" in result.stdout
        assert "95% ethanol" in result.stdout

    @pytest.mark.unit
    def test_run_steps_failing_step(self, runner, cli_app, tmp_path):
        response = tmp_path / "response.json"
        response.write_text(json.dumps({
            "steps": [{"thought": "Solve", "tool": "DWSIM", "tool_input": "calculate"}],
        }))

        result = runner.invoke(cli_app, ["run-steps", str(response)])
        assert result.exit_code == 1
        assert "Step 1 (DWSIM, Calculate)" in result.stdout
        assert "Calculation failed." in result.stdout

    @pytest.mark.unit
    def test_run_steps_invalid_json(self, runner, cli_app, tmp_path):
        response = tmp_path / "response.json"
        response.write_text(json.dumps({"steps": [{"thought": "x", "tool": "Shell"}]}))

        result = runner.invoke(cli_app, ["run-steps", str(response)])
        assert result.exit_code == 1
        assert "Invalid agent response" in result.stdout
