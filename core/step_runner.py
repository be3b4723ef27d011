"""Agent step dispatch.

Routes each AgentStep to the tool it names:
- DWSIM -> CommandInterpreter
- Python -> ScriptSandbox
- Visualization -> flowsheet diagram
- DataAnalysis / FinalAnswer -> tool_output passed through
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .agent_steps import AgentResponse, AgentStep, AgentTool
from .errors import ERROR_PREFIX, is_error_output
from .interpreter import CommandInterpreter

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    """Output of one executed step."""
    step: AgentStep
    output: str
    composition: Optional[list] = None

    @property
    def is_error(self) -> bool:
        return is_error_output(self.output)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.to_dict(),
            "output": self.output,
            "is_error": self.is_error,
            "action": action_label(self.step),
            "composition": [c.to_dict() for c in self.composition] if self.composition else None,
        }


def action_label(step: AgentStep) -> Optional[str]:
    """Label of the button that triggers a step, if it has one."""
    if step.tool == AgentTool.PYTHON:
        return "Run Script"
    if step.tool == AgentTool.DWSIM:
        command = (step.tool_input or "").split()
        return "Calculate" if command[:1] == ["calculate"] else "Inspect"
    return None


class StepRunner:
    """Executes agent steps against the interpreter and sandbox."""

    def __init__(self, interpreter: CommandInterpreter, sandbox):
        """Initialize runner.

        Args:
            interpreter: Command interpreter for DWSIM steps
            sandbox: ScriptSandbox for Python steps
        """
        self.interpreter = interpreter
        self.sandbox = sandbox

    async def run_step(self, step: AgentStep) -> StepOutcome:
        """Execute one step."""
        from utils.composition import extract_composition
        from utils.topology import render_flowsheet_diagram

        if step.tool in (AgentTool.DWSIM, AgentTool.PYTHON) and not step.tool_input:
            return StepOutcome(step, f"{ERROR_PREFIX}Step has no tool input.")

        if step.tool == AgentTool.DWSIM:
            output = await self.interpreter.execute(step.tool_input)
            return StepOutcome(step, output, extract_composition(output))

        if step.tool == AgentTool.PYTHON:
            return StepOutcome(step, await self.sandbox.run(step.tool_input))

        if step.tool == AgentTool.VISUALIZATION:
            return StepOutcome(step, render_flowsheet_diagram(self.interpreter.store))

        return StepOutcome(step, step.tool_output or "")

    async def run_response(self, response: AgentResponse) -> List[StepOutcome]:
        """Execute all steps of a response in order."""
        outcomes = []
        for index, step in enumerate(response.steps):
            logger.debug("Running step %d (%s)", index, step.tool.value)
            outcomes.append(await self.run_step(step))
        return outcomes
