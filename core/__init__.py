# DWSIM Agent Engine - Core Module
"""Core data structures, command interpreter and agent step dispatch."""

from .errors import (
    ERROR_PREFIX,
    EngineError,
    MissingArgumentError,
    NotFoundError,
    UnknownCommandError,
    UnknownModeError,
    ValidationFailedError,
    SandboxTimeoutError,
    SandboxFaultError,
    is_error_output,
)
from .model_store import (
    ObjectKind,
    Property,
    SimulationObject,
    SimulationModelStore,
)
from .interpreter import InterpreterConfig, CommandInterpreter, VALID_COMMANDS
from .agent_steps import AgentTool, AgentStep, AgentResponse, ImageAttachment, UserMessage
from .step_runner import StepRunner, StepOutcome, action_label

__all__ = [
    # Errors
    "ERROR_PREFIX",
    "EngineError",
    "MissingArgumentError",
    "NotFoundError",
    "UnknownCommandError",
    "UnknownModeError",
    "ValidationFailedError",
    "SandboxTimeoutError",
    "SandboxFaultError",
    "is_error_output",
    # Model store
    "ObjectKind",
    "Property",
    "SimulationObject",
    "SimulationModelStore",
    # Interpreter
    "InterpreterConfig",
    "CommandInterpreter",
    "VALID_COMMANDS",
    # Agent steps
    "AgentTool",
    "AgentStep",
    "AgentResponse",
    "ImageAttachment",
    "UserMessage",
    "StepRunner",
    "StepOutcome",
    "action_label",
]
