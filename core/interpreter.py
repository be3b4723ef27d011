"""Command interpreter for the DWSIM inspection tool.

Grammar (whitespace-tokenized, no quoting):

    list_objects
    get_all_properties <object_name>
    get_property <object_name> <property name, may contain spaces>
    calculate [sync|async]

Every result is plain text. Failures are returned as "Error: ..." strings,
never raised.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from .errors import (
    EngineError,
    MissingArgumentError,
    NotFoundError,
    UnknownCommandError,
    UnknownModeError,
)
from .model_store import SimulationModelStore, SimulationObject

logger = logging.getLogger(__name__)

VALID_COMMANDS = ("list_objects", "get_all_properties", "get_property", "calculate")
CALCULATION_MODES = ("sync", "async")


@dataclass
class InterpreterConfig:
    """Configuration for the command interpreter."""

    # Simulated solve time for `calculate sync`
    calculation_latency_s: float = 1.5


class CommandInterpreter:
    """Executes inspection/calculation commands against a model store."""

    def __init__(
        self,
        store: SimulationModelStore,
        validator=None,
        config: Optional[InterpreterConfig] = None,
    ):
        """Initialize interpreter.

        Args:
            store: Flowsheet to inspect
            validator: CalculationValidator (default validator if omitted)
            config: Interpreter configuration
        """
        if validator is None:
            from solver.validation import CalculationValidator
            validator = CalculationValidator()

        self.store = store
        self.validator = validator
        self.config = config or InterpreterConfig()
        self._handlers: Dict[str, Callable[[List[str]], Awaitable[str]]] = {
            "list_objects": self._list_objects,
            "get_all_properties": self._get_all_properties,
            "get_property": self._get_property,
            "calculate": self._calculate,
        }

    async def execute(self, command: str) -> str:
        """Execute a command string.

        Args:
            command: Raw command text

        Returns:
            Formatted result, or an "Error: ..." string
        """
        parts = command.split()
        action = parts[0] if parts else ""
        logger.debug("Executing command: %r", command)

        handler = self._handlers.get(action)
        try:
            if handler is None:
                raise UnknownCommandError(
                    f"Unknown command '{action}'. Valid commands: {', '.join(VALID_COMMANDS)}."
                )
            return await handler(parts[1:])
        except EngineError as e:
            logger.debug("Command %r failed: %s", action, e)
            return e.to_output()

    def _require_object(self, name: str) -> SimulationObject:
        obj = self.store.get(name)
        if obj is None:
            raise NotFoundError(f"Object '{name}' not found.")
        return obj

    async def _list_objects(self, args: List[str]) -> str:
        lines = [f"- {obj.name} ({obj.kind.value})" for obj in self.store]
        return "Available objects:\n" + "\n".join(lines)

    async def _get_all_properties(self, args: List[str]) -> str:
        if not args:
            raise MissingArgumentError("Missing argument. Usage: get_all_properties <object_name>")
        name = args[0]
        obj = self._require_object(name)

        if not obj.properties:
            return f"Object '{name}' has no properties."

        width = max(len(key) for key in obj.properties)
        lines = [
            f"- {key.ljust(width)} : {prop.format()}"
            for key, prop in obj.properties.items()
        ]
        return f"Properties for {obj.name}:\n" + "\n".join(lines)

    async def _get_property(self, args: List[str]) -> str:
        if not args:
            raise MissingArgumentError(
                "Missing arguments. Usage: get_property <object_name> <property_name>"
            )
        name = args[0]
        if len(args) < 2:
            raise MissingArgumentError(
                f"Missing property name. Usage: get_property {name} <property_name>"
            )
        obj = self._require_object(name)

        key = " ".join(args[1:])
        prop = obj.get_property(key)
        if prop is None:
            raise NotFoundError(f"Property '{key}' not found in object '{name}'.")
        return f"{name}.{key}: {prop.format()}"

    async def _calculate(self, args: List[str]) -> str:
        self.validator.check(self.store)

        mode = args[0] if args else "sync"
        if mode == "sync":
            await asyncio.sleep(self.config.calculation_latency_s)
            return "Flowsheet calculation completed successfully (Synchronous)."
        if mode == "async":
            return "Flowsheet calculation started in the background (Asynchronous)."
        raise UnknownModeError(
            f"Unknown calculation mode '{mode}'. Valid modes are 'sync' or 'async'."
        )
