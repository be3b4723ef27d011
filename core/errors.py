"""Error taxonomy for the DWSIM agent engine.

Internals raise these; the public entry points (CommandInterpreter.execute,
ScriptSandbox.run) convert them to plain strings prefixed with "Error: ".
The UI layer only checks that prefix.
"""

ERROR_PREFIX = "Error: "


class EngineError(Exception):
    """Base class for all engine errors."""

    def to_output(self) -> str:
        """Render as the text returned across the tool boundary."""
        return f"{ERROR_PREFIX}{self}"


class MissingArgumentError(EngineError):
    """A command was called without a required argument."""
    pass


class NotFoundError(EngineError):
    """An object or property does not exist in the model store."""
    pass


class UnknownCommandError(EngineError):
    """The first token of a command is not a known action."""
    pass


class UnknownModeError(EngineError):
    """`calculate` was given a mode other than sync/async."""
    pass


class ValidationFailedError(EngineError):
    """A calculation precondition was violated."""
    pass


class SandboxTimeoutError(EngineError):
    """A sandboxed script did not finish within the configured timeout."""
    pass


class SandboxFaultError(EngineError):
    """The script or the sandbox machinery raised."""
    pass


def is_error_output(output: str) -> bool:
    """Check whether a tool output is an error response."""
    return output.startswith(ERROR_PREFIX.rstrip())
