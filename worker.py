#!/usr/bin/env python3
"""Sandbox Worker for Agent-Authored Python Scripts.

This script is executed as a long-lived subprocess by ScriptSandbox so that
untrusted scripts never run inside the MCP server process.

Usage:
    python worker.py

Protocol: one JSON object per line on stdin, one JSON reply per line on
stdout.
- {"op": "init", "objects": [...], "disabled_modules": [...]}
    -> {"status": "ready", "output": "<prelude banner>"}
- {"op": "run", "script": "..."}
    -> {"status": "completed", "stdout": ..., "stderr": ..., "logs": ...}
    -> {"status": "failed", "error": "<Type>: <message>", "stdout": ..., "stderr": ...}

Before anything else the worker moves its protocol channels off file
descriptors 0 and 1 so scripts cannot read requests or forge replies.
"""

import ast
import asyncio
import contextlib
import inspect
import io
import json
import os
import sys
import traceback
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from utils.sandbox_prelude import DISABLED_MODULES, SandboxEnvironment, run_prelude


class NullStream(io.TextIOBase):
    """Empty source and write sink standing in for stdin/stdout."""

    def read(self, size=-1) -> str:
        return ""

    def readline(self, size=-1) -> str:
        return ""

    def write(self, s: str) -> int:
        return len(s)


def open_channels():
    """Duplicate stdin/stdout for the protocol and point fds 0/1 at devnull.

    Returns:
        (inbox, outbox) text streams
    """
    inbox = os.fdopen(os.dup(0), "r", encoding="utf-8")
    outbox = os.fdopen(os.dup(1), "w", encoding="utf-8")

    devnull = os.open(os.devnull, os.O_RDWR)
    os.dup2(devnull, 0)
    os.dup2(devnull, 1)
    os.close(devnull)

    sys.stdin = NullStream()
    sys.stdout = NullStream()
    return inbox, outbox


def send(outbox, message: dict) -> None:
    """Write one reply line."""
    outbox.write(json.dumps(message, default=str) + "\n")
    outbox.flush()


def format_exception(exc: BaseException) -> str:
    """Exception type and message, without the worker's own frames."""
    return "".join(traceback.format_exception_only(type(exc), exc)).strip()


def execute_script(script: str, namespace: dict) -> None:
    """Compile and run a script, allowing top-level await."""
    code = compile(script, "<sandbox>", "exec", flags=ast.PyCF_ALLOW_TOP_LEVEL_AWAIT)
    if code.co_flags & inspect.CO_COROUTINE:
        asyncio.run(eval(code, namespace))
    else:
        exec(code, namespace)


def handle_init(message: dict) -> tuple:
    """Run the prelude.

    Returns:
        (SandboxEnvironment, reply)
    """
    banner = io.StringIO()
    disabled = tuple(message.get("disabled_modules") or DISABLED_MODULES)
    with contextlib.redirect_stdout(banner):
        env = run_prelude(message.get("objects", []), disabled_modules=disabled)
    return env, {"status": "ready", "output": banner.getvalue()}


def handle_run(env: SandboxEnvironment, message: dict) -> dict:
    """Run one script with per-call stdout/stderr buffers.

    Streams are only redirected inside this call; they go back to the null
    sink whether the script succeeds or not.
    """
    stdout = io.StringIO()
    stderr = io.StringIO()
    namespace = env.fresh_namespace()

    try:
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            execute_script(message.get("script", ""), namespace)
    except (Exception, SystemExit) as e:
        # Failed runs do not leak their log lines into the next run
        env.log_capture.drain()
        return {
            "status": "failed",
            "error": format_exception(e),
            "stdout": stdout.getvalue(),
            "stderr": stderr.getvalue(),
        }

    return {
        "status": "completed",
        "stdout": stdout.getvalue(),
        "stderr": stderr.getvalue(),
        "logs": env.log_capture.drain(),
    }


def main():
    """Serve requests until stdin closes."""
    inbox, outbox = open_channels()
    sys.stderr = NullStream()
    env = None

    for line in inbox:
        line = line.strip()
        if not line:
            continue

        try:
            message = json.loads(line)
            op = message.get("op")
            if op == "init":
                if env is None:
                    env, reply = handle_init(message)
                else:
                    reply = {"status": "ready", "output": ""}
            elif op == "run":
                if env is None:
                    reply = {"status": "failed", "error": "Sandbox is not initialized."}
                else:
                    reply = handle_run(env, message)
            elif op == "shutdown":
                send(outbox, {"status": "stopped"})
                break
            else:
                reply = {"status": "failed", "error": f"Unknown operation '{op}'"}
        except Exception as e:
            print(f"Warning: sandbox worker request failed: {e}", file=sys.__stderr__)
            reply = {"status": "failed", "error": format_exception(e)}

        send(outbox, reply)


if __name__ == "__main__":
    main()
