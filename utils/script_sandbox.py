"""Script Sandbox for Agent-Authored Python.

Runs untrusted scripts in a long-lived worker subprocess (worker.py) with:
- Lazy, single-flight initialization (prelude + mocked DWSIM facade)
- Serialized execution (one script in flight at a time)
- Hard wall-clock timeout; the worker is killed on expiry and restarted
  on the next call
- Capture of stdout, stderr and logging output

Public entry points never raise: every failure comes back as a string
starting with "Error: ".
"""

import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.errors import EngineError, SandboxFaultError, SandboxTimeoutError
from core.model_store import SimulationModelStore, format_number

from .sandbox_prelude import DISABLED_MODULES

logger = logging.getLogger(__name__)

EXECUTION_TIMEOUT_S = 5.0
LOGS_HEADER = "--- Captured Logs ---"

# Single reply lines can carry large script output
STREAM_LIMIT = 16 * 1024 * 1024


class SandboxState(Enum):
    """Lifecycle of the sandbox worker."""
    NOT_STARTED = "not_started"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class SandboxStatus(Enum):
    """Outcome of a single script run."""
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class SandboxConfig:
    """Configuration for the script sandbox.

    timeout_s bounds the script run only. The first call after a start or
    a restart also waits for the worker to initialize, which can take up
    to init_timeout_s on top of timeout_s.
    """

    timeout_s: float = EXECUTION_TIMEOUT_S
    init_timeout_s: float = 30.0
    python_executable: str = sys.executable
    worker_script: Path = field(
        default_factory=lambda: Path(__file__).parent.parent / "worker.py"
    )
    disabled_modules: Tuple[str, ...] = DISABLED_MODULES


@dataclass
class SandboxResult:
    """Result of one script run."""
    status: SandboxStatus
    stdout: str = ""
    stderr: str = ""
    logs: str = ""
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.status != SandboxStatus.COMPLETED

    def render(self) -> str:
        """Combine output the way the agent UI displays it."""
        if self.is_error:
            return f"Error: {self.error}"

        output = (self.stdout + self.stderr).strip()
        logs = self.logs.strip()
        if logs:
            output += f"\n\n{LOGS_HEADER}\n{logs}"
        return output.strip()


class ScriptSandbox:
    """Host side of the sandbox: owns and talks to the worker process."""

    def __init__(
        self,
        store: SimulationModelStore,
        config: Optional[SandboxConfig] = None,
    ):
        """Initialize sandbox.

        Args:
            store: Flowsheet used to seed the mocked object handles
            config: Sandbox configuration
        """
        self.store = store
        self.config = config or SandboxConfig()
        self.state = SandboxState.NOT_STARTED
        self.banner = ""
        self.last_error: Optional[str] = None

        self._process: Optional[asyncio.subprocess.Process] = None
        self._init_task: Optional[asyncio.Task] = None
        self._run_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def ensure_started(self) -> None:
        """Start the worker if needed.

        Concurrent callers share one in-flight initialization.

        Raises:
            SandboxFaultError: If the worker cannot be started
        """
        if self.state == SandboxState.READY and self._process is not None:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._start())
        task = self._init_task
        try:
            await asyncio.shield(task)
        except Exception:
            if self._init_task is task:
                self._init_task = None
            raise

    async def _start(self) -> None:
        self.state = SandboxState.LOADING
        logger.info("Starting sandbox worker: %s", self.config.worker_script)
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.config.python_executable,
                str(self.config.worker_script),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                cwd=str(Path(self.config.worker_script).parent),
                limit=STREAM_LIMIT,
            )
            reply = await asyncio.wait_for(
                self._request({
                    "op": "init",
                    "objects": self.store.to_dict(),
                    "disabled_modules": list(self.config.disabled_modules),
                }),
                timeout=self.config.init_timeout_s,
            )
            if reply.get("status") != "ready":
                raise SandboxFaultError(
                    f"Sandbox initialization failed: {reply.get('error', 'unknown error')}"
                )
        except asyncio.TimeoutError:
            await self._kill()
            self._mark_error("Sandbox initialization timed out.")
            raise SandboxFaultError("Sandbox initialization timed out.")
        except EngineError as e:
            await self._kill()
            self._mark_error(str(e))
            raise
        except Exception as e:
            await self._kill()
            self._mark_error(str(e))
            raise SandboxFaultError(f"Sandbox failed to start: {e}") from e

        self.banner = reply.get("output", "")
        self.state = SandboxState.READY
        self.last_error = None
        logger.debug("Sandbox ready:\n%s", self.banner.strip())

    def _mark_error(self, message: str) -> None:
        self.state = SandboxState.ERROR
        self.last_error = message
        logger.error("Sandbox worker failed: %s", message)

    async def _kill(self) -> None:
        """Kill the worker and forget it."""
        process, self._process = self._process, None
        self._init_task = None
        if process is None or process.returncode is not None:
            return
        process.kill()
        try:
            await asyncio.wait_for(process.wait(), timeout=5)
        except asyncio.TimeoutError:
            logger.warning("Sandbox worker pid %s did not exit after kill", process.pid)

    async def close(self) -> None:
        """Stop the worker process."""
        async with self._run_lock:
            if self._process is not None:
                logger.info("Stopping sandbox worker pid %s", self._process.pid)
            await self._kill()
            self.state = SandboxState.NOT_STARTED

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------

    async def _request(self, message: Dict[str, Any]) -> Dict[str, Any]:
        process = self._process
        if process is None or process.stdin is None or process.stdout is None:
            raise SandboxFaultError("Sandbox worker is not running.")

        process.stdin.write((json.dumps(message) + "\n").encode("utf-8"))
        await process.stdin.drain()

        line = await process.stdout.readline()
        if not line:
            raise SandboxFaultError("Sandbox worker exited unexpectedly.")
        return json.loads(line.decode("utf-8"))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _run_request(self, script: str) -> Dict[str, Any]:
        """Send one run request under the script timeout.

        Raises:
            SandboxTimeoutError: If the script outlives timeout_s; the
                worker is killed first
        """
        try:
            return await asyncio.wait_for(
                self._request({"op": "run", "script": script}),
                timeout=self.config.timeout_s,
            )
        except asyncio.TimeoutError:
            # Kill rather than abandon; next call re-initializes
            logger.warning(
                "Script exceeded %ss timeout, killing sandbox worker",
                self.config.timeout_s,
            )
            await self._kill()
            raise SandboxTimeoutError(
                f"Execution timed out after {format_number(self.config.timeout_s)} seconds."
            )

    async def execute(self, script: str) -> SandboxResult:
        """Run a script and return the structured result.

        Args:
            script: Python source to run

        Returns:
            SandboxResult (never raises)
        """
        async with self._run_lock:
            try:
                await self.ensure_started()
                reply = await self._run_request(script)
            except SandboxTimeoutError as e:
                self.state = SandboxState.NOT_STARTED
                return SandboxResult(status=SandboxStatus.TIMED_OUT, error=str(e))
            except EngineError as e:
                await self._kill()
                if self.state != SandboxState.ERROR:
                    self.state = SandboxState.NOT_STARTED
                return SandboxResult(status=SandboxStatus.FAILED, error=str(e))
            except Exception as e:
                logger.exception("Sandbox machinery failed")
                await self._kill()
                self.state = SandboxState.NOT_STARTED
                return SandboxResult(status=SandboxStatus.FAILED, error=str(e))

        if reply.get("status") == "completed":
            return SandboxResult(
                status=SandboxStatus.COMPLETED,
                stdout=reply.get("stdout", ""),
                stderr=reply.get("stderr", ""),
                logs=reply.get("logs", ""),
            )
        return SandboxResult(
            status=SandboxStatus.FAILED,
            stdout=reply.get("stdout", ""),
            stderr=reply.get("stderr", ""),
            error=reply.get("error", "Unknown sandbox error"),
        )

    async def run(self, script: str) -> str:
        """Run a script and return its combined output text.

        Args:
            script: Python source to run

        Returns:
            stdout + stderr (+ captured logs), or an "Error: ..." string
        """
        result = await self.execute(script)
        return result.render()
