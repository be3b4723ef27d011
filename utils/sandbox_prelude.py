"""Sandbox prelude: restrictions, log capture and the mocked DWSIM facade.

Runs inside the sandbox worker process before any agent script. Provides:
- RestrictedModule stubs for networking, filesystem, process and package
  installation modules
- LogCapture, a root-logger handler writing into a drainable buffer
- MockObject / MockFlowsheet / MockAutomation and a `DWSIM` package in
  sys.modules so `from DWSIM.Automation import Automation` works
- MockObjectRegistry, the session-scoped name -> handle mapping the script
  namespace is built from

Mock writes only touch the worker's copy of the property values; the
canonical model store is never reachable from here.

Not a security boundary: it blocks the obvious routes, the worker process
is what actually isolates scripts from the host.
"""

import _io
import builtins
import copy
import io
import logging
import sys
from types import ModuleType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

DISABLED_MODULES: Tuple[str, ...] = (
    "socket",
    "urllib",
    "urllib.request",
    "os",
    "os.path",
    "shutil",
    "subprocess",
    "pathlib",
    "http",
    "http.client",
    "ftplib",
    "multiprocessing",
    "pip",
    "ensurepip",
    "micropip",
    # C modules underneath the wrappers above
    "posix",
    "nt",
    "_socket",
    "_ssl",
    "_posixsubprocess",
    "pty",
    "fcntl",
)

DISABLED_BUILTINS: Tuple[str, ...] = ("open",)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_PROPERTY = "mock_value"
DEFAULT_FRACTION = 0.5

logger = logging.getLogger("dwsim.mock")


# ============================================================================
# RESTRICTIONS
# ============================================================================

class RestrictedModule(ModuleType):
    """Module stub that fails every attribute access."""

    def __init__(self, name: str):
        super().__init__(name)
        self.__dict__["_disabled_name"] = name

    def __getattr__(self, attr: str) -> Any:
        # Only reached for attributes not set in __init__
        raise ImportError(f"Module '{self.__dict__['_disabled_name']}' is disabled in this sandbox.")


def _disabled_builtin(name: str):
    def disabled(*args, **kwargs):
        raise PermissionError(f"Function '{name}' is disabled in this sandbox.")
    disabled.__name__ = name
    return disabled


def install_restrictions(modules: Tuple[str, ...] = DISABLED_MODULES) -> List[str]:
    """Replace capability modules in sys.modules with RestrictedModule stubs.

    Must run after the worker has imported everything it needs itself.

    Returns:
        Names of the stubbed modules
    """
    for name in modules:
        sys.modules[name] = RestrictedModule(name)

    # The open builtin is also reachable through builtins, io and _io
    builtins.open = io.open = _io.open = _disabled_builtin("open")

    # No JavaScript bridge outside the browser, but drop it if present
    sys.modules.pop("js", None)
    return list(modules)


def restricted_builtins(disabled: Tuple[str, ...] = DISABLED_BUILTINS) -> Dict[str, Any]:
    """Copy of the builtins namespace with filesystem access removed."""
    namespace = dict(vars(builtins))
    for name in disabled:
        namespace[name] = _disabled_builtin(name)
    return namespace


# ============================================================================
# LOG CAPTURE
# ============================================================================

class StdoutHandler(logging.StreamHandler):
    """StreamHandler bound to the current sys.stdout rather than the one at creation."""

    @property
    def stream(self):
        return sys.stdout

    @stream.setter
    def stream(self, value):
        pass


class LogCapture:
    """Root-logger handler that buffers records until drained."""

    def __init__(self, level: int = logging.INFO):
        self.buffer = io.StringIO()
        self.formatter = logging.Formatter(LOG_FORMAT)
        self.handler = logging.StreamHandler(self.buffer)
        self.handler.setFormatter(self.formatter)
        self.level = level
        self.destination = "capture"

    def install(self) -> None:
        """Attach to the root logger."""
        root = logging.getLogger()
        root.setLevel(self.level)
        root.addHandler(self.handler)

    def drain(self) -> str:
        """Return captured text and clear the buffer."""
        self.handler.flush()
        text = self.buffer.getvalue()
        self.buffer.truncate(0)
        self.buffer.seek(0)
        return text

    def configure(self, level: str = "INFO", destination: str = "capture") -> None:
        """Set root log level and destination ('capture' or 'console').

        'console' writes to whatever sys.stdout is when each record is
        emitted, so later runs log into their own stdout buffer.
        """
        log_level = getattr(logging, level.upper(), logging.INFO)
        root = logging.getLogger()
        root.setLevel(log_level)

        # Avoid duplicate messages
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        if destination == "capture":
            root.addHandler(self.handler)
            print(f"[Logging] Log level set to {level.upper()}, destination: capture.")
        else:
            console = StdoutHandler()
            console.setFormatter(self.formatter)
            root.addHandler(console)
            print(f"[Logging] Log level set to {level.upper()}, destination: console.")
        self.destination = destination


# ============================================================================
# MOCK DWSIM FACADE
# ============================================================================

class MockObject:
    """Mocked DWSIM simulation object handle."""

    def __init__(self, name: str = "", properties: Optional[Dict[str, Any]] = None):
        self._name = name
        self._props: Dict[str, Any] = dict(properties or {})
        logger.debug(f"Created mock object: {name if name else 'unnamed'}")

    @property
    def Name(self) -> str:
        return self._name

    def SetOverallCompoundFraction(self, compound: str, value: float) -> None:
        logger.info(f"Setting {compound} fraction to {value} in '{self._name}'")
        self._props[compound] = value

    def GetOverallCompoundFraction(self, compound: str) -> Any:
        val = self._props.get(compound, DEFAULT_FRACTION)
        logger.info(f"Getting {compound} fraction from '{self._name}'. Returning: {val}")
        return val

    def Set(self, prop_name: str, value: Any) -> None:
        logger.info(f"Setting property '{prop_name}' to '{value}' in '{self._name}'")
        self._props[prop_name] = value

    def GetProperty(self, prop_name: str) -> Any:
        val = self._props.get(prop_name, DEFAULT_PROPERTY)
        logger.info(f"Getting property '{prop_name}' from '{self._name}'. Returning: '{val}'")
        return val

    def __repr__(self) -> str:
        return f"<MockObject '{self._name}'>"


class MockObjectRegistry(Mapping[str, MockObject]):
    """Session-scoped mapping of object name to mock handle."""

    def __init__(self, seed: Optional[List[Dict[str, Any]]] = None):
        """Build handles from serialized store objects.

        Args:
            seed: Output of SimulationModelStore.to_dict()
        """
        self._handles: Dict[str, MockObject] = {}
        for obj in seed or []:
            values = {
                key: copy.deepcopy(prop.get("value"))
                for key, prop in obj.get("properties", {}).items()
            }
            self._handles[obj["name"]] = MockObject(obj["name"], values)

    def __getitem__(self, name: str) -> MockObject:
        return self._handles[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def get_or_create(self, name: str) -> MockObject:
        """Handle for a known name, or a fresh unregistered handle."""
        handle = self._handles.get(name)
        if handle is None:
            handle = MockObject(name)
        return handle


class MockFlowsheet:
    """Mocked DWSIM flowsheet bound to a registry."""

    def __init__(self, registry: MockObjectRegistry):
        self.registry = registry
        self.thermodynamic_package: Optional[str] = None
        self.connections: List[Tuple[str, str]] = []

    def GetObject(self, name: str) -> MockObject:
        logger.info(f"Accessing object '{name}' from flowsheet.")
        return self.registry.get_or_create(name)

    def SetThermodynamicPackage(self, name: str) -> None:
        logger.info(f"Setting thermodynamic package to: {name}")
        self.thermodynamic_package = name

    def Connect(self, source: Any, target: Any) -> None:
        logger.info(f"Connecting '{source}' to '{target}'")
        self.connections.append((str(source), str(target)))

    def Calculate(self, _: Any = None) -> None:
        logger.info("Calculating flowsheet...")
        logger.info("Calculation complete.")

    def GetCalculationStatus(self) -> str:
        logger.info("Checking calculation status. Returning 'Solved'.")
        return "Solved"


def build_dwsim_package(flowsheet: MockFlowsheet) -> ModuleType:
    """Create and register the mocked `DWSIM` / `DWSIM.Automation` modules."""

    class Automation:
        """Mocked DWSIM automation interface."""

        def __init__(self):
            logger.debug("Automation interface created.")

        @staticmethod
        def GetFlowsheet(path: Optional[str] = None) -> MockFlowsheet:
            path_info = f"from path: {path}" if path else "(no path specified, using session flowsheet)"
            logger.info(f"Getting flowsheet {path_info}")
            return flowsheet

    automation_module = ModuleType("DWSIM.Automation")
    automation_module.Automation = Automation
    sys.modules["DWSIM.Automation"] = automation_module

    package = ModuleType("DWSIM")
    package.Automation = automation_module
    # Mark as a package so submodule imports resolve
    package.__path__ = []
    sys.modules["DWSIM"] = package
    return package


# ============================================================================
# PRELUDE
# ============================================================================

class SandboxEnvironment:
    """Everything the prelude installs, plus the base script namespace."""

    def __init__(
        self,
        registry: MockObjectRegistry,
        flowsheet: MockFlowsheet,
        log_capture: LogCapture,
        namespace: Dict[str, Any],
    ):
        self.registry = registry
        self.flowsheet = flowsheet
        self.log_capture = log_capture
        self.namespace = namespace

    def fresh_namespace(self) -> Dict[str, Any]:
        """Per-run namespace: shared handles, no script variables."""
        return dict(self.namespace)


def run_prelude(
    seed: Optional[List[Dict[str, Any]]] = None,
    disabled_modules: Tuple[str, ...] = DISABLED_MODULES,
) -> SandboxEnvironment:
    """Install restrictions, logging and the DWSIM mock.

    Prints the initialization banner to the current sys.stdout.

    Args:
        seed: Serialized model store used to seed the mock handles
        disabled_modules: Modules replaced with RestrictedModule stubs

    Returns:
        SandboxEnvironment with the base namespace for scripts
    """
    install_restrictions(disabled_modules)
    print("--- Secure Sandbox Initialized ---")
    print("Networking, file system, and package installation are disabled.")

    log_capture = LogCapture()
    log_capture.install()
    print("--- Logging System Initialized ---")

    registry = MockObjectRegistry(seed)
    flowsheet = MockFlowsheet(registry)
    dwsim = build_dwsim_package(flowsheet)
    print("--- DWSIM Mock Initialized ---")

    interf = dwsim.Automation.Automation()
    namespace: Dict[str, Any] = {
        "__name__": "__main__",
        "__builtins__": restricted_builtins(),
        "logging": logging,
        "configure_logging": log_capture.configure,
        "DWSIM": dwsim,
        "interf": interf,
        "flowsheet": interf.GetFlowsheet(),
        "objects": registry,
    }
    # One binding per object so scripts can write `distillation_column`
    for name, handle in registry.items():
        namespace[name] = handle
    print("--- Environment Ready ---")

    # Prelude chatter should not show up in the first script's logs
    log_capture.drain()

    return SandboxEnvironment(registry, flowsheet, log_capture, namespace)
