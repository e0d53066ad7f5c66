"""High-level wrapper around the embedded arduino-cli."""

from __future__ import annotations

import json
import shlex
import shutil
import threading
from dataclasses import dataclass

from inobridge.bridge import BridgeRunner
from inobridge.config import CliConfig, load_config
from inobridge.errors import InobridgeError
from inobridge.executor import CommandResult, ProcessRunner, Runner
from inobridge.resources import ARDUINO_CLI, NATIVE_BRIDGE, ResourceExtractor, default_extractor

OK = "OK"
SKIP = "--"
FAIL = "!!"


def require_present(value, name: str):
    """Reject empty parameters. Everything else is left to arduino-cli."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{name} is required")
    return str(value)


def split_command(command: str, windows: bool = False) -> list[str]:
    """Tokenize a command line without a shell.

    On Windows backslashes are kept as path separators and quotes around a
    token are stripped.
    """
    if not windows:
        return shlex.split(command)
    tokens = []
    for token in shlex.split(command, posix=False):
        if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
            token = token[1:-1]
        tokens.append(token)
    return tokens


@dataclass
class Check:
    """One line of a doctor report."""
    status: str
    message: str

    @property
    def failed(self) -> bool:
        return self.status == FAIL

    def __str__(self) -> str:
        return f"[{self.status}] {self.message}"


class ArduinoCLI:
    """arduino-cli subcommands as Python methods.

    Every operation returns a CommandResult. With ``check=True`` (the default)
    a non-zero exit raises ToolFailure carrying the exit status and stderr.
    ``compile``, ``upload`` and ``exec`` go through the native bridge when
    one is configured; all other operations launch a subprocess.
    """

    def __init__(
        self,
        extractor: ResourceExtractor | None = None,
        runner: Runner | None = None,
        bridge: Runner | None = None,
        config: CliConfig | None = None,
        cli_path: str | None = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        self._extractor = extractor or default_extractor(self.config.resource_root)
        self._runner = runner or ProcessRunner(timeout=self.config.timeout)
        self._bridge = bridge
        self._cli_path = cli_path or self.config.cli_path
        self._bridge_lock = threading.Lock()

    # -- Paths and runners ----------------------------------------------------

    @property
    def cli_path(self) -> str:
        """Path to the arduino-cli binary, extracting it on first use."""
        if self._cli_path:
            return self._cli_path
        return str(self._extractor.extract(ARDUINO_CLI))

    @property
    def extractor(self) -> ResourceExtractor:
        return self._extractor

    @property
    def bridge(self) -> Runner | None:
        """Native bridge runner, or None when the process backend is in use."""
        if self._bridge is None and self.config.backend == "native":
            with self._bridge_lock:
                if self._bridge is None:
                    library = self._extractor.extract(NATIVE_BRIDGE)
                    self._bridge = BridgeRunner(library, timeout=self.config.timeout)
        return self._bridge

    def command(self, *tokens: str) -> list[str]:
        """Build the full argument vector for a subcommand."""
        return [self.cli_path, *self.config.global_flags(), *[str(t) for t in tokens]]

    def run(self, *tokens: str, check: bool = True, timeout: float | None = None) -> CommandResult:
        """Run an arduino-cli subcommand as a subprocess."""
        result = self._runner.run(self.command(*tokens), timeout=timeout)
        return result.check() if check else result

    def _run_specialized(self, tokens: list[str], check: bool, timeout: float | None) -> CommandResult:
        runner = self.bridge or self._runner
        result = runner.run(self.command(*tokens), timeout=timeout)
        return result.check() if check else result

    # -- General ---------------------------------------------------------------

    def version(self, check: bool = True) -> CommandResult:
        return self.run("version", check=check)

    def config_dump(self, check: bool = True) -> CommandResult:
        return self.run("config", "dump", check=check)

    # -- Boards ------------------------------------------------------------------

    def board_list(self, check: bool = True) -> CommandResult:
        """List boards connected to this machine."""
        return self.run("board", "list", check=check)

    def board_list_json(self) -> dict:
        """Return `board list --format json` decoded."""
        return self._json("board", "list")

    def board_listall(self, check: bool = True) -> CommandResult:
        """List every board known to the installed cores."""
        return self.run("board", "listall", check=check)

    def board_search(self, query: str, check: bool = True) -> CommandResult:
        return self.run("board", "search", require_present(query, "query"), check=check)

    def board_details(self, fqbn: str, check: bool = True) -> CommandResult:
        return self.run("board", "details", "--fqbn", require_present(fqbn, "fqbn"), check=check)

    # -- Cores -----------------------------------------------------------------

    def core_install(self, core: str, check: bool = True) -> CommandResult:
        """Install a platform core, e.g. 'arduino:avr'."""
        return self.run("core", "install", require_present(core, "core"), check=check)

    def core_list(self, check: bool = True) -> CommandResult:
        return self.run("core", "list", check=check)

    def core_list_json(self) -> dict:
        return self._json("core", "list")

    def core_update_index(self, check: bool = True) -> CommandResult:
        """Refresh the package index. Needed before the first core install."""
        return self.run("core", "update-index", check=check)

    # -- Libraries ---------------------------------------------------------------

    def lib_search(self, query: str, check: bool = True) -> CommandResult:
        return self.run("lib", "search", require_present(query, "query"), check=check)

    def lib_install(self, library: str, check: bool = True) -> CommandResult:
        return self.run("lib", "install", require_present(library, "library"), check=check)

    def lib_list(self, check: bool = True) -> CommandResult:
        return self.run("lib", "list", check=check)

    # -- Sketches ----------------------------------------------------------------

    def sketch_new(self, name: str, check: bool = True) -> CommandResult:
        return self.run("sketch", "new", require_present(name, "name"), check=check)

    def compile(self, sketch_path, fqbn: str, check: bool = True, timeout: float | None = None) -> CommandResult:
        """Compile a sketch directory for the given FQBN (e.g. 'arduino:avr:uno')."""
        tokens = [
            "compile",
            "--fqbn", require_present(fqbn, "fqbn"),
            require_present(sketch_path, "sketch_path"),
        ]
        return self._run_specialized(tokens, check, timeout)

    def upload(self, sketch_path, fqbn: str, port: str, check: bool = True,
               timeout: float | None = None) -> CommandResult:
        """Upload a compiled sketch to the board on ``port`` (e.g. '/dev/ttyACM0', 'COM3')."""
        tokens = [
            "upload",
            "-p", require_present(port, "port"),
            "--fqbn", require_present(fqbn, "fqbn"),
            require_present(sketch_path, "sketch_path"),
        ]
        return self._run_specialized(tokens, check, timeout)

    def upload_hex(self, hex_path, fqbn: str, port: str, check: bool = True,
                   timeout: float | None = None) -> CommandResult:
        """Upload a pre-built .hex file."""
        return self.run(
            "upload",
            "-p", require_present(port, "port"),
            "--fqbn", require_present(fqbn, "fqbn"),
            "--input-file", require_present(hex_path, "hex_path"),
            check=check, timeout=timeout,
        )

    def compile_and_upload(self, sketch_path, fqbn: str, port: str, check: bool = True,
                           timeout: float | None = None) -> CommandResult:
        return self.run(
            "compile", "--upload",
            "-p", require_present(port, "port"),
            "--fqbn", require_present(fqbn, "fqbn"),
            require_present(sketch_path, "sketch_path"),
            check=check, timeout=timeout,
        )

    # -- Passthrough -------------------------------------------------------------

    def exec(self, *args: str, check: bool = True, timeout: float | None = None) -> CommandResult:
        """Run any arduino-cli subcommand.

        ``exec("board", "list")`` and ``exec("board list")`` are equivalent.
        A single string is tokenized with split_command; nothing is passed to a shell.
        """
        if len(args) == 1 and isinstance(args[0], str):
            tokens = split_command(args[0], windows=self._extractor.host.is_windows)
        else:
            tokens = [str(a) for a in args]
        if not tokens:
            raise ValueError("command is required")
        return self._run_specialized(tokens, check, timeout)

    # -- Environment ---------------------------------------------------------------

    def checks(self) -> list[Check]:
        """Inspect the host, the embedded artifacts and PATH. Nothing is extracted."""
        try:
            host = self._extractor.host
        except InobridgeError as e:
            return [Check(FAIL, e.message)]

        system = shutil.which("arduino-cli")
        report = [Check(OK, f"Host: {host}")]
        for artifact in (ARDUINO_CLI, NATIVE_BRIDGE):
            label = f"Embedded {artifact.name}: {self._extractor.resource_path(artifact)}"
            if self._extractor.is_bundled(artifact):
                report.append(Check(OK, label))
            elif artifact is ARDUINO_CLI and self._cli_path:
                report.append(Check(SKIP, f"{label} not bundled, using cli_path {self._cli_path}"))
            elif artifact is NATIVE_BRIDGE and self.config.backend != "native":
                report.append(Check(SKIP, f"{label} not bundled (only needed for the native backend)"))
            elif artifact is ARDUINO_CLI and system:
                report.append(Check(FAIL, f"{label} not bundled (arduino-cli on PATH at {system}; set cli_path to use it)"))
            else:
                report.append(Check(FAIL, f"{label} not bundled"))

        if system:
            report.append(Check(OK, f"arduino-cli on PATH: {system}"))
        else:
            report.append(Check(SKIP, "arduino-cli not on PATH"))
        return report

    def doctor(self) -> dict:
        """Summarize checks(). Returns {"ok": bool, "message": str}."""
        failed = [c.message for c in self.checks() if c.failed]
        if failed:
            return {"ok": False, "message": "; ".join(failed)}
        return {"ok": True, "message": "All checks passed."}

    # -- Private helpers -----------------------------------------------------------

    def _json(self, *tokens: str) -> dict:
        result = self.run(*tokens, "--format", "json")
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise InobridgeError(f"arduino-cli returned invalid JSON for {' '.join(tokens)}: {e}") from e
