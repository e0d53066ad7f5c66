"""Configuration for inobridge: inobridge.toml plus environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    try:
        import tomli as tomllib  # type: ignore[no-redef]
    except ImportError:
        tomllib = None  # type: ignore[assignment]

from inobridge.errors import ConfigError

CONFIG_FILENAME = "inobridge.toml"
BACKENDS = ("process", "native")

_ENV_CLI_PATH = "INOBRIDGE_CLI_PATH"
_ENV_BACKEND = "INOBRIDGE_BACKEND"
_ENV_TIMEOUT = "INOBRIDGE_TIMEOUT"


@dataclass
class CliConfig:
    cli_path: str | None = None
    backend: str = "process"
    timeout: float | None = None
    config_file: str | None = None
    additional_urls: list[str] = field(default_factory=list)
    resource_root: str | None = None

    def global_flags(self) -> list[str]:
        """Flags placed between the binary and the subcommand."""
        flags: list[str] = []
        if self.config_file:
            flags += ["--config-file", self.config_file]
        if self.additional_urls:
            flags += ["--additional-urls", ",".join(self.additional_urls)]
        return flags


def load_config(project_dir: Path | str | None = None, environ: dict | None = None) -> CliConfig:
    """Read the [arduino_cli] table of inobridge.toml and apply INOBRIDGE_* overrides.

    A missing file yields defaults. Invalid values raise ConfigError.
    """
    project_dir = Path(project_dir) if project_dir is not None else Path.cwd()
    environ = os.environ if environ is None else environ

    data = _read_table(project_dir / CONFIG_FILENAME)

    urls = data.get("additional_urls", [])
    if isinstance(urls, str):
        urls = [urls]

    config = CliConfig(
        cli_path=data.get("cli_path"),
        backend=data.get("backend", "process"),
        timeout=data.get("timeout"),
        config_file=data.get("config_file"),
        additional_urls=list(urls),
        resource_root=data.get("resource_root"),
    )

    if environ.get(_ENV_CLI_PATH):
        config.cli_path = environ[_ENV_CLI_PATH]
    if environ.get(_ENV_BACKEND):
        config.backend = environ[_ENV_BACKEND]
    if environ.get(_ENV_TIMEOUT):
        try:
            config.timeout = float(environ[_ENV_TIMEOUT])
        except ValueError:
            raise ConfigError(f"{_ENV_TIMEOUT} must be a number, got: {environ[_ENV_TIMEOUT]}") from None

    validate_config(config)
    return config


def validate_config(config: CliConfig) -> None:
    if config.backend not in BACKENDS:
        raise ConfigError(f"Unknown backend: {config.backend}. Available: {', '.join(BACKENDS)}")
    if config.timeout is not None:
        if isinstance(config.timeout, bool) or not isinstance(config.timeout, (int, float)):
            raise ConfigError(f"timeout must be a number, got: {config.timeout!r}")
        if config.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got: {config.timeout}")


def _read_table(toml_path: Path) -> dict:
    if not toml_path.exists():
        return {}

    if tomllib is None:
        raise ImportError("No TOML parser available (need Python 3.11+ or tomli)")

    with open(toml_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid {toml_path}: {e}") from e

    table = data.get("arduino_cli", {})
    if not isinstance(table, dict):
        raise ConfigError(f"[arduino_cli] in {toml_path} must be a table")
    return table
