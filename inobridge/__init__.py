"""Embedded arduino-cli for Python."""

from inobridge.arduino import ArduinoCLI
from inobridge.errors import (
    BridgeLoadFailure,
    CommandTimeout,
    ConfigError,
    ExecutionFailure,
    ExtractionFailure,
    InobridgeError,
    ResourceNotFound,
    ToolFailure,
    UnsupportedPlatform,
)
from inobridge.executor import CommandResult

__version__ = "0.1.0"

__all__ = [
    "ArduinoCLI",
    "BridgeLoadFailure",
    "CommandResult",
    "CommandTimeout",
    "ConfigError",
    "ExecutionFailure",
    "ExtractionFailure",
    "InobridgeError",
    "ResourceNotFound",
    "ToolFailure",
    "UnsupportedPlatform",
]
