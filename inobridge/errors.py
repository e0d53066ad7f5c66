"""Error types for inobridge."""

from __future__ import annotations


class InobridgeError(Exception):
    """Structured error with exit code."""

    exit_code = 1

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code

    def to_dict(self) -> dict:
        return {"error": self.message, "exit_code": self.exit_code}


class ConfigError(InobridgeError):
    """Invalid inobridge.toml or environment override."""

    exit_code = 2


class UnsupportedPlatform(InobridgeError):
    """Host OS or CPU architecture is outside the supported set."""

    exit_code = 2

    def __init__(self, value: str, kind: str = "platform"):
        super().__init__(f"Unsupported {kind}: {value!r}")
        self.value = value
        self.kind = kind


class ResourceNotFound(InobridgeError):
    """An embedded artifact is missing from the installed package."""

    exit_code = 3

    def __init__(self, resource_path: str, host=None):
        where = f" for {host}" if host is not None else ""
        super().__init__(f"Resource not found: {resource_path}{where}")
        self.resource_path = resource_path
        self.host = host


class ExtractionFailure(InobridgeError):
    """Copying an embedded artifact to disk failed."""

    exit_code = 4

    def __init__(self, resource_path: str, host=None, cause: BaseException | None = None):
        where = f" for {host}" if host is not None else ""
        super().__init__(f"Failed to extract {resource_path}{where}: {cause}")
        self.resource_path = resource_path
        self.host = host
        self.cause = cause


class BridgeLoadFailure(InobridgeError):
    """The native bridge library could not be loaded."""

    exit_code = 5

    def __init__(self, library_path: str, cause: BaseException | str | None = None):
        super().__init__(f"Failed to load native bridge {library_path}: {cause}")
        self.library_path = library_path
        self.cause = cause


class ExecutionFailure(InobridgeError):
    """The tool process could not be launched."""

    exit_code = 6

    def __init__(self, args: list[str], cause: BaseException | str | None = None, message: str | None = None):
        super().__init__(message or f"Failed to run {_describe(args)}: {cause}")
        self.command = list(args)
        self.cause = cause


class CommandTimeout(ExecutionFailure):
    """The tool process did not finish within the timeout."""

    def __init__(self, args: list[str], timeout: float):
        super().__init__(args, message=f"Timed out after {timeout}s: {_describe(args)}")
        self.timeout = timeout


class ToolFailure(InobridgeError):
    """arduino-cli ran but exited with a non-zero status."""

    def __init__(self, result):
        detail = result.stderr.strip() or result.text
        super().__init__(
            f"{_describe(result.args)} exited with status {result.returncode}: {detail}",
            exit_code=result.returncode,
        )
        self.result = result

    @property
    def returncode(self) -> int:
        return self.result.returncode

    @property
    def stderr(self) -> str:
        return self.result.stderr

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["stderr"] = self.result.stderr
        data["stdout"] = self.result.stdout
        return data


def _describe(args) -> str:
    return " ".join(str(a) for a in args)
