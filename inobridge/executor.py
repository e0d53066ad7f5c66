"""Running arduino-cli as a child process."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import asdict, dataclass
from typing import Protocol

from inobridge.errors import CommandTimeout, ExecutionFailure, ToolFailure

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one arduino-cli invocation."""
    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def text(self) -> str:
        """Standard output with trailing whitespace removed."""
        return self.stdout.rstrip()

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> CommandResult:
        """Raise ToolFailure if the tool exited non-zero, else return self."""
        if not self.ok:
            raise ToolFailure(self)
        return self

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        return self.text


class Runner(Protocol):
    def run(self, args: list[str], timeout: float | None = None) -> CommandResult:
        ...


@dataclass
class ProcessRunner:
    """Launches commands with subprocess and waits for them to finish.

    ``timeout`` is the default limit in seconds; None waits indefinitely.
    """
    timeout: float | None = None
    env: dict[str, str] | None = None
    cwd: str | None = None

    def run(self, args: list[str], timeout: float | None = None) -> CommandResult:
        args = [str(a) for a in args]
        limit = timeout if timeout is not None else self.timeout
        logger.debug("Running %s (timeout=%s)", args, limit)
        try:
            proc = subprocess.run(
                args,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=limit,
                env=self.env,
                cwd=self.cwd,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandTimeout(args, limit) from e
        except OSError as e:
            raise ExecutionFailure(args, e) from e

        result = CommandResult(
            args=args,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        if not result.ok:
            logger.debug("%s exited with status %d", args[0], result.returncode)
        return result
