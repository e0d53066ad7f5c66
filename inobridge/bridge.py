"""Native bridge runner.

Runs arduino-cli through the embedded ``arduino_cli_wrapper`` shared library
instead of a Python-side subprocess. The library must export:

    int  inobridge_run(const char **argv, int argc, int timeout_ms,
                       char **out, char **err);
    void inobridge_free(char *ptr);

``inobridge_run`` returns the child's exit status, ``-1`` if it could not be
launched, or ``-2`` if ``timeout_ms`` (0 = no limit) elapsed first. The
``out``/``err`` buffers are owned by the library and released with
``inobridge_free``. A child killed by a signal reports 128 + signum.

The library is built from ``native/arduino_cli_wrapper.c``.
"""

from __future__ import annotations

import ctypes
import logging
import threading
from pathlib import Path

from inobridge.errors import BridgeLoadFailure, CommandTimeout, ExecutionFailure
from inobridge.executor import CommandResult

logger = logging.getLogger(__name__)

LAUNCH_FAILED = -1
TIMED_OUT = -2


class BridgeRunner:
    """Runner backed by the native bridge library. Loads the library on first use."""

    def __init__(self, library_path: Path | str, timeout: float | None = None) -> None:
        self.library_path = Path(library_path)
        self.timeout = timeout
        self._lib = None
        self._lock = threading.Lock()

    def load(self):
        """Load the shared library once and bind its entry points."""
        with self._lock:
            if self._lib is not None:
                return self._lib
            try:
                lib = ctypes.CDLL(str(self.library_path))
            except OSError as e:
                raise BridgeLoadFailure(str(self.library_path), e) from e
            try:
                run = lib.inobridge_run
                free = lib.inobridge_free
            except AttributeError as e:
                raise BridgeLoadFailure(str(self.library_path), e) from e

            run.argtypes = [
                ctypes.POINTER(ctypes.c_char_p),
                ctypes.c_int,
                ctypes.c_int,
                ctypes.POINTER(ctypes.c_void_p),
                ctypes.POINTER(ctypes.c_void_p),
            ]
            run.restype = ctypes.c_int
            free.argtypes = [ctypes.c_void_p]
            free.restype = None

            logger.info("Loaded native bridge %s", self.library_path)
            self._lib = lib
            return lib

    def run(self, args: list[str], timeout: float | None = None) -> CommandResult:
        args = [str(a) for a in args]
        limit = timeout if timeout is not None else self.timeout
        lib = self.load()

        argv = (ctypes.c_char_p * (len(args) + 1))(*[a.encode() for a in args], None)
        out = ctypes.c_void_p()
        err = ctypes.c_void_p()
        timeout_ms = int(limit * 1000) if limit else 0

        logger.debug("Running %s via native bridge (timeout=%s)", args, limit)
        status = lib.inobridge_run(argv, len(args), timeout_ms, ctypes.byref(out), ctypes.byref(err))
        stdout = _take_string(lib, out)
        stderr = _take_string(lib, err)

        if status == TIMED_OUT:
            raise CommandTimeout(args, limit)
        if status < 0:
            raise ExecutionFailure(args, stderr.strip() or "native bridge could not launch process")
        return CommandResult(args=args, returncode=status, stdout=stdout, stderr=stderr)


def _take_string(lib, ptr: ctypes.c_void_p) -> str:
    """Copy a library-owned C string into Python and free it."""
    if not ptr.value:
        return ""
    try:
        return ctypes.string_at(ptr.value).decode("utf-8", errors="replace")
    finally:
        lib.inobridge_free(ptr)
