"""Extraction of embedded arduino-cli binaries and the native bridge library."""

from __future__ import annotations

import atexit
import logging
import os
import shutil
import stat
import tempfile
import threading
from dataclasses import dataclass
from importlib import resources
from pathlib import Path

from inobridge.errors import ExtractionFailure, ResourceNotFound
from inobridge.host import HostContext, PlatformId

logger = logging.getLogger(__name__)

TEMP_DIR_PREFIX = "inobridge_"


@dataclass(frozen=True)
class Artifact:
    """An embedded, platform-specific file shipped inside the package."""
    name: str
    category: str     # top-level directory under the resource root
    stem: str
    executable: bool = False
    shared_library: bool = False

    def filename(self, platform: PlatformId) -> str:
        if self.shared_library:
            if platform is PlatformId.WINDOWS:
                return f"{self.stem}.dll"
            if platform is PlatformId.MACOS:
                return f"lib{self.stem}.dylib"
            return f"lib{self.stem}.so"
        if platform is PlatformId.WINDOWS and self.executable:
            return f"{self.stem}.exe"
        return self.stem


ARDUINO_CLI = Artifact(name="arduino-cli", category="arduino-cli", stem="arduino-cli", executable=True)
NATIVE_BRIDGE = Artifact(name="native-bridge", category="native", stem="arduino_cli_wrapper", shared_library=True)

ARTIFACTS: dict[str, Artifact] = {a.name: a for a in (ARDUINO_CLI, NATIVE_BRIDGE)}


def default_resource_root():
    """Return the package data directory holding the embedded artifacts."""
    return resources.files("inobridge") / "_bin"


class ResourceExtractor:
    """Copies embedded artifacts to temporary files, once per artifact.

    All lazy state is guarded by one lock, so concurrent first use of the
    same artifact performs a single copy and every caller sees the same path.
    """

    def __init__(self, host: HostContext | None = None, resource_root=None,
                 temp_prefix: str = TEMP_DIR_PREFIX) -> None:
        self._host = host
        self._resource_root = resource_root
        self._temp_prefix = temp_prefix
        self._lock = threading.Lock()
        self._cache: dict[str, Path] = {}
        self._temp_dirs: list[Path] = []
        self._atexit_registered = False

    @property
    def host(self) -> HostContext:
        if self._host is None:
            self._host = HostContext.detect()
        return self._host

    @property
    def resource_root(self):
        if self._resource_root is None:
            self._resource_root = default_resource_root()
        elif isinstance(self._resource_root, str):
            self._resource_root = Path(self._resource_root)
        return self._resource_root

    @property
    def extracted(self) -> dict[str, Path]:
        with self._lock:
            return dict(self._cache)

    def resource_path(self, artifact: Artifact | str) -> str:
        """Return the locator '{category}/{platform}-{arch}/{filename}'."""
        artifact = _lookup(artifact)
        host = self.host
        return f"{artifact.category}/{host.key}/{artifact.filename(host.platform)}"

    def locate(self, artifact: Artifact | str):
        """Return the embedded source for an artifact (which may not exist)."""
        source = self.resource_root
        for part in self.resource_path(artifact).split("/"):
            source = source / part
        return source

    def is_bundled(self, artifact: Artifact | str) -> bool:
        return self.locate(artifact).is_file()

    def extract(self, artifact: Artifact | str) -> Path:
        """Extract an artifact and return its path. Repeated calls reuse the first copy."""
        artifact = _lookup(artifact)
        with self._lock:
            cached = self._cache.get(artifact.name)
            if cached is not None and cached.exists():
                return cached
            path = self._extract_locked(artifact)
            self._cache[artifact.name] = path
            return path

    def cleanup(self) -> None:
        """Remove all extracted files. Safe to call more than once."""
        with self._lock:
            dirs, self._temp_dirs = self._temp_dirs, []
            self._cache.clear()
        for d in dirs:
            try:
                shutil.rmtree(d)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Could not remove %s: %s", d, e)

    # -- Private helpers ------------------------------------------------------

    def _extract_locked(self, artifact: Artifact) -> Path:
        host = self.host
        locator = self.resource_path(artifact)
        source = self.locate(artifact)
        if not source.is_file():
            raise ResourceNotFound(locator, host)

        try:
            temp_dir = Path(tempfile.mkdtemp(prefix=self._temp_prefix))
        except OSError as e:
            raise ExtractionFailure(locator, host, e) from e
        self._register_temp_dir(temp_dir)

        target = temp_dir / artifact.filename(host.platform)
        try:
            with source.open("rb") as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
            if artifact.executable and not host.is_windows:
                mode = os.stat(target).st_mode
                os.chmod(target, mode | stat.S_IXUSR)
        except OSError as e:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise ExtractionFailure(locator, host, e) from e

        logger.info("Extracted %s to %s", locator, target)
        return target

    def _register_temp_dir(self, temp_dir: Path) -> None:
        self._temp_dirs.append(temp_dir)
        if not self._atexit_registered:
            atexit.register(self.cleanup)
            self._atexit_registered = True


def _lookup(artifact: Artifact | str) -> Artifact:
    if isinstance(artifact, Artifact):
        return artifact
    try:
        return ARTIFACTS[artifact]
    except KeyError:
        raise ValueError(f"Unknown artifact: {artifact}. Available: {', '.join(ARTIFACTS)}") from None


_default_extractors: dict[str | None, ResourceExtractor] = {}
_default_lock = threading.Lock()


def default_extractor(resource_root=None) -> ResourceExtractor:
    """Return the process-wide extractor for a resource root.

    Facades that share a resource root share one extraction cache, so each
    artifact is copied at most once per process.
    """
    key = None if resource_root is None else str(resource_root)
    with _default_lock:
        extractor = _default_extractors.get(key)
        if extractor is None:
            extractor = ResourceExtractor(resource_root=resource_root)
            _default_extractors[key] = extractor
        return extractor
