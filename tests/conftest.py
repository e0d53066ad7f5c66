"""Shared fixtures: a fake embedded resource tree with a stub arduino-cli."""

import pytest

from inobridge.host import ArchId, HostContext, PlatformId
from inobridge.resources import ResourceExtractor

# Echoes its arguments so tests can see the exact argument vector.
STUB_CLI = """#!/bin/sh
if [ "$*" = "version" ]; then
  echo "2.0.0"
  exit 0
fi
if [ "$*" = "board details --fqbn bogus:bogus:bogus" ]; then
  echo "error: board not found" >&2
  exit 1
fi
if [ "$*" = "monitor --latin1" ]; then
  printf 'caf\\351\\n'
  exit 0
fi
echo "$@"
"""


@pytest.fixture
def linux_host():
    return HostContext(platform=PlatformId.LINUX, arch=ArchId.X86_64)


@pytest.fixture
def resource_root(tmp_path):
    """Resource tree containing a stub arduino-cli for linux-x86_64."""
    root = tmp_path / "bin"
    cli_dir = root / "arduino-cli" / "linux-x86_64"
    cli_dir.mkdir(parents=True)
    (cli_dir / "arduino-cli").write_text(STUB_CLI)
    return root


@pytest.fixture
def extractor(linux_host, resource_root):
    ex = ResourceExtractor(host=linux_host, resource_root=resource_root)
    yield ex
    ex.cleanup()


@pytest.fixture
def stub_cli(tmp_path):
    """Stub arduino-cli installed directly on disk, for cli_path overrides."""
    path = tmp_path / "stub" / "arduino-cli"
    path.parent.mkdir()
    path.write_text(STUB_CLI)
    path.chmod(0o755)
    return path


@pytest.fixture(autouse=True)
def fresh_default_extractors(monkeypatch):
    """Give every test its own process-wide extractor registry."""
    registry = {}
    monkeypatch.setattr("inobridge.resources._default_extractors", registry)
    yield
    for ex in registry.values():
        ex.cleanup()
