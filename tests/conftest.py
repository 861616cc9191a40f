"""Shared pytest fixtures for the webscaffold test suite.

Provides reusable fixtures for:
- Temporary base paths and a per-test working directory
- A recording command runner standing in for the package manager
- Package manager lookups that do / do not find the executable
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from webscaffold.config import ScaffoldRequest
from webscaffold.scaffolder.installer import PackageManager


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test from a scratch working directory (restored afterwards)."""
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


@pytest.fixture
def base_path(tmp_path: Path) -> Path:
    """Base path for a project; not created up front."""
    return tmp_path / "my-site"


@pytest.fixture
def request_factory(base_path: Path):
    """Build a ``ScaffoldRequest`` for *base_path* with small package lists."""

    def _make(**overrides: Any) -> ScaffoldRequest:
        params: dict[str, Any] = {
            "base_path": base_path,
            "dev_packages": ["a", "b"],
            "dependencies": ["c"],
        }
        params.update(overrides)
        return ScaffoldRequest(**params)

    return _make


# ---------------------------------------------------------------------------
# Mock package manager
# ---------------------------------------------------------------------------

class RecordingRunner:
    """Async stand-in for ``run_command`` that records each invocation.

    Records the command and the process working directory at call time.
    Packages listed in *failing* return exit code 1.
    """

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[list[str]] = []
        self.cwds: list[Path] = []

    async def __call__(self, cmd: list[str], **kwargs: Any) -> tuple[int, str, str]:
        self.calls.append(list(cmd))
        self.cwds.append(Path.cwd())
        if any(name in self.failing for name in cmd):
            return (1, "", f"npm ERR! 404 '{cmd[2]}' is not in this registry.")
        return (0, "", "")


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def failing_runner():
    """Factory for a runner where the named packages fail to install."""

    def _make(*names: str) -> RecordingRunner:
        return RecordingRunner(failing=set(names))

    return _make


@pytest.fixture
def npm_found() -> PackageManager:
    """A package manager whose lookup always succeeds."""
    return PackageManager("npm", which=lambda name: f"/usr/local/bin/{name}")


@pytest.fixture
def npm_missing() -> PackageManager:
    """A package manager whose lookup always fails."""
    return PackageManager("npm", which=lambda name: None)
