"""Package manager integration.

Locates the package manager executable, switches the process into the
project directory and installs dev and runtime packages one invocation at
a time. The working directory and the executable lookup are injected so
callers (and tests) control both.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from webscaffold.config import InstallConfig, InstallPolicy
from webscaffold.utils import format_command, print_step, print_warning, run_command

from .generator import DirectoryPlan

CommandRunner = Callable[..., Awaitable[tuple[int, str, str]]]


class DependencyCategory(str, Enum):
    DEV = "dev"
    RUNTIME = "runtime"


_SAVE_FLAGS: dict[DependencyCategory, str] = {
    DependencyCategory.DEV: "--save-dev",
    DependencyCategory.RUNTIME: "--save",
}


class PackageManagerNotFoundError(Exception):
    """Raised when the package manager executable is not on the search path."""

    def __init__(self, executable: str) -> None:
        self.executable = executable
        super().__init__(
            f"{executable} not found - install Node.js (which provides {executable}) first"
        )


@dataclass
class InstallResult:
    """Outcome of one package manager invocation."""

    packages: list[str]
    category: DependencyCategory
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class PackageInstallError(Exception):
    """Raised on the first failed install when the policy is ``abort``."""

    def __init__(self, result: InstallResult) -> None:
        self.result = result
        names = " ".join(result.packages)
        super().__init__(
            f"Installing {names} ({result.category.value}) failed "
            f"(exit {result.returncode}): {result.stderr}"
        )


@dataclass
class InstallReport:
    """Every invocation made for one project, in order."""

    results: list[InstallResult] = field(default_factory=list)

    @property
    def failures(self) -> list[InstallResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failures


# ---------------------------------------------------------------------------
# Injected capabilities
# ---------------------------------------------------------------------------


class PackageManager:
    """Resolves the package manager executable through an injectable lookup."""

    def __init__(
        self,
        executable: str = "npm",
        which: Callable[[str], str | None] | None = None,
    ) -> None:
        self.executable = executable
        self._which = which or shutil.which

    def locate(self) -> str | None:
        return self._which(self.executable)

    def ensure_available(self) -> str:
        """Return the resolved executable path.

        Raises:
            PackageManagerNotFoundError: If the executable cannot be found.
        """
        resolved = self.locate()
        if not resolved:
            raise PackageManagerNotFoundError(self.executable)
        return resolved

    def install_command(
        self,
        packages: list[str],
        category: DependencyCategory,
        executable: str | None = None,
    ) -> list[str]:
        """Build the install argv. *executable* is the resolved path, when known."""
        return [
            executable or self.executable,
            "install",
            *packages,
            _SAVE_FLAGS[category],
            "--silent",
        ]


class WorkingDirectory:
    """Handle on the process working directory.

    ``entered`` saves the current directory, switches to the target and
    restores the saved directory exactly once on exit, whether or not the
    body raised.
    """

    def current(self) -> Path:
        return Path.cwd()

    def change(self, path: str | Path) -> None:
        os.chdir(path)

    @contextmanager
    def entered(self, path: str | Path) -> Iterator[Path]:
        saved = self.current()
        self.change(path)
        try:
            yield Path(path)
        finally:
            self.change(saved)


# ---------------------------------------------------------------------------
# Installer
# ---------------------------------------------------------------------------


class PackageInstaller:
    """Installs a project's dev packages, then its runtime dependencies.

    Invocations run strictly one after another in list order. With
    ``config.batch`` each category is installed in a single invocation
    instead of one per package.
    """

    def __init__(
        self,
        config: InstallConfig | None = None,
        package_manager: PackageManager | None = None,
        workdir: WorkingDirectory | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.config = config or InstallConfig()
        self.package_manager = package_manager or PackageManager(self.config.executable)
        self.workdir = workdir or WorkingDirectory()
        self.runner = runner

    async def install(
        self,
        plan: DirectoryPlan,
        dev_packages: list[str],
        dependencies: list[str],
    ) -> InstallReport:
        """Install both package lists from inside ``plan.base_path``.

        Returns:
            An ``InstallReport`` covering every invocation made.

        Raises:
            PackageInstallError: On the first failure when the policy is
                ``abort``. The working directory is restored first.
        """
        report = InstallReport()
        if self.config.skip:
            print_step("skipped package installation")
            return report

        batches = [
            *self._batches(dev_packages, DependencyCategory.DEV),
            *self._batches(dependencies, DependencyCategory.RUNTIME),
        ]
        # Resolved path; npm.cmd on Windows.
        executable = self.package_manager.locate() or self.package_manager.executable
        with self.workdir.entered(plan.base_path):
            for packages, category in batches:
                result = await self._install_one(packages, category, executable)
                report.results.append(result)
                if result.ok:
                    print_step(f"installed {' '.join(packages)} ({category.value})")
                    continue
                if self.config.policy == InstallPolicy.ABORT:
                    raise PackageInstallError(result)
                print_warning(
                    f"  ! {' '.join(packages)} ({category.value}) failed "
                    f"with exit code {result.returncode}"
                )
        return report

    def _batches(
        self, packages: list[str], category: DependencyCategory
    ) -> list[tuple[list[str], DependencyCategory]]:
        if not packages:
            return []
        if self.config.batch:
            return [(list(packages), category)]
        return [([name], category) for name in packages]

    async def _install_one(
        self, packages: list[str], category: DependencyCategory, executable: str
    ) -> InstallResult:
        cmd = self.package_manager.install_command(packages, category, executable)
        try:
            returncode, _stdout, stderr = await self.runner(cmd, timeout=self.config.timeout)
        except OSError as exc:
            # The executable could not be started at all.
            returncode, stderr = -1, f"{format_command(cmd)}: {exc}"
        if returncode != 0 and not stderr:
            stderr = f"{format_command(cmd)} exited with {returncode}"
        return InstallResult(
            packages=list(packages),
            category=category,
            returncode=returncode,
            stderr=stderr,
        )
