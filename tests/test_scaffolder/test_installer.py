"""Tests for the package installer.

Covers:
- Package manager lookup (found / missing)
- Install command shape per dependency category
- Sequential ordering, dev before runtime
- Continue vs abort policy
- Batch and skip modes
- Working directory entered during installs and restored afterwards
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from webscaffold.config import InstallConfig, InstallPolicy, ScaffoldRequest
from webscaffold.scaffolder.generator import DirectoryPlan
from webscaffold.scaffolder.installer import (
    DependencyCategory,
    InstallReport,
    InstallResult,
    PackageInstallError,
    PackageInstaller,
    PackageManager,
    PackageManagerNotFoundError,
    WorkingDirectory,
)


pytestmark = pytest.mark.unit

NPM = "/usr/local/bin/npm"


@pytest.fixture
def plan(base_path: Path) -> DirectoryPlan:
    base_path.mkdir()
    return DirectoryPlan.from_request(ScaffoldRequest(base_path=base_path))


# ---------------------------------------------------------------------------
# PackageManager
# ---------------------------------------------------------------------------


class TestPackageManager:
    def test_found(self, npm_found: PackageManager):
        assert npm_found.ensure_available() == "/usr/local/bin/npm"

    def test_missing(self, npm_missing: PackageManager):
        with pytest.raises(PackageManagerNotFoundError) as exc_info:
            npm_missing.ensure_available()
        assert exc_info.value.executable == "npm"
        assert "not found" in str(exc_info.value)
        assert "Node.js" in str(exc_info.value)

    def test_lookup_uses_executable_name(self):
        seen: list[str] = []
        manager = PackageManager("yarn", which=lambda name: seen.append(name) or None)
        assert manager.locate() is None
        assert seen == ["yarn"]

    def test_install_commands(self, npm_found: PackageManager):
        assert npm_found.install_command(["gulp"], DependencyCategory.DEV) == [
            "npm", "install", "gulp", "--save-dev", "--silent",
        ]
        assert npm_found.install_command(["jquery"], DependencyCategory.RUNTIME) == [
            "npm", "install", "jquery", "--save", "--silent",
        ]

    def test_install_command_uses_resolved_executable(self, npm_found: PackageManager):
        cmd = npm_found.install_command(
            ["gulp"], DependencyCategory.DEV, r"C:\Program Files\nodejs\npm.cmd"
        )
        assert cmd[0] == r"C:\Program Files\nodejs\npm.cmd"
        assert cmd[1:] == ["install", "gulp", "--save-dev", "--silent"]

    async def test_installer_runs_resolved_executable(self, plan, runner):
        manager = PackageManager("npm", which=lambda name: f"C:/nodejs/{name}.cmd")
        await PackageInstaller(package_manager=manager, runner=runner).install(plan, ["a"], [])
        assert runner.calls == [["C:/nodejs/npm.cmd", "install", "a", "--save-dev", "--silent"]]


# ---------------------------------------------------------------------------
# WorkingDirectory
# ---------------------------------------------------------------------------


class TestWorkingDirectory:
    def test_entered_restores(self, tmp_path: Path):
        handle = WorkingDirectory()
        before = handle.current()
        with handle.entered(tmp_path):
            assert handle.current().resolve() == tmp_path.resolve()
        assert handle.current() == before

    def test_entered_restores_on_error(self, tmp_path: Path):
        handle = WorkingDirectory()
        before = handle.current()
        with pytest.raises(RuntimeError):
            with handle.entered(tmp_path):
                raise RuntimeError("boom")
        assert handle.current() == before


# ---------------------------------------------------------------------------
# PackageInstaller
# ---------------------------------------------------------------------------


class TestInstallOrdering:
    async def test_three_invocations_in_order(self, plan, runner, npm_found):
        installer = PackageInstaller(package_manager=npm_found, runner=runner)
        report = await installer.install(plan, ["a", "b"], ["c"])

        assert runner.calls == [
            [NPM, "install", "a", "--save-dev", "--silent"],
            [NPM, "install", "b", "--save-dev", "--silent"],
            [NPM, "install", "c", "--save", "--silent"],
        ]
        assert [r.category for r in report.results] == [
            DependencyCategory.DEV,
            DependencyCategory.DEV,
            DependencyCategory.RUNTIME,
        ]
        assert report.ok

    async def test_empty_lists(self, plan, runner, npm_found):
        installer = PackageInstaller(package_manager=npm_found, runner=runner)
        report = await installer.install(plan, [], [])
        assert runner.calls == []
        assert report.results == []

    async def test_timeout_passed_to_runner(self, plan, npm_found):
        seen: dict = {}

        async def fake_runner(cmd, **kwargs):
            seen.update(kwargs)
            return (0, "", "")

        installer = PackageInstaller(
            config=InstallConfig(timeout=30), package_manager=npm_found, runner=fake_runner
        )
        await installer.install(plan, ["a"], [])
        assert seen["timeout"] == 30


class TestWorkingDirectoryDuringInstall:
    async def test_runs_inside_base_path(self, plan, runner, npm_found):
        installer = PackageInstaller(package_manager=npm_found, runner=runner)
        await installer.install(plan, ["a"], ["c"])
        assert all(cwd.resolve() == plan.base_path.resolve() for cwd in runner.cwds)

    async def test_restored_after_success(self, plan, runner, npm_found):
        before = os.getcwd()
        await PackageInstaller(package_manager=npm_found, runner=runner).install(plan, ["a"], [])
        assert os.getcwd() == before

    async def test_restored_after_failure(self, plan, failing_runner, npm_found):
        before = os.getcwd()
        runner = failing_runner("a")
        await PackageInstaller(package_manager=npm_found, runner=runner).install(plan, ["a"], [])
        assert os.getcwd() == before

    async def test_restored_after_abort(self, plan, failing_runner, npm_found):
        before = os.getcwd()
        installer = PackageInstaller(
            config=InstallConfig(policy=InstallPolicy.ABORT),
            package_manager=npm_found,
            runner=failing_runner("a"),
        )
        with pytest.raises(PackageInstallError):
            await installer.install(plan, ["a"], [])
        assert os.getcwd() == before

    async def test_unstartable_executable_is_recorded(self, plan, npm_found):
        before = os.getcwd()
        calls: list[list[str]] = []

        async def unstartable_runner(cmd, **kwargs):
            calls.append(list(cmd))
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        installer = PackageInstaller(package_manager=npm_found, runner=unstartable_runner)
        report = await installer.install(plan, ["a", "b"], ["c"])

        assert [c[2] for c in calls] == ["a", "b", "c"]
        assert [r.returncode for r in report.results] == [-1, -1, -1]
        assert "No such file or directory" in report.failures[0].stderr
        assert report.failures[0].stderr.startswith(f"{NPM} install a --save-dev --silent")
        assert os.getcwd() == before

    async def test_unstartable_executable_aborts_under_abort_policy(self, plan, npm_found):
        before = os.getcwd()

        async def unstartable_runner(cmd, **kwargs):
            raise PermissionError(13, "Permission denied", cmd[0])

        installer = PackageInstaller(
            config=InstallConfig(policy=InstallPolicy.ABORT),
            package_manager=npm_found,
            runner=unstartable_runner,
        )
        with pytest.raises(PackageInstallError) as exc_info:
            await installer.install(plan, ["a", "b"], [])
        assert exc_info.value.result.returncode == -1
        assert os.getcwd() == before

    async def test_injected_handle_is_used(self, plan, runner, npm_found):
        events: list[tuple[str, Path]] = []

        class RecordingWorkingDirectory(WorkingDirectory):
            def change(self, path):
                events.append(("change", Path(path)))
                super().change(path)

        installer = PackageInstaller(
            package_manager=npm_found, workdir=RecordingWorkingDirectory(), runner=runner
        )
        before = Path.cwd()
        await installer.install(plan, ["a"], [])
        assert events == [("change", plan.base_path), ("change", before)]


class TestFailurePolicy:
    async def test_continue_records_and_keeps_going(self, plan, failing_runner, npm_found):
        runner = failing_runner("b")
        installer = PackageInstaller(package_manager=npm_found, runner=runner)
        report = await installer.install(plan, ["a", "b"], ["c"])

        assert len(runner.calls) == 3
        assert not report.ok
        assert [f.packages for f in report.failures] == [["b"]]
        assert report.failures[0].returncode == 1
        assert "404" in report.failures[0].stderr

    async def test_abort_stops_at_first_failure(self, plan, failing_runner, npm_found):
        runner = failing_runner("a")
        installer = PackageInstaller(
            config=InstallConfig(policy=InstallPolicy.ABORT),
            package_manager=npm_found,
            runner=runner,
        )
        with pytest.raises(PackageInstallError) as exc_info:
            await installer.install(plan, ["a", "b"], ["c"])

        assert len(runner.calls) == 1
        assert exc_info.value.result.packages == ["a"]
        assert exc_info.value.result.category == DependencyCategory.DEV

    async def test_missing_stderr_is_filled_in(self, plan, npm_found):
        async def silent_failure(cmd, **kwargs):
            return (2, "", "")

        installer = PackageInstaller(package_manager=npm_found, runner=silent_failure)
        report = await installer.install(plan, ["a"], [])
        assert report.failures[0].stderr == f"{NPM} install a --save-dev --silent exited with 2"


class TestBatchAndSkip:
    async def test_batch_one_call_per_category(self, plan, runner, npm_found):
        installer = PackageInstaller(
            config=InstallConfig(batch=True), package_manager=npm_found, runner=runner
        )
        await installer.install(plan, ["a", "b"], ["c"])
        assert runner.calls == [
            [NPM, "install", "a", "b", "--save-dev", "--silent"],
            [NPM, "install", "c", "--save", "--silent"],
        ]

    async def test_batch_skips_empty_category(self, plan, runner, npm_found):
        installer = PackageInstaller(
            config=InstallConfig(batch=True), package_manager=npm_found, runner=runner
        )
        await installer.install(plan, [], ["c"])
        assert runner.calls == [[NPM, "install", "c", "--save", "--silent"]]

    async def test_skip_makes_no_calls(self, base_path, runner, npm_found):
        # base_path does not exist: skip must not enter it.
        plan = DirectoryPlan.from_request(ScaffoldRequest(base_path=base_path))
        installer = PackageInstaller(
            config=InstallConfig(skip=True), package_manager=npm_found, runner=runner
        )
        report = await installer.install(plan, ["a"], ["c"])
        assert runner.calls == []
        assert report.ok


class TestReport:
    def test_failures_and_ok(self):
        report = InstallReport(
            results=[
                InstallResult(packages=["a"], category=DependencyCategory.DEV, returncode=0),
                InstallResult(packages=["b"], category=DependencyCategory.DEV, returncode=1),
            ]
        )
        assert not report.ok
        assert [r.packages for r in report.failures] == [["b"]]
        assert InstallReport().ok
