"""webscaffold pipeline orchestrator.

Scaffolds one or more front-end projects:

1. Check that the package manager is installed (once, before anything else).
2. For each base path, in order: create the directory tree, write
   ``package.json``, optionally write ``gulpfile.js``, then install the dev
   packages and runtime dependencies from inside the project directory.

The first fatal error (a filesystem failure, or a package failure under the
``abort`` policy) stops the run; remaining paths are not touched.

Usage::

    python -m webscaffold.pipeline ./site
    python -m webscaffold.pipeline ./site-a ./site-b --gulpfile --css-folder styles
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from dataclasses import dataclass
from pathlib import Path

from webscaffold.config import (
    DEFAULT_DEPENDENCIES,
    DEFAULT_DEV_PACKAGES,
    InstallPolicy,
    LayoutConfig,
    ScaffoldRequest,
)
from webscaffold.scaffolder.generator import DirectoryPlan, ScaffoldError, StructureGenerator
from webscaffold.scaffolder.installer import (
    CommandRunner,
    InstallReport,
    PackageInstallError,
    PackageInstaller,
    PackageManager,
    PackageManagerNotFoundError,
    WorkingDirectory,
)
from webscaffold.scaffolder.templates import TemplateRenderer
from webscaffold.utils import (
    format_duration,
    print_error,
    print_header,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
)


@dataclass
class ScaffoldResult:
    """What one request produced."""

    base_path: Path
    plan: DirectoryPlan
    install_report: InstallReport
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.install_report.ok


class ScaffoldPipeline:
    """Runs scaffold requests one after another.

    The package manager lookup, working-directory handle and command runner
    are injected and shared by every request in a run.
    """

    def __init__(
        self,
        package_manager: PackageManager | None = None,
        workdir: WorkingDirectory | None = None,
        runner: CommandRunner = run_command,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.package_manager = package_manager
        self.workdir = workdir or WorkingDirectory()
        self.runner = runner
        self.renderer = renderer or TemplateRenderer()

    async def run(self, requests: list[ScaffoldRequest]) -> list[ScaffoldResult]:
        """Scaffold every request in order.

        Raises:
            PackageManagerNotFoundError: Before any request is processed.
            ScaffoldError: From the first request whose structure fails.
            PackageInstallError: From the first failed install under the
                ``abort`` policy.
        """
        if not requests:
            return []

        for request in requests:
            if not request.install.skip:
                self._package_manager_for(request).ensure_available()

        results: list[ScaffoldResult] = []
        for request in requests:
            results.append(await self.scaffold(request))
        return results

    async def scaffold(self, request: ScaffoldRequest) -> ScaffoldResult:
        """Scaffold a single request without the prerequisite check."""
        start = time.monotonic()
        print_header(str(request.base_path))

        generator = StructureGenerator(request, renderer=self.renderer)
        plan = await generator.generate()

        installer = PackageInstaller(
            config=request.install,
            package_manager=self._package_manager_for(request),
            workdir=self.workdir,
            runner=self.runner,
        )
        report = await installer.install(plan, request.dev_packages, request.dependencies)

        return ScaffoldResult(
            base_path=plan.base_path,
            plan=plan,
            install_report=report,
            duration=time.monotonic() - start,
        )

    def _package_manager_for(self, request: ScaffoldRequest) -> PackageManager:
        if self.package_manager is not None:
            return self.package_manager
        return PackageManager(request.install.executable)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webscaffold",
        description="Scaffold a front-end web project and install its npm packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  webscaffold ./site\n"
            "  webscaffold ./site --gulpfile --css-folder styles\n"
            "  webscaffold ./a ./b --dev-packages gulp --dependencies jquery\n"
        ),
    )

    parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Base path(s) to scaffold, processed in order",
    )
    parser.add_argument(
        "--gulpfile",
        action="store_true",
        default=None,
        help="Also write a gulpfile.js",
    )
    parser.add_argument(
        "--dev-packages",
        nargs="*",
        default=None,
        metavar="NAME",
        help=f"Dev packages to install (default: {' '.join(DEFAULT_DEV_PACKAGES)})",
    )
    parser.add_argument(
        "--dependencies",
        nargs="*",
        default=None,
        metavar="NAME",
        help=f"Runtime packages to install (default: {' '.join(DEFAULT_DEPENDENCIES)})",
    )

    layout = parser.add_argument_group("layout")
    for flag, dest, default in (
        ("--app-folder", "app_folder", "app"),
        ("--css-folder", "css_folder", "css"),
        ("--fonts-folder", "fonts_folder", "fonts"),
        ("--images-folder", "images_folder", "images"),
        ("--js-folder", "js_folder", "js"),
        ("--sass-folder", "sass_folder", "scss"),
        ("--html-file", "html_file", "index.html"),
        ("--dist-folder", "dist_folder", "wwwroot"),
    ):
        layout.add_argument(flag, dest=dest, default=None, help=f"(default: {default})")

    install = parser.add_argument_group("install")
    install.add_argument(
        "--package-manager",
        default=None,
        help="Package manager executable (default: npm)",
    )
    install.add_argument(
        "--fail-fast",
        action="store_true",
        default=None,
        help="Stop at the first failed package install",
    )
    install.add_argument(
        "--batch-install",
        action="store_true",
        default=None,
        help="Install each package category in a single invocation",
    )
    install.add_argument(
        "--skip-install",
        action="store_true",
        default=None,
        help="Create files only, do not run the package manager",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with request defaults (command-line flags win)",
    )
    return parser


def build_requests(args: argparse.Namespace) -> list[ScaffoldRequest]:
    """Turn parsed CLI arguments into one request per path.

    Defaults come from ``--config`` when given, otherwise from the
    environment (see ``ScaffoldRequest.from_env``). Flags passed on the
    command line override both.
    """
    first = args.paths[0]
    if args.config is not None:
        base = ScaffoldRequest.load(args.config, base_path=first)
    else:
        base = ScaffoldRequest.from_env(first)

    update: dict = {}
    if args.gulpfile is not None:
        update["build_config"] = args.gulpfile
    if args.dev_packages is not None:
        update["dev_packages"] = list(args.dev_packages)
    if args.dependencies is not None:
        update["dependencies"] = list(args.dependencies)

    layout_update = {
        name: getattr(args, name)
        for name in LayoutConfig.model_fields
        if getattr(args, name, None) is not None
    }
    if layout_update:
        update["layout"] = base.layout.model_copy(update=layout_update)

    install_update: dict = {}
    if args.package_manager is not None:
        install_update["executable"] = args.package_manager
    if args.fail_fast is not None:
        install_update["policy"] = InstallPolicy.ABORT
    if args.batch_install is not None:
        install_update["batch"] = args.batch_install
    if args.skip_install is not None:
        install_update["skip"] = args.skip_install
    if install_update:
        update["install"] = base.install.model_copy(update=install_update)

    base = base.model_copy(update=update)
    return [base.for_path(path) for path in args.paths]


def _print_results(results: list[ScaffoldResult]) -> None:
    for result in results:
        report = result.install_report
        print_summary_table(
            {
                "Path": str(result.base_path),
                "Installs": str(len(report.results)),
                "Failed": str(len(report.failures)),
                "Duration": format_duration(result.duration),
            },
            title="Scaffold",
        )
        for failure in report.failures:
            print_warning(
                f"{result.base_path}: {' '.join(failure.packages)} "
                f"({failure.category.value}) exit {failure.returncode}: {failure.stderr}"
            )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``webscaffold`` / ``python -m webscaffold.pipeline``."""
    args = build_parser().parse_args(argv)

    try:
        requests = build_requests(args)
    except (OSError, ValueError) as exc:
        print_error(f"Error: invalid configuration: {exc}")
        sys.exit(1)

    pipeline = ScaffoldPipeline()
    try:
        results = asyncio.run(pipeline.run(requests))
    except PackageManagerNotFoundError as exc:
        print_error(f"Fatal: {exc}")
        sys.exit(1)
    except (ScaffoldError, PackageInstallError) as exc:
        print_error(f"Scaffolding stopped: {exc}")
        sys.exit(1)

    _print_results(results)
    if all(result.ok for result in results):
        print_success(f"Scaffolded {len(results)} project(s).")
    else:
        print_error("Some packages failed to install.")
        sys.exit(1)


if __name__ == "__main__":
    main()
