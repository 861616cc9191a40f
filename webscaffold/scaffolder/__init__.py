"""webscaffold scaffolder -- creates front-end project structures.

Quick usage::

    from webscaffold.config import ScaffoldRequest
    from webscaffold.scaffolder import PackageInstaller, StructureGenerator

    request = ScaffoldRequest(base_path="/tmp/site", build_config=True)
    plan = await StructureGenerator(request).generate()
    report = await PackageInstaller(request.install).install(
        plan, request.dev_packages, request.dependencies
    )
"""

from webscaffold.scaffolder.generator import DirectoryPlan, ScaffoldError, StructureGenerator
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
from webscaffold.scaffolder.templates import TemplateRenderer

__all__ = [
    "DependencyCategory",
    "DirectoryPlan",
    "InstallReport",
    "InstallResult",
    "PackageInstallError",
    "PackageInstaller",
    "PackageManager",
    "PackageManagerNotFoundError",
    "ScaffoldError",
    "StructureGenerator",
    "TemplateRenderer",
    "WorkingDirectory",
]
