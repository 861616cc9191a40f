"""Project structure generator.

Takes a ``ScaffoldRequest`` and creates the on-disk layout of a front-end
web project: the application folder and its asset folders, the entry HTML
file, the distribution folder, ``package.json`` and, optionally,
``gulpfile.js``.

Nothing here checks for existing paths first. Creation fails on the first
conflict and whatever was created up to that point is left in place.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from webscaffold.config import ScaffoldRequest
from webscaffold.utils import package_name, print_step

from .templates import TemplateRenderer, write_new_file

MANIFEST_FILE = "package.json"
BUILD_CONFIG_FILE = "gulpfile.js"
BUILD_CONFIG_TEMPLATE = "gulpfile.js.j2"


class ScaffoldError(Exception):
    """Raised when a filesystem step fails while scaffolding a project."""

    def __init__(self, base_path: Path, step: str, message: str) -> None:
        self.base_path = base_path
        self.step = step
        super().__init__(f"{base_path} [{step}]: {message}")


# ---------------------------------------------------------------------------
# Directory plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DirectoryPlan:
    """Every path a request produces, resolved against its base path."""

    base_path: Path
    app_dir: Path
    css_dir: Path
    fonts_dir: Path
    images_dir: Path
    js_dir: Path
    sass_dir: Path
    entry_file: Path
    dist_dir: Path
    manifest_file: Path
    build_config_file: Path

    @classmethod
    def from_request(cls, request: ScaffoldRequest) -> "DirectoryPlan":
        base = Path(request.base_path)
        layout = request.layout
        app = base / layout.app_folder
        return cls(
            base_path=base,
            app_dir=app,
            css_dir=app / layout.css_folder,
            fonts_dir=app / layout.fonts_folder,
            images_dir=app / layout.images_folder,
            js_dir=app / layout.js_folder,
            sass_dir=app / layout.sass_folder,
            entry_file=app / layout.html_file,
            dist_dir=base / layout.dist_folder,
            manifest_file=base / MANIFEST_FILE,
            build_config_file=base / BUILD_CONFIG_FILE,
        )

    def app_subdirs(self) -> list[Path]:
        """Asset folders inside the application folder, in creation order."""
        return [self.css_dir, self.fonts_dir, self.images_dir, self.js_dir, self.sass_dir]

    def expected_paths(self, build_config: bool = False) -> list[Path]:
        """All paths that exist after a successful scaffold."""
        paths = [
            self.app_dir,
            *self.app_subdirs(),
            self.entry_file,
            self.dist_dir,
            self.manifest_file,
        ]
        if build_config:
            paths.append(self.build_config_file)
        return paths


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


def build_manifest(base_path: Path) -> dict[str, Any]:
    """Return the ``package.json`` document for a project at *base_path*."""
    return {
        "name": package_name(Path(base_path).resolve().name),
        "version": "1.0.0",
        "description": "",
        "main": "index.js",
        "repository": {},
        "scripts": {
            "test": 'echo "Error: no test specified" && exit 1',
        },
        "author": "",
        "license": "ISC",
    }


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class StructureGenerator:
    """Creates the directory tree and project files for one request.

    Each public method covers one step and wraps any ``OSError`` in a
    ``ScaffoldError`` naming the base path and the step. The process
    working directory is never changed here.
    """

    def __init__(
        self,
        request: ScaffoldRequest,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.request = request
        self.plan = DirectoryPlan.from_request(request)
        self.renderer = renderer or TemplateRenderer()

    async def generate(self) -> DirectoryPlan:
        """Run every structure step in order and return the plan."""
        await self.create_structure()
        await self.write_manifest()
        if self.request.build_config:
            await self.write_build_config()
        return self.plan

    async def create_structure(self) -> None:
        """Create the application folder, its asset folders, the entry file
        and the distribution folder, in that order."""
        plan = self.plan
        try:
            await asyncio.to_thread(plan.app_dir.mkdir, parents=True)
            for subdir in plan.app_subdirs():
                await asyncio.to_thread(subdir.mkdir)
            await asyncio.to_thread(plan.entry_file.touch, exist_ok=False)
            await asyncio.to_thread(plan.dist_dir.mkdir)
        except (OSError, ValueError) as exc:
            raise ScaffoldError(plan.base_path, "structure", str(exc)) from exc
        print_step(f"created {plan.app_dir.name}/ and {plan.dist_dir.name}/")

    async def write_manifest(self) -> Path:
        content = json.dumps(build_manifest(self.plan.base_path), indent=2) + "\n"
        try:
            await asyncio.to_thread(write_new_file, self.plan.manifest_file, content)
        except (OSError, ValueError) as exc:
            raise ScaffoldError(self.plan.base_path, "manifest", str(exc)) from exc
        print_step(f"wrote {MANIFEST_FILE}")
        return self.plan.manifest_file

    async def write_build_config(self) -> Path:
        """Render ``gulpfile.js`` with this request's folder names."""
        try:
            path = await self.renderer.render_to_file(
                BUILD_CONFIG_TEMPLATE,
                self.plan.build_config_file,
                self.request.layout.model_dump(),
            )
        except (OSError, ValueError) as exc:
            raise ScaffoldError(self.plan.base_path, "build-config", str(exc)) from exc
        print_step(f"wrote {BUILD_CONFIG_FILE}")
        return path
