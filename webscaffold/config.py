"""webscaffold configuration.

Typed request models for a single scaffold run. All settings use Pydantic v2
models so they can be validated at construction time and serialised to/from
JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

# gulpfile.js.j2 loads these with require(); del 7+ and
# gulp-autoprefixer 9+ are ESM-only.
DEFAULT_DEV_PACKAGES: list[str] = [
    "gulp",
    "gulp-autoprefixer@8",
    "gulp-clean-css",
    "gulp-concat",
    "gulp-gzip",
    "gulp-sass",
    "sass",
    "gulp-sourcemaps",
    "gulp-uglify",
    "del@6",
    "browser-sync",
]

DEFAULT_DEPENDENCIES: list[str] = ["bootstrap", "jquery"]


class InstallPolicy(str, Enum):
    """What to do when a single package install exits non-zero."""

    CONTINUE = "continue"
    ABORT = "abort"


class LayoutConfig(BaseModel):
    """Folder and file names used for the generated tree.

    Names are used as-is. Characters the filesystem rejects surface as an
    ``OSError`` when the path is created.
    """

    app_folder: str = Field(default="app")
    css_folder: str = Field(default="css")
    fonts_folder: str = Field(default="fonts")
    images_folder: str = Field(default="images")
    js_folder: str = Field(default="js")
    sass_folder: str = Field(default="scss")
    html_file: str = Field(default="index.html")
    dist_folder: str = Field(default="wwwroot")


class InstallConfig(BaseModel):
    """How the package manager is invoked."""

    executable: str = Field(default="npm", description="Package manager executable name")
    policy: InstallPolicy = Field(default=InstallPolicy.CONTINUE)
    batch: bool = Field(
        default=False, description="Install each category with a single invocation"
    )
    skip: bool = Field(default=False, description="Do not run the package manager at all")
    timeout: int = Field(default=600, ge=1, description="Per-invocation timeout in seconds")


class ScaffoldRequest(BaseModel):
    """Everything needed to scaffold one project directory.

    A request is built once (from the CLI, a JSON file or the environment),
    consumed by ``ScaffoldPipeline`` and then discarded.
    """

    base_path: Path
    build_config: bool = Field(default=False, description="Write a gulpfile.js")
    dev_packages: list[str] = Field(default_factory=lambda: list(DEFAULT_DEV_PACKAGES))
    dependencies: list[str] = Field(default_factory=lambda: list(DEFAULT_DEPENDENCIES))
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    install: InstallConfig = Field(default_factory=InstallConfig)

    def for_path(self, base_path: str | Path) -> "ScaffoldRequest":
        """Return a copy of this request targeting *base_path*."""
        return self.model_copy(update={"base_path": Path(base_path)}, deep=True)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the request to a JSON file and return the path written."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path, base_path: str | Path | None = None) -> "ScaffoldRequest":
        """Load a request from JSON.

        Args:
            path: The JSON file to read.
            base_path: Overrides (or supplies) the ``base_path`` stored in
                the file.
        """
        data = _load_raw(path)
        if base_path is not None:
            data["base_path"] = Path(base_path)
        return cls.model_validate(data)

    @classmethod
    def from_env(cls, base_path: str | Path) -> "ScaffoldRequest":
        """Build a request for *base_path* from environment variables.

        Recognised variables (all optional):
            WEBSCAFFOLD_PACKAGE_MANAGER, WEBSCAFFOLD_DEV_PACKAGES,
            WEBSCAFFOLD_DEPENDENCIES, WEBSCAFFOLD_INSTALL_POLICY,
            WEBSCAFFOLD_BATCH_INSTALL, WEBSCAFFOLD_SKIP_INSTALL.

        Package lists are comma separated.
        """
        install_kwargs: dict[str, Any] = {}
        if os.environ.get("WEBSCAFFOLD_PACKAGE_MANAGER"):
            install_kwargs["executable"] = os.environ["WEBSCAFFOLD_PACKAGE_MANAGER"]
        if os.environ.get("WEBSCAFFOLD_INSTALL_POLICY"):
            install_kwargs["policy"] = InstallPolicy(
                os.environ["WEBSCAFFOLD_INSTALL_POLICY"].strip().lower()
            )
        if os.environ.get("WEBSCAFFOLD_BATCH_INSTALL"):
            install_kwargs["batch"] = _env_flag(os.environ["WEBSCAFFOLD_BATCH_INSTALL"])
        if os.environ.get("WEBSCAFFOLD_SKIP_INSTALL"):
            install_kwargs["skip"] = _env_flag(os.environ["WEBSCAFFOLD_SKIP_INSTALL"])

        kwargs: dict[str, Any] = {}
        if os.environ.get("WEBSCAFFOLD_DEV_PACKAGES"):
            kwargs["dev_packages"] = _split_list(os.environ["WEBSCAFFOLD_DEV_PACKAGES"])
        if os.environ.get("WEBSCAFFOLD_DEPENDENCIES"):
            kwargs["dependencies"] = _split_list(os.environ["WEBSCAFFOLD_DEPENDENCIES"])

        return cls(
            base_path=Path(base_path),
            install=InstallConfig(**install_kwargs),
            **kwargs,
        )


def _load_raw(path: str | Path) -> dict[str, Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Request file must contain a JSON object: {path}")
    return data


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_flag(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}
