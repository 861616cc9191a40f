"""Jinja2 template rendering for generated project files.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``webscaffold/scaffolder/templates/`` directory and renders them with
layout-specific context data.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    Templates are loaded from a configurable template directory and
    rendered with a context dictionary that typically contains the project's folder names.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["js_string"] = _js_string_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"gulpfile.js.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to a new file.

        The file is opened in exclusive-create mode, so an existing
        *output_path* raises ``FileExistsError``.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(write_new_file, out, content)
        return out


def _js_string_filter(value: str) -> str:
    """Escape *value* for use inside a single-quoted JavaScript string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def write_new_file(path: Path, content: str) -> None:
    """Write *content* to *path*, failing if the file already exists."""
    with open(path, "x", encoding="utf-8") as fh:
        fh.write(content)
