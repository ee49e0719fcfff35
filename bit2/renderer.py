"""
renderer.py

Responsibility: Turn a project template (by default the bundled `astro-app`) into a
new project directory.

A template file is rendered with Jinja2 only if it is UTF-8 text containing a Jinja
tag (`package.json`, `README.md`, a few `.astro` pages). Everything else, including
the `.ts` sources and `.sql` files, lands in the project unchanged. Files are
processed in sorted relative-path order so two runs produce identical trees.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "astro-app"
BUNDLED_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

_JINJA_TAGS = ("{{", "{%", "{#")


class RenderError(RuntimeError):
    pass


@dataclass(frozen=True)
class RenderResult:
    rendered_files: int
    copied_files: int


def template_dir_for(name: str = DEFAULT_TEMPLATE, templates_dir: str | Path | None = None) -> Path:
    base = Path(templates_dir).resolve() if templates_dir else BUNDLED_TEMPLATES_DIR
    return base / name


def _read_template_text(path: Path) -> str | None:
    """UTF-8 contents of a template file, or None for binary files (images, fonts)."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return None


def _template_files(template_dir: Path) -> list[Path]:
    files = [p for p in template_dir.rglob("*") if p.is_file()]
    return sorted(files, key=lambda p: p.relative_to(template_dir).as_posix())


def render_template_dir(
    *,
    template_dir: str | Path,
    destination_dir: str | Path,
    context: dict[str, Any],
) -> RenderResult:
    """
    Write every file of `template_dir` below `destination_dir`, rendering the ones
    that contain Jinja tags with `context`. Undefined variables are errors.
    """
    source_root = Path(template_dir).resolve()
    project_root = Path(destination_dir).resolve()
    if not source_root.is_dir():
        raise RenderError(f"Template directory not found: {source_root}")

    jinja = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)
    rendered = copied = 0

    for src in _template_files(source_root):
        rel = src.relative_to(source_root)
        dst = project_root / rel
        dst.parent.mkdir(parents=True, exist_ok=True)

        text = _read_template_text(src)
        if text is None or not any(tag in text for tag in _JINJA_TAGS):
            shutil.copy2(src, dst)
            copied += 1
            continue

        try:
            output = jinja.from_string(text).render(**context)
        except TemplateError as e:
            raise RenderError(f"Failed rendering template file: {rel}: {e}") from e
        dst.write_text(output, encoding="utf-8", newline="\n")
        shutil.copymode(src, dst)
        rendered += 1

    logger.debug("Rendered %d file(s), copied %d file(s) into %s", rendered, copied, project_root)
    return RenderResult(rendered_files=rendered, copied_files=copied)
