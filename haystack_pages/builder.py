"""Batch compilation of a source tree into an output directory."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .config import ThemeConfig
from .documents import DocumentFormat
from .render import DocumentRenderer

logger = logging.getLogger(__name__)


class BuildError(RuntimeError):
    """Raised when a build cannot start."""


@dataclass
class BuildResult:
    """Summary of rendered documents and copied static files."""

    rendered: list[tuple[Path, Path]] = field(default_factory=list)
    copied: list[tuple[Path, Path]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.rendered) + len(self.copied)


def output_path_for(source: Path, source_dir: Path, output_dir: Path) -> Path:
    """Destination of ``source``: documents become ``.html``, other files keep their name."""
    relative = source.relative_to(source_dir)
    if DocumentFormat.from_path(source) is not None:
        return output_dir / relative.with_suffix(".html")
    return output_dir / relative


def build_site(
    source_dir: Path,
    output_dir: Path,
    renderer: DocumentRenderer,
    theme: ThemeConfig,
    *,
    on_progress: Callable[[str, Path, Path], None] | None = None,
) -> BuildResult:
    """Render every document under ``source_dir`` and copy everything else.

    The first document that fails to render aborts the build.
    """
    if not source_dir.exists():
        raise BuildError(f"src folder not found: {source_dir}")
    output_dir.mkdir(parents=True, exist_ok=True)

    result = BuildResult()
    for source in sorted(source_dir.rglob("*")):
        if not source.is_file():
            continue
        destination = output_path_for(source, source_dir, output_dir)
        destination.parent.mkdir(parents=True, exist_ok=True)
        if DocumentFormat.from_path(source) is not None:
            page = renderer.render_file(source, theme)
            destination.write_text(page, encoding="utf-8")
            result.rendered.append((source, destination))
            action = "Built"
        else:
            shutil.copy2(source, destination)
            result.copied.append((source, destination))
            action = "Copied"
        logger.debug("%s %s -> %s", action, source, destination)
        if on_progress is not None:
            on_progress(action, source, destination)
    return result
