"""Map request paths onto source documents and static files."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote

from .documents import DocumentFormat

INDEX_PAGE = "index.html"
PAGE_SUFFIX = ".html"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Probe order when a page could come from more than one source file.
SOURCE_FORMATS: tuple[DocumentFormat, ...] = (DocumentFormat.MARKDOWN, DocumentFormat.ORG)

# Ensure correct Content-Type headers for common static assets.
MIME_OVERRIDES = {
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".json": "application/json; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".txt": "text/plain; charset=utf-8",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


@dataclass(frozen=True, slots=True)
class Render:
    source: Path
    format: DocumentFormat


@dataclass(frozen=True, slots=True)
class ServeStatic:
    path: Path
    mime_type: str


@dataclass(frozen=True, slots=True)
class NotFound:
    path: str


@dataclass(frozen=True, slots=True)
class BadRequest:
    path: str


ResolvedAction = Render | ServeStatic | NotFound | BadRequest


def normalize_request_path(url_path: str) -> str:
    """Drop query string, fragment and leading slashes; default to the index page."""
    path = url_path.split("?", 1)[0].split("#", 1)[0]
    path = unquote(path).lstrip("/")
    return path or INDEX_PAGE


def is_traversal(path: str) -> bool:
    return "\\" in path or any(segment == ".." for segment in path.split("/"))


def guess_mime_type(path: Path) -> str:
    override = MIME_OVERRIDES.get(path.suffix.lower())
    if override:
        return override
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or DEFAULT_MIME_TYPE


def resolve_request(url_path: str, source_root: Path) -> ResolvedAction:
    """Decide how to answer ``url_path``; no caching, every call hits the disk."""
    path = normalize_request_path(url_path)
    if is_traversal(path):
        return BadRequest(path)

    if path.endswith(PAGE_SUFFIX):
        stem = path[: -len(PAGE_SUFFIX)]
        for fmt in SOURCE_FORMATS:
            candidate = source_root / f"{stem}{fmt.suffix}"
            if candidate.is_file():
                return Render(source=candidate, format=fmt)
        return NotFound(path)

    static_path = source_root / path
    if static_path.is_file():
        return ServeStatic(path=static_path, mime_type=guess_mime_type(static_path))
    return NotFound(path)
