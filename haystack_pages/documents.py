"""Data carried through a single render pass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class DocumentFormat(str, Enum):
    """Source formats understood by the renderer."""

    MARKDOWN = "markdown"
    ORG = "org"

    @property
    def suffix(self) -> str:
        return ".md" if self is DocumentFormat.MARKDOWN else ".org"

    @classmethod
    def from_path(cls, path: Path) -> "DocumentFormat | None":
        """Map a file extension to a format, ``None`` for anything else."""
        for fmt in cls:
            if path.suffix == fmt.suffix:
                return fmt
        return None


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """Raw document text tagged with its format."""

    text: str
    format: DocumentFormat
    path: Path | None = None

    @classmethod
    def read(cls, path: Path) -> "SourceDocument | None":
        """Read ``path`` as UTF-8; ``None`` when the extension is not a document format."""
        fmt = DocumentFormat.from_path(path)
        if fmt is None:
            return None
        return cls(text=path.read_text(encoding="utf-8"), format=fmt, path=path)


@dataclass(frozen=True, slots=True)
class CodeBlock:
    """A code block lifted out of a document before highlighting."""

    code: str
    language: str | None = None

    @classmethod
    def from_info(cls, code: str, info: str | None) -> "CodeBlock":
        """Build from a fence info string; the language is its first word."""
        words = (info or "").split()
        return cls(code=code, language=words[0] if words else None)
