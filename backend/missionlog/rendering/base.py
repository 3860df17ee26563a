from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class MissingDependencyError(TypeError):
    """Raised at construction time when a required capability was not supplied."""


class RenderError(RuntimeError):
    """Raised when a document cannot be rendered from a template."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class TemplateFormatError(RenderError):
    """The template bytes are not a usable .docx container."""


class ArchiveFormatError(ValueError):
    """Raised by archive codecs for content that is not a readable zip container."""


class DirectiveSyntaxError(ValueError):
    """Raised by directive engines for malformed or unbalanced directives."""


@dataclass(frozen=True)
class Delimiters:
    start: str
    end: str

    def __post_init__(self) -> None:
        if len(self.start) != 1 or len(self.end) != 1 or self.start == self.end:
            raise ValueError("delimiters must be two distinct single characters")


BLOCK_DELIMITERS = Delimiters("{", "}")
INLINE_DELIMITERS = Delimiters("(", ")")


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes
    media_type: str = DOCX_MEDIA_TYPE


class TemplateArchive(Protocol):
    def names(self) -> list[str]:
        ...

    def read(self, name: str) -> bytes:
        ...

    def replace(self, name: str, data: bytes) -> None:
        ...


class ArchiveCodec(Protocol):
    def open(self, content: bytes) -> TemplateArchive:
        ...

    def serialize(self, archive: TemplateArchive) -> bytes:
        ...


class DirectiveEngine(Protocol):
    engine_id: str

    def apply(self, content: bytes, fields: Mapping[str, str], *, delimiters: Delimiters) -> bytes:
        ...


def require_dependency(value: object, name: str) -> None:
    if value is None:
        raise MissingDependencyError(f"{name} is required")
