from missionlog.rendering.archive import ZipArchiveCodec
from missionlog.rendering.base import (
    DOCX_MEDIA_TYPE,
    MissingDependencyError,
    RenderedDocument,
    RenderError,
    TemplateFormatError,
)
from missionlog.rendering.directives import DocxDirectiveEngine
from missionlog.rendering.renderer import DocumentRenderer

__all__ = [
    "DOCX_MEDIA_TYPE",
    "DocumentRenderer",
    "DocxDirectiveEngine",
    "MissingDependencyError",
    "RenderError",
    "RenderedDocument",
    "TemplateFormatError",
    "ZipArchiveCodec",
    "build_default_renderer",
]


def build_default_renderer() -> DocumentRenderer:
    codec = ZipArchiveCodec()
    return DocumentRenderer(codec=codec, engine=DocxDirectiveEngine(codec))
