from __future__ import annotations

import logging
from typing import Mapping

from missionlog.rendering.base import (
    BLOCK_DELIMITERS,
    DOCX_MEDIA_TYPE,
    INLINE_DELIMITERS,
    ArchiveCodec,
    ArchiveFormatError,
    Delimiters,
    DirectiveEngine,
    DirectiveSyntaxError,
    RenderedDocument,
    RenderError,
    TemplateFormatError,
    require_dependency,
)

logger = logging.getLogger("missionlog.rendering")


class DocumentRenderer:
    """Renders a field mapping into a .docx template in two passes.

    Pass 1 resolves ``{…}`` directives (blocks and conditionals) on the
    original template. Pass 2 re-opens that output and resolves the inline
    ``(…)`` directives with the same fields. Keeping the syntaxes in separate
    passes means neither parser ever sees the other's brackets as its own.
    """

    def __init__(
        self,
        *,
        codec: ArchiveCodec,
        engine: DirectiveEngine,
        block_delimiters: Delimiters = BLOCK_DELIMITERS,
        inline_delimiters: Delimiters = INLINE_DELIMITERS,
    ) -> None:
        require_dependency(codec, "archive codec")
        require_dependency(engine, "directive engine")
        self.codec = codec
        self.engine = engine
        self.passes = (("block", block_delimiters), ("inline", inline_delimiters))

    def render(self, template: bytes, fields: Mapping[str, str]) -> RenderedDocument:
        try:
            self.codec.open(template)
        except ArchiveFormatError as exc:
            raise TemplateFormatError(f"template is not a valid document archive: {exc}", cause=exc) from exc

        content = bytes(template)
        for pass_name, delimiters in self.passes:
            content = self._run_pass(pass_name, content, fields, delimiters)

        logger.debug(
            "document_rendered",
            extra={
                "event": "document_rendered",
                "engine": self.engine.engine_id,
                "template_bytes": len(template),
                "output_bytes": len(content),
            },
        )
        return RenderedDocument(content=content, media_type=DOCX_MEDIA_TYPE)

    def _run_pass(
        self,
        pass_name: str,
        content: bytes,
        fields: Mapping[str, str],
        delimiters: Delimiters,
    ) -> bytes:
        try:
            return self.engine.apply(content, fields, delimiters=delimiters)
        except DirectiveSyntaxError as exc:
            raise RenderError(f"{pass_name} pass failed: {exc}", cause=exc) from exc
        except ArchiveFormatError as exc:
            raise RenderError(f"{pass_name} pass produced an unreadable archive: {exc}", cause=exc) from exc
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"{pass_name} pass failed unexpectedly: {exc}", cause=exc) from exc
