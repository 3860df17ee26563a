from __future__ import annotations

from functools import lru_cache
import re
from typing import Callable

from missionlog.config import settings
from missionlog.export import BatchExportAggregator, DocumentGenerator
from missionlog.rendering import DocumentRenderer, DocxDirectiveEngine, ZipArchiveCodec
from missionlog.templates import TemplateResolver

DocumentGeneratorGetter = Callable[[], DocumentGenerator]
BatchAggregatorGetter = Callable[[], BatchExportAggregator]

_UNSAFE_FILE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def build_document_generator() -> DocumentGenerator:
    codec = ZipArchiveCodec()
    resolver = TemplateResolver(
        asset_url=settings.template_asset_url,
        min_asset_bytes=settings.template_asset_min_bytes,
        timeout_seconds=settings.template_fetch_timeout_seconds,
    )
    renderer = DocumentRenderer(codec=codec, engine=DocxDirectiveEngine(codec))
    return DocumentGenerator(resolver=resolver, renderer=renderer)


@lru_cache(maxsize=1)
def _cached_document_generator() -> DocumentGenerator:
    return build_document_generator()


def get_document_generator() -> DocumentGenerator:
    return _cached_document_generator()


@lru_cache(maxsize=1)
def _cached_batch_aggregator() -> BatchExportAggregator:
    return BatchExportAggregator(generator=get_document_generator(), codec=ZipArchiveCodec())


def get_batch_aggregator() -> BatchExportAggregator:
    return _cached_batch_aggregator()


def attachment_headers(file_name: str) -> dict[str, str]:
    safe_name = _UNSAFE_FILE_NAME_CHARS.sub("_", file_name) or "download"
    return {"Content-Disposition": f'attachment; filename="{safe_name}"'}
