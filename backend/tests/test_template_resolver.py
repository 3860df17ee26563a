from __future__ import annotations

import asyncio
import base64
import logging

import httpx
import pytest

from missionlog.models import ExportConfiguration, TemplateDescriptor
from missionlog.templates import (
    DEFAULT_TEMPLATE_BASE64,
    TemplateResolver,
    TemplateUnavailableError,
    verify_embedded_template,
)
from missionlog.templates.resolver import SOURCE_ASSET, SOURCE_CUSTOM, SOURCE_EMBEDDED

ASSET_URL = "https://missions.example.test/default.docx"
ASSET_BYTES = b"PK\x03\x04" + b"\x00" * 400


def _config_with_custom(template_id: str = "abc123xyz", data: str | None = None) -> ExportConfiguration:
    encoded = data if data is not None else base64.b64encode(b"custom template bytes").decode("ascii")
    return ExportConfiguration(
        activeTemplateId=template_id,
        customTemplates=[TemplateDescriptor(id="abc123xyz", name="Custom", data=encoded)],
    )


def _resolver(handler=None, **kwargs) -> TemplateResolver:
    transport = httpx.MockTransport(handler) if handler is not None else None
    asset_url = kwargs.pop("asset_url", ASSET_URL if handler is not None else "")
    return TemplateResolver(asset_url=asset_url, transport=transport, **kwargs)


def _asset_handler(status_code: int = 200, content: bytes = ASSET_BYTES, content_type: str = "application/octet-stream"):
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(status_code, content=content, headers={"content-type": content_type})

    handler.calls = calls  # type: ignore[attr-defined]
    return handler


def test_active_custom_template_wins_without_fetching_asset() -> None:
    handler = _asset_handler()

    resolved = asyncio.run(_resolver(handler).resolve(_config_with_custom()))

    assert resolved.source == SOURCE_CUSTOM
    assert resolved.template_id == "abc123xyz"
    assert resolved.content == b"custom template bytes"
    assert handler.calls == []


def test_default_selection_uses_fetched_asset() -> None:
    handler = _asset_handler()

    resolved = asyncio.run(_resolver(handler).resolve(ExportConfiguration()))

    assert resolved.source == SOURCE_ASSET
    assert resolved.content == ASSET_BYTES
    assert handler.calls == [ASSET_URL]


def test_missing_custom_template_falls_back(caplog) -> None:
    config = ExportConfiguration(activeTemplateId="gone12345")

    with caplog.at_level(logging.WARNING, logger="missionlog.templates"):
        resolved = asyncio.run(_resolver().resolve(config))

    assert resolved.source == SOURCE_EMBEDDED
    assert any(getattr(record, "event", None) == "custom_template_missing" for record in caplog.records)


def test_malformed_custom_template_falls_back_to_asset() -> None:
    resolved = asyncio.run(_resolver(_asset_handler()).resolve(_config_with_custom(data="not*base64")))

    assert resolved.source == SOURCE_ASSET


@pytest.mark.parametrize(
    "handler",
    [
        _asset_handler(status_code=404),
        _asset_handler(content_type="text/html; charset=utf-8", content=b"<html>" + b" " * 500),
        _asset_handler(content=b"PK" + b"\x00" * 98),
    ],
    ids=["not-found", "html-fallback-page", "too-small"],
)
def test_rejected_asset_falls_back_to_embedded(handler) -> None:
    resolved = asyncio.run(_resolver(handler).resolve(ExportConfiguration()))

    assert resolved.source == SOURCE_EMBEDDED
    assert resolved.content == base64.b64decode(DEFAULT_TEMPLATE_BASE64)


def test_network_failure_falls_back_to_embedded(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with caplog.at_level(logging.WARNING, logger="missionlog.templates"):
        resolved = asyncio.run(_resolver(handler).resolve(ExportConfiguration()))

    assert resolved.source == SOURCE_EMBEDDED
    assert any(getattr(record, "event", None) == "template_asset_fetch_failed" for record in caplog.records)


def test_empty_asset_url_skips_fetch() -> None:
    handler = _asset_handler()

    resolved = asyncio.run(_resolver(handler, asset_url="").resolve(ExportConfiguration()))

    assert resolved.source == SOURCE_EMBEDDED
    assert handler.calls == []


def test_embedded_template_is_a_valid_document() -> None:
    assert verify_embedded_template() > 100


def test_broken_embedded_template_is_reported() -> None:
    resolver = _resolver(embedded_template="%%%%")

    with pytest.raises(TemplateUnavailableError):
        asyncio.run(resolver.resolve(ExportConfiguration()))

    with pytest.raises(TemplateUnavailableError):
        verify_embedded_template(base64.b64encode(b"not a zip archive").decode("ascii"))
