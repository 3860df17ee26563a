from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

import httpx

from missionlog.codec import MalformedEncodingError, decode_base64_to_buffer
from missionlog.models import DEFAULT_TEMPLATE_ID, ExportConfiguration
from missionlog.templates.embedded import DEFAULT_TEMPLATE_BASE64, embedded_template_bytes

logger = logging.getLogger("missionlog.templates")

SOURCE_CUSTOM = "custom"
SOURCE_ASSET = "asset"
SOURCE_EMBEDDED = "embedded"

BUILTIN_ASSET_PATH = Path(__file__).resolve().parent.parent / "assets" / "default.docx"


@dataclass(frozen=True)
class ResolvedTemplate:
    content: bytes
    source: str
    template_id: str = DEFAULT_TEMPLATE_ID


class TemplateResolver:
    """Chooses template bytes: custom upload, then built-in asset, then embedded copy.

    Every tier but the last fails soft. Only a broken embedded constant, which
    is a build defect, surfaces as ``TemplateUnavailableError``.
    """

    def __init__(
        self,
        *,
        asset_url: str = "",
        min_asset_bytes: int = 100,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
        embedded_template: str = DEFAULT_TEMPLATE_BASE64,
    ) -> None:
        self.asset_url = asset_url.strip()
        self.min_asset_bytes = min_asset_bytes
        self.timeout_seconds = timeout_seconds
        self.transport = transport
        self._embedded_template = embedded_template

    async def resolve(self, config: ExportConfiguration) -> ResolvedTemplate:
        custom = self._custom_template(config)
        if custom is not None:
            return custom

        asset = await self._fetch_asset()
        if asset is not None:
            return ResolvedTemplate(content=asset, source=SOURCE_ASSET)

        return self.embedded_template()

    def embedded_template(self) -> ResolvedTemplate:
        return ResolvedTemplate(content=embedded_template_bytes(self._embedded_template), source=SOURCE_EMBEDDED)

    def _custom_template(self, config: ExportConfiguration) -> ResolvedTemplate | None:
        active_id = config.active_template_id
        if not active_id or active_id == DEFAULT_TEMPLATE_ID:
            return None

        descriptor = next((item for item in config.custom_templates if item.id == active_id), None)
        if descriptor is None:
            logger.warning(
                "custom_template_missing",
                extra={"event": "custom_template_missing", "template_id": active_id},
            )
            return None

        try:
            content = decode_base64_to_buffer(descriptor.data)
        except MalformedEncodingError as exc:
            logger.warning(
                "custom_template_malformed",
                extra={"event": "custom_template_malformed", "template_id": active_id, "error": str(exc)},
            )
            return None
        return ResolvedTemplate(content=content, source=SOURCE_CUSTOM, template_id=active_id)

    async def _fetch_asset(self) -> bytes | None:
        if not self.asset_url:
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.get(self.asset_url)
        except Exception as exc:
            logger.warning(
                "template_asset_fetch_failed",
                extra={"event": "template_asset_fetch_failed", "url": self.asset_url, "error": str(exc)},
            )
            return None

        content_type = response.headers.get("content-type", "").lower()
        reason = None
        if not response.is_success:
            reason = f"status {response.status_code}"
        elif "text/html" in content_type:
            # Single-page-app hosting answers unknown paths with index.html.
            reason = "html response"
        elif len(response.content) <= self.min_asset_bytes:
            reason = f"payload too small ({len(response.content)} bytes)"

        if reason is not None:
            logger.warning(
                "template_asset_rejected",
                extra={"event": "template_asset_rejected", "url": self.asset_url, "reason": reason},
            )
            return None
        return response.content
