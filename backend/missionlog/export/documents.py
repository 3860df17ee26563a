from __future__ import annotations

from dataclasses import dataclass
import logging

from missionlog.export.naming import document_file_name
from missionlog.models import ExportConfiguration, MissionRecord, UserProfile, build_render_fields
from missionlog.rendering.base import RenderError, TemplateFormatError, require_dependency
from missionlog.rendering.renderer import DocumentRenderer
from missionlog.templates.embedded import TemplateUnavailableError
from missionlog.templates.resolver import SOURCE_EMBEDDED, TemplateResolver

logger = logging.getLogger("missionlog.export")


@dataclass(frozen=True)
class GeneratedDocument:
    file_name: str
    content: bytes
    media_type: str
    template_source: str
    healed: bool = False


class DocumentGenerator:
    def __init__(self, *, resolver: TemplateResolver, renderer: DocumentRenderer) -> None:
        require_dependency(resolver, "template resolver")
        require_dependency(renderer, "document renderer")
        self.resolver = resolver
        self.renderer = renderer

    async def render_mission(
        self,
        mission: MissionRecord,
        config: ExportConfiguration,
        profile: UserProfile,
    ) -> GeneratedDocument:
        """Render one mission, retrying with the embedded template if the chosen one is corrupt.

        Raises ``RenderError`` or ``TemplateUnavailableError``.
        """
        template = await self.resolver.resolve(config)
        fields = build_render_fields(mission, profile)
        healed = False
        try:
            rendered = self.renderer.render(template.content, fields)
        except TemplateFormatError as exc:
            if template.source == SOURCE_EMBEDDED:
                raise
            logger.warning(
                "template_corrupt_using_fallback",
                extra={
                    "event": "template_corrupt_using_fallback",
                    "mission_id": mission.id,
                    "template_source": template.source,
                    "template_id": template.template_id,
                    "error": str(exc),
                },
            )
            template = self.resolver.embedded_template()
            rendered = self.renderer.render(template.content, fields)
            healed = True

        return GeneratedDocument(
            file_name=document_file_name(mission),
            content=rendered.content,
            media_type=rendered.media_type,
            template_source=template.source,
            healed=healed,
        )

    async def generate(
        self,
        mission: MissionRecord,
        config: ExportConfiguration,
        profile: UserProfile,
    ) -> GeneratedDocument | None:
        """Single-download flow: failures are logged and reported as ``None``."""
        try:
            return await self.render_mission(mission, config, profile)
        except (RenderError, TemplateUnavailableError) as exc:
            logger.error(
                "document_generation_failed",
                extra={"event": "document_generation_failed", "mission_id": mission.id, "error": str(exc)},
            )
            return None
