from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable

from missionlog.export.documents import DocumentGenerator
from missionlog.export.naming import (
    ARCHIVE_EXTENSION,
    batch_archive_name,
    document_file_name,
    mission_day,
    sanitize_title,
)
from missionlog.models import DateRange, ExportConfiguration, MissionRecord, UserProfile
from missionlog.rendering.archive import ZipArchiveCodec
from missionlog.rendering.base import RenderError, require_dependency
from missionlog.templates.embedded import TemplateUnavailableError

logger = logging.getLogger("missionlog.export")

ARCHIVE_MEDIA_TYPE = "application/zip"


class EmptySelectionError(ValueError):
    """No mission falls inside the requested date range."""


class NoOutputError(RuntimeError):
    """Every mission in range failed to render."""

    def __init__(self, failures: list[BatchItemFailure]) -> None:
        self.failures = failures
        super().__init__(f"failed to generate any reports ({len(failures)} failed)")


@dataclass(frozen=True)
class BatchItemFailure:
    mission_id: str
    error: str


@dataclass(frozen=True)
class BatchExport:
    file_name: str
    content: bytes
    media_type: str = ARCHIVE_MEDIA_TYPE
    entries: list[str] = field(default_factory=list)
    succeeded: list[str] = field(default_factory=list)
    failed: list[BatchItemFailure] = field(default_factory=list)


def filter_missions_in_range(missions: Iterable[MissionRecord], date_range: DateRange) -> list[MissionRecord]:
    """Keep missions dated within the range, both end days included, in their original order."""
    selected: list[MissionRecord] = []
    for mission in missions:
        day = mission_day(mission)
        if day is None:
            logger.warning(
                "mission_date_unparseable",
                extra={"event": "mission_date_unparseable", "mission_id": mission.id},
            )
            continue
        if date_range.contains(day):
            selected.append(mission)
    return selected


def _unique_entry_name(mission: MissionRecord, name: str, taken: set[str]) -> str:
    # Entry names stay unique within one archive.
    if name not in taken:
        return name
    suffix = sanitize_title(mission.id) or "copy"
    candidate = document_file_name(mission, suffix=suffix)
    counter = 2
    while candidate in taken:
        candidate = document_file_name(mission, suffix=f"{suffix}{counter}")
        counter += 1
    return candidate


class BatchExportAggregator:
    def __init__(self, *, generator: DocumentGenerator, codec: ZipArchiveCodec) -> None:
        require_dependency(generator, "document generator")
        require_dependency(codec, "archive codec")
        self.generator = generator
        self.codec = codec

    async def export_batch(
        self,
        missions: Iterable[MissionRecord],
        date_range: DateRange,
        config: ExportConfiguration,
        profile: UserProfile,
    ) -> BatchExport:
        selected = filter_missions_in_range(missions, date_range)
        if not selected:
            raise EmptySelectionError(
                f"no missions between {date_range.start.isoformat()} and {date_range.end.isoformat()}"
            )

        succeeded: list[str] = []
        failed: list[BatchItemFailure] = []

        # One rendered document in memory at a time.
        with self.codec.writer() as writer:
            for mission in selected:
                try:
                    document = await self.generator.render_mission(mission, config, profile)
                except (RenderError, TemplateUnavailableError) as exc:
                    logger.warning(
                        "batch_item_failed",
                        extra={"event": "batch_item_failed", "mission_id": mission.id, "error": str(exc)},
                    )
                    failed.append(BatchItemFailure(mission_id=mission.id, error=str(exc)))
                    continue

                writer.add(_unique_entry_name(mission, document.file_name, set(writer.names)), document.content)
                succeeded.append(mission.id)

            if not succeeded:
                raise NoOutputError(failed)
            entries = writer.names

        content = writer.getvalue()
        logger.info(
            "batch_export_completed",
            extra={
                "event": "batch_export_completed",
                "selected": len(selected),
                "succeeded": len(succeeded),
                "failed": len(failed),
                "archive_bytes": len(content),
            },
        )
        return BatchExport(
            file_name=batch_archive_name(date_range, extension=ARCHIVE_EXTENSION),
            content=content,
            entries=entries,
            succeeded=succeeded,
            failed=failed,
        )
