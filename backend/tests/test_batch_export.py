from __future__ import annotations

import asyncio
from datetime import date
import io
import logging
import zipfile

import pytest

from missionlog.export import (
    BatchExportAggregator,
    DocumentGenerator,
    EmptySelectionError,
    GeneratedDocument,
    NoOutputError,
    filter_missions_in_range,
)
from missionlog.export.naming import batch_archive_name, document_file_name, sanitize_title
from missionlog.models import DateRange, ExportConfiguration, MissionRecord, UserProfile
from missionlog.rendering import DOCX_MEDIA_TYPE, RenderError, ZipArchiveCodec, build_default_renderer
from missionlog.templates import TemplateResolver

MARCH = DateRange(start=date(2024, 3, 1), end=date(2024, 3, 31))


def _mission(mission_id: str, day: str, title: str = "Patrol") -> MissionRecord:
    return MissionRecord(id=mission_id, title=title, location="Dock", date=day)


def _missions() -> list[MissionRecord]:
    return [
        _mission("m1", "2024-02-29", "Before"),
        _mission("m2", "2024-03-01", "First"),
        _mission("m3", "2024-03-15", "Middle"),
        _mission("m4", "2024-03-31", "Last"),
        _mission("m5", "2024-04-01", "After"),
    ]


class StubGenerator:
    """Returns a tiny fake document per mission, failing for the listed ids."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.rendered: list[str] = []

    async def render_mission(self, mission, config, profile) -> GeneratedDocument:
        if mission.id in self.failing:
            raise RenderError(f"template broke on {mission.id}")
        self.rendered.append(mission.id)
        return GeneratedDocument(
            file_name=document_file_name(mission),
            content=f"report for {mission.id}".encode("utf-8"),
            media_type=DOCX_MEDIA_TYPE,
            template_source="embedded",
        )


def _export(generator, missions, date_range=MARCH):
    aggregator = BatchExportAggregator(generator=generator, codec=ZipArchiveCodec())
    return asyncio.run(aggregator.export_batch(missions, date_range, ExportConfiguration(), UserProfile()))


def _archive_names(content: bytes) -> list[str]:
    with zipfile.ZipFile(io.BytesIO(content)) as archive:
        return archive.namelist()


def test_filter_keeps_inclusive_range_in_order() -> None:
    selected = filter_missions_in_range(_missions(), MARCH)

    assert [mission.id for mission in selected] == ["m2", "m3", "m4"]


def test_filter_skips_unparseable_dates(caplog) -> None:
    missions = [_mission("bad", "15/03/2024"), _mission("ok", "2024-03-15")]

    with caplog.at_level(logging.WARNING, logger="missionlog.export"):
        selected = filter_missions_in_range(missions, MARCH)

    assert [mission.id for mission in selected] == ["ok"]
    assert any(getattr(record, "mission_id", None) == "bad" for record in caplog.records)


def test_batch_contains_one_entry_per_mission_in_range() -> None:
    generator = StubGenerator()

    export = _export(generator, _missions())

    assert export.file_name == "Reports_2024-03-01_to_2024-03-31.zip"
    assert export.media_type == "application/zip"
    assert _archive_names(export.content) == [
        "2024-03-01_First.docx",
        "2024-03-15_Middle.docx",
        "2024-03-31_Last.docx",
    ]
    assert export.entries == _archive_names(export.content)
    assert export.succeeded == ["m2", "m3", "m4"]
    assert export.failed == []
    assert generator.rendered == ["m2", "m3", "m4"]


def test_failed_missions_are_skipped_and_reported() -> None:
    export = _export(StubGenerator(failing={"m2", "m4"}), _missions())

    assert _archive_names(export.content) == ["2024-03-15_Middle.docx"]
    assert export.succeeded == ["m3"]
    assert [failure.mission_id for failure in export.failed] == ["m2", "m4"]
    assert "template broke on m2" in export.failed[0].error


def test_all_failures_raise_no_output_error() -> None:
    with pytest.raises(NoOutputError) as exc_info:
        _export(StubGenerator(failing={"m2", "m3", "m4"}), _missions())

    assert [failure.mission_id for failure in exc_info.value.failures] == ["m2", "m3", "m4"]


def test_empty_range_raises_before_rendering() -> None:
    generator = StubGenerator()
    june = DateRange(start=date(2024, 6, 1), end=date(2024, 6, 30))

    with pytest.raises(EmptySelectionError):
        _export(generator, _missions(), june)
    assert generator.rendered == []


def test_colliding_file_names_get_mission_suffix() -> None:
    missions = [
        _mission("a-1", "2024-03-05", "Patrol"),
        _mission("b-2", "2024-03-05", "Patrol"),
        _mission("b-2", "2024-03-05", "Patrol"),
    ]

    export = _export(StubGenerator(), missions)

    assert _archive_names(export.content) == [
        "2024-03-05_Patrol.docx",
        "2024-03-05_Patrol_b2.docx",
        "2024-03-05_Patrol_b22.docx",
    ]


def test_batch_renders_real_documents() -> None:
    generator = DocumentGenerator(resolver=TemplateResolver(), renderer=build_default_renderer())

    export = _export(generator, _missions())

    with zipfile.ZipFile(io.BytesIO(export.content)) as archive:
        assert archive.testzip() is None
        for name in archive.namelist():
            with zipfile.ZipFile(io.BytesIO(archive.read(name))) as document:
                assert b"Dock" in document.read("word/document.xml")


def test_naming_helpers() -> None:
    assert sanitize_title("Night Watch / Sector 7-B (north)") == "NightWatchSector7Bnorth"
    assert sanitize_title("x" * 45) == "x" * 30
    assert sanitize_title("") == ""
    assert document_file_name(_mission("m", "2024-03-05", "")) == "2024-03-05_.docx"
    assert batch_archive_name(MARCH) == "Reports_2024-03-01_to_2024-03-31.zip"


def test_padded_dates_are_normalised_in_entry_names() -> None:
    missions = [_mission("p1", " 2024-03-02 ", "Tide Check")]

    export = _export(StubGenerator(), missions)

    assert _archive_names(export.content) == ["2024-03-02_TideCheck.docx"]
    assert document_file_name(_mission("p2", "\t2024-03-09\n", "Dock")) == "2024-03-09_Dock.docx"
