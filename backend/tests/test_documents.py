from __future__ import annotations

import asyncio
import base64
import logging

import pytest

from missionlog.export import DocumentGenerator
from missionlog.models import ExportConfiguration, TemplateDescriptor
from missionlog.rendering import MissingDependencyError, RenderError, build_default_renderer
from missionlog.templates import TemplateResolver


def _generator() -> DocumentGenerator:
    return DocumentGenerator(resolver=TemplateResolver(), renderer=build_default_renderer())


def _custom(content: bytes) -> ExportConfiguration:
    return ExportConfiguration(
        activeTemplateId="tpl000001",
        customTemplates=[
            TemplateDescriptor(id="tpl000001", name="Field", data=base64.b64encode(content).decode("ascii")),
        ],
    )


def test_embedded_template_renders_mission_and_profile(mission, profile, read_paragraphs) -> None:
    document = asyncio.run(_generator().render_mission(mission, ExportConfiguration(), profile))

    assert document.file_name == "2024-03-01_HarbourPatrol3.docx"
    assert document.template_source == "embedded"
    assert document.healed is False
    paragraphs = read_paragraphs(document.content)
    assert "Mission: Harbour Patrol #3" in paragraphs
    assert "Date: 2024-03-01 to 2024-03-01" in paragraphs
    assert "Time: 08:00 to 16:30" in paragraphs
    assert "Name: Dana Reyes" in paragraphs
    assert "CNI: X1234567" in paragraphs
    assert "Notes" not in paragraphs


def test_notes_section_appears_when_notes_exist(mission, profile, read_paragraphs) -> None:
    with_notes = mission.model_copy(update={"notes": "Gate 4 damaged\nReported to harbour master"})

    document = asyncio.run(_generator().render_mission(with_notes, ExportConfiguration(), profile))

    paragraphs = read_paragraphs(document.content)
    assert "Notes" in paragraphs
    assert "Gate 4 damaged\nReported to harbour master" in paragraphs


def test_custom_template_is_used(mission, profile, docx_factory, read_paragraphs) -> None:
    config = _custom(docx_factory("Custom layout for (title) by (fullName)"))

    document = asyncio.run(_generator().render_mission(mission, config, profile))

    assert document.template_source == "custom"
    assert read_paragraphs(document.content) == ["Custom layout for Harbour Patrol #3 by Dana Reyes"]


def test_corrupt_custom_template_heals_with_embedded_copy(mission, profile, read_paragraphs, caplog) -> None:
    config = _custom(b"this was never a word document")

    with caplog.at_level(logging.WARNING, logger="missionlog.export"):
        document = asyncio.run(_generator().render_mission(mission, config, profile))

    assert document.healed is True
    assert document.template_source == "embedded"
    assert "Mission: Harbour Patrol #3" in read_paragraphs(document.content)
    assert any(getattr(record, "event", None) == "template_corrupt_using_fallback" for record in caplog.records)


def test_template_syntax_errors_are_not_healed(mission, profile, docx_factory) -> None:
    config = _custom(docx_factory("{#notes}", "Notes never closed"))

    with pytest.raises(RenderError):
        asyncio.run(_generator().render_mission(mission, config, profile))


def test_generate_returns_none_and_logs_on_failure(mission, profile, docx_factory, caplog) -> None:
    config = _custom(docx_factory("Unclosed (title"))

    with caplog.at_level(logging.ERROR, logger="missionlog.export"):
        document = asyncio.run(_generator().generate(mission, config, profile))

    assert document is None
    failures = [record for record in caplog.records if getattr(record, "event", None) == "document_generation_failed"]
    assert failures and failures[-1].mission_id == "m-1"


def test_generator_requires_collaborators() -> None:
    with pytest.raises(MissingDependencyError):
        DocumentGenerator(resolver=None, renderer=build_default_renderer())  # type: ignore[arg-type]
