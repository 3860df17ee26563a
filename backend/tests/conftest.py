from __future__ import annotations

import io
from typing import Callable

from docx import Document
import pytest

from missionlog.models import MissionRecord, UserProfile

DocxFactory = Callable[..., bytes]


def _build_docx(
    *paragraphs: str,
    header: str | None = None,
    table: list[list[str]] | None = None,
) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for row_index, row in enumerate(table):
            for column_index, text in enumerate(row):
                grid.cell(row_index, column_index).text = text
    if header is not None:
        document.sections[0].header.paragraphs[0].text = header
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _read_paragraphs(content: bytes) -> list[str]:
    document = Document(io.BytesIO(content))
    return [paragraph.text for paragraph in document.paragraphs if paragraph.text]


@pytest.fixture
def docx_factory() -> DocxFactory:
    return _build_docx


@pytest.fixture
def read_paragraphs() -> Callable[[bytes], list[str]]:
    return _read_paragraphs


@pytest.fixture
def mission() -> MissionRecord:
    return MissionRecord(
        id="m-1",
        title="Harbour Patrol #3",
        location="Port Nord",
        date="2024-03-01",
        startTime="08:00",
        finishTime="16:30",
        notes="",
        createdAt=1709280000000,
    )


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(fullName="Dana Reyes", profession="Inspector", cni="X1234567", ppn="PPN-88")
