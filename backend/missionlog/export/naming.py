from __future__ import annotations

from datetime import date
import re

from missionlog.models import DateRange, MissionRecord

DOCUMENT_EXTENSION = "docx"
ARCHIVE_EXTENSION = "zip"
MAX_TITLE_CHARS = 30

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")


def mission_day(mission: MissionRecord) -> date | None:
    try:
        return date.fromisoformat(mission.date.strip())
    except (AttributeError, ValueError):
        return None


def sanitize_title(title: str) -> str:
    return _UNSAFE_CHARS.sub("", title or "")[:MAX_TITLE_CHARS]


def document_file_name(mission: MissionRecord, *, suffix: str = "", extension: str = DOCUMENT_EXTENSION) -> str:
    day = mission_day(mission)
    day_text = day.isoformat() if day is not None else (mission.date or "").strip()
    base = f"{day_text}_{sanitize_title(mission.title)}"
    if suffix:
        base = f"{base}_{suffix}"
    return f"{base}.{extension}"


def batch_archive_name(date_range: DateRange, *, extension: str = ARCHIVE_EXTENSION) -> str:
    return f"Reports_{date_range.start.isoformat()}_to_{date_range.end.isoformat()}.{extension}"
