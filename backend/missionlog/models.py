from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TEMPLATE_ID = "default"

RENDER_FIELD_KEYS = (
    "title",
    "location",
    "date",
    "finishDate",
    "startTime",
    "finishTime",
    "notes",
    "fullName",
    "profession",
    "cni",
    "ppn",
)


class MissionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str = ""
    location: str = ""
    date: str = Field(..., description="Calendar date, YYYY-MM-DD")
    finish_date: str | None = Field(default=None, alias="finishDate")
    start_time: str | None = Field(default=None, alias="startTime")
    finish_time: str | None = Field(default=None, alias="finishTime")
    notes: str = ""
    created_at: int = Field(default=0, alias="createdAt")


class UserProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    full_name: str = Field(default="", alias="fullName")
    profession: str = ""
    cni: str = ""
    ppn: str = ""


class TemplateDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    data: str = Field(default="", description="Base64 encoded .docx archive")


class ExportConfiguration(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    active_template_id: str = Field(default=DEFAULT_TEMPLATE_ID, alias="activeTemplateId")
    custom_templates: tuple[TemplateDescriptor, ...] = Field(default=(), alias="customTemplates")


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


def build_render_fields(mission: MissionRecord, profile: UserProfile) -> dict[str, str]:
    """Flatten a mission and the reporter profile into the renderer's field mapping.

    Absent values become empty strings and ``finishDate`` falls back to ``date``.
    """
    return {
        "title": mission.title or "",
        "location": mission.location or "",
        "date": mission.date or "",
        "finishDate": mission.finish_date or mission.date or "",
        "startTime": mission.start_time or "",
        "finishTime": mission.finish_time or "",
        "notes": mission.notes or "",
        "fullName": profile.full_name or "",
        "profession": profile.profession or "",
        "cni": profile.cni or "",
        "ppn": profile.ppn or "",
    }
