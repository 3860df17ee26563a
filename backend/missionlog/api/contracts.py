from pydantic import BaseModel, ConfigDict, Field

from missionlog.models import DateRange, ExportConfiguration, MissionRecord, UserProfile


class RenderDocumentRequest(BaseModel):
    mission: MissionRecord
    profile: UserProfile = Field(default_factory=UserProfile)
    config: ExportConfiguration = Field(default_factory=ExportConfiguration)


class BatchExportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    missions: list[MissionRecord] = Field(default_factory=list)
    date_range: DateRange = Field(..., alias="dateRange")
    profile: UserProfile = Field(default_factory=UserProfile)
    config: ExportConfiguration = Field(default_factory=ExportConfiguration)


class SelectTemplateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    template_id: str = Field(..., min_length=1, alias="templateId")
    config: ExportConfiguration = Field(default_factory=ExportConfiguration)


class DeleteTemplateRequest(BaseModel):
    config: ExportConfiguration = Field(default_factory=ExportConfiguration)
