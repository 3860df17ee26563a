from __future__ import annotations

from dataclasses import asdict
from pathlib import Path

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from pydantic import ValidationError

from missionlog.api.contracts import DeleteTemplateRequest, SelectTemplateRequest
from missionlog.config import settings
from missionlog.models import ExportConfiguration
from missionlog.templates import UnknownTemplateError, add_template, delete_template, select_template
from missionlog.templates.inspection import inspect_template


def _serialize_config(config: ExportConfiguration) -> dict[str, object]:
    return config.model_dump(by_alias=True, mode="json")


def _parse_config(raw: str | None) -> ExportConfiguration:
    if raw is None or not raw.strip():
        return ExportConfiguration()
    try:
        return ExportConfiguration.model_validate_json(raw)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid export configuration: {exc.error_count()} error(s).") from exc


def build_templates_router() -> APIRouter:
    router = APIRouter()

    @router.post("/templates")
    async def upload_template(
        file: UploadFile = File(...),
        config: str | None = Form(default=None),
    ) -> dict[str, object]:
        current = _parse_config(config)
        incoming_name = file.filename or "template.docx"
        safe_name = Path(incoming_name).name or "template.docx"

        content = await file.read(settings.max_template_upload_bytes + 1)
        if len(content) > settings.max_template_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Template '{safe_name}' exceeds max size of {settings.max_template_upload_bytes} bytes.",
            )
        if not content:
            raise HTTPException(status_code=400, detail=f"Template '{safe_name}' is empty.")

        updated, descriptor = add_template(current, file_name=safe_name, content=content)
        inspection = inspect_template(content)
        return {
            "template": descriptor.model_dump(by_alias=True),
            "config": _serialize_config(updated),
            "inspection": {**asdict(inspection), "readable": inspection.readable},
        }

    @router.post("/templates/select")
    def select_template_endpoint(payload: SelectTemplateRequest) -> dict[str, object]:
        try:
            updated = select_template(payload.config, payload.template_id)
        except UnknownTemplateError as exc:
            raise HTTPException(status_code=404, detail=f"Template '{payload.template_id}' not found.") from exc
        return {"config": _serialize_config(updated)}

    @router.post("/templates/{template_id}/delete")
    def delete_template_endpoint(template_id: str, payload: DeleteTemplateRequest) -> dict[str, object]:
        try:
            updated = delete_template(payload.config, template_id)
        except UnknownTemplateError as exc:
            raise HTTPException(status_code=404, detail=f"Template '{template_id}' cannot be deleted.") from exc
        return {"config": _serialize_config(updated)}

    return router
