from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from missionlog.api.contracts import BatchExportRequest, RenderDocumentRequest
from missionlog.api.services import BatchAggregatorGetter, DocumentGeneratorGetter, attachment_headers
from missionlog.config import settings
from missionlog.export import EmptySelectionError, NoOutputError


def build_documents_router(
    *,
    get_document_generator: DocumentGeneratorGetter,
    get_batch_aggregator: BatchAggregatorGetter,
) -> APIRouter:
    router = APIRouter()

    @router.post("/documents/render", response_model=None)
    async def render_document(payload: RenderDocumentRequest) -> Response:
        generator = get_document_generator()
        document = await generator.generate(payload.mission, payload.config, payload.profile)
        if document is None:
            raise HTTPException(
                status_code=422,
                detail="Failed to generate the report. Check the selected template and try again.",
            )

        headers = attachment_headers(document.file_name)
        headers["X-Template-Source"] = document.template_source
        headers["X-Template-Healed"] = "true" if document.healed else "false"
        return Response(content=document.content, media_type=document.media_type, headers=headers)

    @router.post("/exports/batch", response_model=None)
    async def export_batch(payload: BatchExportRequest) -> Response:
        if len(payload.missions) > settings.max_batch_missions:
            raise HTTPException(
                status_code=413,
                detail=f"Too many missions in one export (max {settings.max_batch_missions}).",
            )
        if payload.date_range.start > payload.date_range.end:
            raise HTTPException(status_code=422, detail="Date range start must not be after its end.")

        aggregator = get_batch_aggregator()
        try:
            export = await aggregator.export_batch(
                payload.missions,
                payload.date_range,
                payload.config,
                payload.profile,
            )
        except EmptySelectionError as exc:
            raise HTTPException(
                status_code=404,
                detail={"message": "No missions found in the selected date range.", "error": str(exc)},
            ) from exc
        except NoOutputError as exc:
            raise HTTPException(
                status_code=422,
                detail={
                    "message": "Failed to generate any reports.",
                    "failures": [asdict(failure) for failure in exc.failures],
                },
            ) from exc

        headers = attachment_headers(export.file_name)
        headers["X-Export-Succeeded"] = str(len(export.succeeded))
        headers["X-Export-Failed"] = str(len(export.failed))
        return Response(content=export.content, media_type=export.media_type, headers=headers)

    return router
