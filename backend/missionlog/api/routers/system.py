from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import FileResponse, JSONResponse

from missionlog.config import settings
from missionlog.rendering import DOCX_MEDIA_TYPE
from missionlog.templates import BUILTIN_ASSET_PATH, TemplateUnavailableError, verify_embedded_template


router = APIRouter()


@router.get("/")
def root() -> dict[str, str]:
    return {"service": "missionlog-documents", "status": "running"}


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "environment": settings.app_env}


@router.get("/ready", response_model=None)
def ready() -> JSONResponse:
    checks: dict[str, object] = {}
    payload: dict[str, object] = {
        "status": "ready",
        "environment": settings.app_env,
        "checks": checks,
    }
    ok = True

    try:
        checks["embedded_template"] = {"ok": True, "size_bytes": verify_embedded_template()}
    except TemplateUnavailableError as exc:
        ok = False
        checks["embedded_template"] = {"ok": False, "error": str(exc)}

    asset_present = BUILTIN_ASSET_PATH.is_file()
    checks["builtin_asset"] = {"ok": asset_present, "path": BUILTIN_ASSET_PATH.name}
    checks["asset_fetch"] = {"enabled": bool(settings.template_asset_url), "url": settings.template_asset_url or None}

    if not ok:
        payload["status"] = "not_ready"
    return JSONResponse(status_code=200 if ok else 503, content=payload)


@router.get("/default.docx", response_model=None)
def default_template() -> FileResponse | JSONResponse:
    if not BUILTIN_ASSET_PATH.is_file():
        return JSONResponse(status_code=404, content={"detail": "Built-in template asset is not installed."})
    return FileResponse(BUILTIN_ASSET_PATH, media_type=DOCX_MEDIA_TYPE, filename="default.docx")
