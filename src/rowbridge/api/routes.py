"""API routes for rowbridge."""

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse, PlainTextResponse
from pydantic import BaseModel, Field

from ..engine import ArchiveError, ImportReport, StreamInterruptError
from ..mapping import ConfigurationError

router = APIRouter()


def get_bridge():
    """Get the global bridge instance."""
    from .app import get_bridge as _get_bridge

    return _get_bridge()


class ExportRequest(BaseModel):
    """Request for an export."""

    query: dict[str, Any] = Field(default_factory=dict)


@router.get("/health")
async def health_check():
    """Health check endpoint with configuration summary."""
    from ..config import settings

    config = {
        "mapping_config_path": str(settings.mapping_config_path),
        "mapping_config_path_exists": settings.mapping_config_path.is_dir(),
        "col_separator": settings.col_separator,
        "export_page_size": settings.export_page_size,
        "export_workers": settings.export_workers,
        "import_workers": settings.import_workers,
    }

    return {
        "status": "ok",
        "service": "rowbridge",
        "config": config,
    }


@router.get("/configs")
async def list_configs():
    """List the available mapping configurations."""
    bridge = get_bridge()
    return {"configs": bridge.loader.available()}


@router.get("/dummy/{config_name}", response_class=PlainTextResponse)
async def get_dummy(config_name: str):
    """Download the CSV import template of a mapping configuration."""
    bridge = get_bridge()
    try:
        content = bridge.generate_dummy(config_name)
    except ConfigurationError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{config_name}.csv"'},
    )


@router.post("/import/{config_name}", response_model=ImportReport)
async def import_csv(config_name: str, request: Request):
    """Import a CSV payload (header line first) sent as the request body."""
    bridge = get_bridge()
    body = await request.body()
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Payload is not UTF-8: {e}")

    try:
        return await bridge.import_text(config_name, text)
    except ConfigurationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StreamInterruptError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/export/{config_name}")
async def export_csv(config_name: str, request: ExportRequest):
    """Export the matching documents and return the zip archive."""
    bridge = get_bridge()
    try:
        result = await bridge.export(config_name, request.query)
    except ConfigurationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ArchiveError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return FileResponse(
        str(result.archive_path),
        media_type="application/zip",
        filename=result.archive_path.name,
        headers={"X-Export-Total": str(result.total)},
    )
