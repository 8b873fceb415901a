from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from utils.deps import get_engine, to_http_error
from utils.errors import LeetCurveError

router = APIRouter()


@router.get("/export")
async def export_data(engine=Depends(get_engine)):
    data = engine.export_data()
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    filename = f"leetcurve-export-{timestamp}.json"
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return JSONResponse(content=data, headers=headers)


@router.post("/import")
async def import_data(snapshot: Dict[str, Any] = Body(...), engine=Depends(get_engine)):
    """Replace all stored data with an exported snapshot (all-or-nothing)."""
    try:
        count = engine.import_data(snapshot)
    except LeetCurveError as exc:
        raise to_http_error(exc)
    return {"success": True, "message": f"Imported {count} problems"}


@router.post("/clear")
async def clear_all_data(engine=Depends(get_engine)):
    """Delete every problem, tag weight and activity entry."""
    engine.clear_all()
    return {"success": True}
