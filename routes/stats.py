from typing import Dict, List

from fastapi import APIRouter, Depends

from models.results import Stats
from utils.deps import get_engine

router = APIRouter()


@router.get("/activity", response_model=Dict[str, int])
async def activity_log(engine=Depends(get_engine)):
    """Ingestion counts per local calendar day."""
    return engine.get_activity_log()


@router.get("/stats", response_model=Stats)
async def stats(engine=Depends(get_engine)):
    """Dashboard numbers: totals, due/mastered counts, distributions and streaks."""
    return engine.get_stats()


@router.get("/stages", response_model=List[Dict])
async def stages(engine=Depends(get_engine)):
    return engine.get_stages_info()
