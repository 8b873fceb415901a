from fastapi import APIRouter, Depends

from models.settings import Settings
from utils.deps import get_engine

router = APIRouter()


@router.get("", response_model=Settings)
async def get_settings(engine=Depends(get_engine)):
    return engine.get_settings()


@router.put("", response_model=Settings)
async def save_settings(settings: Settings, engine=Depends(get_engine)):
    """Replace tag weights; every cached priority is recomputed."""
    return engine.save_settings(settings)
