from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from utils.commands import dispatch
from utils.deps import get_engine

router = APIRouter()


@router.post("")
async def handle_message(message: Dict[str, Any] = Body(...), engine=Depends(get_engine)):
    """Message-style entry point mirroring the extension's runtime messages."""
    return dispatch(engine, message)
