from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from models.problem import NewProblem, NoteUpdate, Problem
from utils.deps import get_engine, to_http_error
from utils.errors import LeetCurveError
from utils.search import tags_from_param

router = APIRouter()


@router.get("", response_model=Dict[str, Problem])
async def all_problems(engine=Depends(get_engine)):
    """Every tracked problem keyed by slug, with freshly computed priorities."""
    return engine.get_all_problems()


@router.post("", response_model=Problem)
async def add_problem(new: NewProblem, engine=Depends(get_engine)):
    """Track a problem entered by hand; the slug comes from the title unless given."""
    return engine.add_problem(new)


@router.get("/queue", response_model=List[Problem])
async def review_queue(engine=Depends(get_engine)):
    return engine.get_review_queue()


@router.get("/search", response_model=List[Problem])
async def search_problems(
    q: Optional[str] = Query(None),
    tags: Optional[str] = Query(None, description="Comma-separated; all must match"),
    engine=Depends(get_engine),
):
    return engine.search_problems(q, tags_from_param(tags))


@router.get("/tags", response_model=List[str])
async def all_tags(engine=Depends(get_engine)):
    return engine.get_all_tags()


@router.get("/mastered", response_model=List[Problem])
async def mastered_problems(engine=Depends(get_engine)):
    return engine.get_mastered_problems()


@router.get("/recent", response_model=List[Problem])
async def recent_activity(engine=Depends(get_engine)):
    return engine.get_recent_activity()


@router.get("/{slug}", response_model=Problem)
async def get_problem(slug: str, engine=Depends(get_engine)):
    try:
        return engine.get_problem(slug)
    except LeetCurveError as exc:
        raise to_http_error(exc)


@router.get("/{slug}/due", response_model=Dict[str, Any])
async def due_info(slug: str, engine=Depends(get_engine)):
    return engine.get_due_info(slug)


@router.patch("/{slug}/note", response_model=Problem)
async def update_note(slug: str, update: NoteUpdate, engine=Depends(get_engine)):
    try:
        return engine.update_note(slug, note=update.note, code=update.code)
    except LeetCurveError as exc:
        raise to_http_error(exc)


@router.post("/{slug}/reset", response_model=Problem)
async def reset_problem(slug: str, engine=Depends(get_engine)):
    try:
        return engine.reset_problem(slug)
    except LeetCurveError as exc:
        raise to_http_error(exc)


@router.delete("/{slug}")
async def delete_problem(slug: str, engine=Depends(get_engine)):
    engine.delete_problem(slug)
    return {"success": True}
