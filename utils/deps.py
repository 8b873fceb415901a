from fastapi import HTTPException, Request, status

from config import load_config
from utils.engine import ReviewEngine, build_engine
from utils.errors import InvalidInputError, LeetCurveError, NotFoundError


def get_engine(request: Request) -> ReviewEngine:
    """FastAPI dependency returning the app's engine, building it on first use."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        engine = build_engine(load_config())
        request.app.state.engine = engine
    return engine


def to_http_error(exc: LeetCurveError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
