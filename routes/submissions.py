from fastapi import APIRouter, Depends

from models.problem import SubmissionEvent
from models.results import IngestResult
from utils.deps import get_engine, to_http_error
from utils.errors import LeetCurveError

router = APIRouter()


@router.post("", response_model=IngestResult)
async def submission_accepted(event: SubmissionEvent, engine=Depends(get_engine)):
    """Record an accepted submission forwarded by the capture layer."""
    try:
        return engine.ingest_accepted_submission(event)
    except LeetCurveError as exc:
        raise to_http_error(exc)
