"""In-process message dispatch for the capture layer.

Messages look like {"type": "SUBMISSION_ACCEPTED", "data": {...}}. dispatch()
never raises: every failure comes back as {"success": False, "error": kind}.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from pydantic import ValidationError

from models.problem import NewProblem, NoteUpdate, SubmissionEvent
from models.results import CommandResult
from models.settings import Settings
from utils.engine import ReviewEngine
from utils.errors import InvalidInputError, LeetCurveError, StorageError

logger = logging.getLogger(__name__)


def _dump(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    return value


def _require_slug(data: Dict[str, Any]) -> str:
    slug = data.get("slug")
    if not isinstance(slug, str) or not slug.strip():
        raise InvalidInputError("slug must be a non-empty string")
    return slug.strip()


def _submission_accepted(engine: ReviewEngine, data: Dict[str, Any]) -> CommandResult:
    result = engine.ingest_accepted_submission(SubmissionEvent.model_validate(data))
    return CommandResult(success=True, message=result.message, data=_dump(result))


def _add_problem(engine: ReviewEngine, data: Dict[str, Any]) -> CommandResult:
    problem = engine.add_problem(NewProblem.model_validate(data))
    return CommandResult(success=True, message=f"Added {problem.slug}", data=_dump(problem))


def _clear_all_data(engine: ReviewEngine, data: Dict[str, Any]) -> CommandResult:
    engine.clear_all()
    return CommandResult(success=True)


def _update_note(engine: ReviewEngine, data: Dict[str, Any]) -> CommandResult:
    update = NoteUpdate.model_validate(data)
    engine.update_note(_require_slug(data), note=update.note, code=update.code)
    return CommandResult(success=True)


def _delete_problem(engine: ReviewEngine, data: Dict[str, Any]) -> CommandResult:
    engine.delete_problem(_require_slug(data))
    return CommandResult(success=True)


def _reset_problem(engine: ReviewEngine, data: Dict[str, Any]) -> CommandResult:
    engine.reset_problem(_require_slug(data))
    return CommandResult(success=True)


def _save_settings(engine: ReviewEngine, data: Dict[str, Any]) -> CommandResult:
    engine.save_settings(Settings.model_validate(data))
    return CommandResult(success=True)


def _import_data(engine: ReviewEngine, data: Dict[str, Any]) -> CommandResult:
    count = engine.import_data(data)
    return CommandResult(success=True, message=f"Imported {count} problems")


def _data(fn: Callable[[ReviewEngine], Any]) -> Callable[[ReviewEngine, Dict[str, Any]], CommandResult]:
    def handler(engine: ReviewEngine, data: Dict[str, Any]) -> CommandResult:
        return CommandResult(success=True, data=_dump(fn(engine)))
    return handler


HANDLERS: Dict[str, Callable[[ReviewEngine, Dict[str, Any]], CommandResult]] = {
    "SUBMISSION_ACCEPTED": _submission_accepted,
    "ADD_PROBLEM": _add_problem,
    "GET_REVIEW_QUEUE": _data(lambda engine: engine.get_review_queue()),
    "GET_ALL_PROBLEMS": _data(lambda engine: engine.get_all_problems()),
    "UPDATE_NOTE": _update_note,
    "DELETE_PROBLEM": _delete_problem,
    "RESET_PROBLEM": _reset_problem,
    "GET_SETTINGS": _data(lambda engine: engine.get_settings()),
    "SAVE_SETTINGS": _save_settings,
    "GET_ACTIVITY_LOG": _data(lambda engine: engine.get_activity_log()),
    "GET_STAGES_INFO": _data(lambda engine: engine.get_stages_info()),
    "GET_MASTERED_PROBLEMS": _data(lambda engine: engine.get_mastered_problems()),
    "GET_RECENT_ACTIVITY": _data(lambda engine: engine.get_recent_activity()),
    "GET_STATS": _data(lambda engine: engine.get_stats()),
    "EXPORT_DATA": _data(lambda engine: engine.export_data()),
    "IMPORT_DATA": _import_data,
    "CLEAR_ALL_DATA": _clear_all_data,
}


def dispatch(engine: ReviewEngine, message: Any) -> Dict[str, Any]:
    """Route one message to the engine and return a structured result."""
    if not isinstance(message, dict):
        return CommandResult(success=False, error=InvalidInputError.kind, message="Message must be an object").model_dump()
    message_type = message.get("type")
    handler = HANDLERS.get(message_type)
    if handler is None:
        return CommandResult(
            success=False,
            error=InvalidInputError.kind,
            message=f"Unknown message type: {message_type}",
        ).model_dump()
    data = message.get("data") or {}
    if not isinstance(data, dict):
        return CommandResult(success=False, error=InvalidInputError.kind, message="data must be an object").model_dump()
    try:
        result = handler(engine, data)
    except ValidationError as exc:
        result = CommandResult(success=False, error=InvalidInputError.kind, message=str(exc))
    except LeetCurveError as exc:
        result = CommandResult(success=False, error=exc.kind, message=str(exc))
    except Exception as exc:
        logger.exception("Unhandled error while handling %s", message_type)
        result = CommandResult(success=False, error=StorageError.kind, message=str(exc))
    return result.model_dump()
