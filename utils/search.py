from __future__ import annotations

from typing import Iterable, List, Optional

from models.problem import Problem
from utils.tags import parse_tag_names


def normalize_query(raw: Optional[str]) -> Optional[str]:
    """Lower-cased, whitespace-collapsed search text.

    Returns:
        None if raw is empty/None,
        otherwise the normalized query string.
    """
    if raw is None:
        return None
    cleaned = " ".join(raw.split())
    if not cleaned:
        return None
    return cleaned.lower()


def matches_query(problem: Problem, query: Optional[str]) -> bool:
    if query is None:
        return True
    haystacks = (problem.title, problem.slug, problem.question_id)
    return any(query in (value or "").lower() for value in haystacks)


def filter_problems(
    problems: Iterable[Problem],
    query: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
) -> List[Problem]:
    """Substring search over title/slug/questionId; every requested tag must be present."""
    normalized = normalize_query(query)
    required = set(tags or [])
    results = []
    for problem in problems:
        if not matches_query(problem, normalized):
            continue
        if required and not required.issubset(problem.tags):
            continue
        results.append(problem)
    return results


def tags_from_param(raw: Optional[str]) -> List[str]:
    return parse_tag_names(raw or "")
