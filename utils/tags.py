from __future__ import annotations

import re
from typing import Iterable, List, Mapping


_TAG_SPLIT_RE = re.compile(r"[,\uff0c\n]+")


def normalize_tags(raw: Iterable[str]) -> List[str]:
    """Strip tag names and drop blanks and repeats, keeping first-seen order.

    Case is preserved because tag weights are keyed by the exact tag name.
    """
    seen = set()
    tags: List[str] = []
    for part in raw or []:
        name = str(part).strip()
        if not name or name in seen:
            continue
        seen.add(name)
        tags.append(name)
    return tags


def parse_tag_names(raw: str) -> List[str]:
    if not raw:
        return []
    return normalize_tags(_TAG_SPLIT_RE.split(raw))


def max_tag_weight(tags: Iterable[str], tag_weights: Mapping[str, float], default: float = 1.0) -> float:
    """Largest user weight among the tags, never below the default baseline."""
    weight = default
    for tag in tags or []:
        w = tag_weights.get(tag)
        if w is not None and w > weight:
            weight = w
    return weight


def collect_tags(tag_lists: Iterable[Iterable[str]]) -> List[str]:
    names = set()
    for tags in tag_lists:
        names.update(tags or [])
    return sorted(names)
