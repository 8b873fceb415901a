import math
import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from utils.stages import MASTERED_STAGE
from utils.tags import normalize_tags, parse_tag_names


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Origin(str, Enum):
    COM = "com"
    CN = "cn"


ORIGIN_BASE_URLS = {
    Origin.COM.value: "https://leetcode.com",
    Origin.CN.value: "https://leetcode.cn",
}


def normalize_difficulty(value: Optional[str]) -> Optional[str]:
    """Case-normalize known difficulties; unknown values are kept as given."""
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    for difficulty in Difficulty:
        if cleaned.lower() == difficulty.value.lower():
            return difficulty.value
    return cleaned


def problem_url(origin: str, slug: str) -> str:
    base_url = ORIGIN_BASE_URLS.get(origin, ORIGIN_BASE_URLS[Origin.COM.value])
    return f"{base_url}/problems/{slug}/"


_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """'Two Sum II' -> 'two-sum-ii'; empty when nothing usable is left."""
    return _SLUG_STRIP_RE.sub("-", title.lower()).strip("-")


def origin_from_url(url: Optional[str]) -> str:
    if url and "leetcode.cn" in url:
        return Origin.CN.value
    return Origin.COM.value


class CodeEntry(BaseModel):
    code: str
    lang: str = ""
    time: int


class Problem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slug: str = Field(min_length=1)
    question_id: str = Field(default="", alias="questionId")
    title: str
    difficulty: str = Difficulty.MEDIUM.value
    tags: List[str] = Field(default_factory=list)
    url: str = ""
    origin: str = Origin.COM.value
    stage: int = Field(default=0, ge=0, le=MASTERED_STAGE)
    first_accepted_time: int
    last_review_time: int
    review_history: List[int] = Field(min_length=1)
    note: str = ""
    code: str = ""
    code_history: List[CodeEntry] = Field(default_factory=list, alias="codeHistory")
    priority_score: float = 0.0

    @field_validator("priority_score", mode="before")
    @classmethod
    def _missing_score(cls, v):
        # Cached value only; JSON snapshots carry null for mastered problems.
        return 0.0 if v is None else v

    @field_serializer("priority_score", when_used="json")
    def _finite_score(self, v: float) -> Optional[float]:
        return v if math.isfinite(v) else None


class SubmissionEvent(BaseModel):
    """Normalized accepted-submission payload from the capture layer.

    Only slug is required. timestamp defaults to the engine clock when absent.
    """
    model_config = ConfigDict(populate_by_name=True)

    slug: str = ""
    question_id: Optional[str] = Field(default=None, alias="questionId")
    title: Optional[str] = None
    difficulty: Optional[str] = None
    tags: Optional[List[str]] = None
    url: Optional[str] = None
    origin: Optional[str] = None
    timestamp: Optional[int] = None
    submitted_code: Optional[str] = Field(default=None, alias="submittedCode")
    submitted_lang: Optional[str] = Field(default=None, alias="submittedLang")

    @field_validator("slug", mode="before")
    @classmethod
    def _strip_slug(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("question_id", "title", "url", "origin", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("difficulty")
    @classmethod
    def _difficulty(cls, v):
        return normalize_difficulty(v)

    @field_validator("origin")
    @classmethod
    def _origin(cls, v):
        return v.lower() if v else v

    @field_validator("tags")
    @classmethod
    def _tags(cls, v):
        return normalize_tags(v) if v is not None else None


class NoteUpdate(BaseModel):
    note: Optional[str] = None
    code: Optional[str] = None


class NewProblem(BaseModel):
    """A problem entered by hand rather than captured from a submission."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    slug: Optional[str] = None
    question_id: str = Field(default="", alias="questionId")
    difficulty: str = Difficulty.MEDIUM.value
    tags: List[str] = Field(default_factory=list)
    url: Optional[str] = None
    note: str = ""

    @field_validator("title", "question_id", "note", mode="before")
    @classmethod
    def _strip(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator("slug", "url", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("difficulty")
    @classmethod
    def _difficulty(cls, v):
        return normalize_difficulty(v) or Difficulty.MEDIUM.value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        if isinstance(v, str):
            return parse_tag_names(v)
        return normalize_tags(v or [])
