from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .problem import Problem


class IngestOutcome(str, Enum):
    CREATED = "created"
    COOLDOWN = "cooldown"
    ADVANCED = "advanced"


class IngestResult(BaseModel):
    success: bool = True
    outcome: IngestOutcome
    message: str
    stage: int
    remaining_minutes: Optional[int] = None


class CommandResult(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    data: Any = None


class Stats(BaseModel):
    total: int = 0
    due: int = 0
    mastered: int = 0
    mastered_percent: float = 0.0
    by_difficulty: Dict[str, int] = Field(default_factory=dict)
    by_stage: List[int] = Field(default_factory=list)
    current_streak: int = 0
    longest_streak: int = 0
    urgent: List[Problem] = Field(default_factory=list)
