import math
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .problem import Problem

SNAPSHOT_VERSION = "1.0.0"


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tag_weights: Dict[str, float] = Field(default_factory=dict, alias="tagWeights")

    @field_validator("tag_weights")
    @classmethod
    def validate_weights(cls, v):
        cleaned = {}
        for tag, weight in v.items():
            name = tag.strip()
            if not name:
                raise ValueError("Tag names cannot be empty")
            if not math.isfinite(weight) or weight <= 0:
                raise ValueError(f"Weight for tag '{name}' must be a positive number")
            cleaned[name] = weight
        return cleaned


class Snapshot(BaseModel):
    """Versioned export document: problems, settings and the activity log."""
    model_config = ConfigDict(populate_by_name=True)

    version: str = SNAPSHOT_VERSION
    export_time: Optional[str] = Field(default=None, alias="exportTime")
    problems: Dict[str, Problem]
    settings: Optional[Settings] = None
    activity_log: Optional[Dict[str, int]] = Field(default=None, alias="activityLog")
