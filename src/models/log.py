"""
Daily log model definition for tracking period days, flow, symptoms and notes.
"""
from datetime import datetime
from enum import Enum
from typing import List
from pydantic import BaseModel, Field


class FlowLevel(str, Enum):
    """
    Menstrual flow intensity recorded for a day.
    """
    NONE = "none"
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class DailyLogEntry(BaseModel):
    """
    Represents a single day's observation for a user.

    The date is a timestamp; stored values may carry a time-of-day component
    from clients in other offsets, so callers compare days through the date
    normalizer rather than by equality. The id is only a tie-breaker for
    duplicate rows on the same day (0 means not yet persisted).
    """
    user_id: str
    date: datetime
    is_period: bool = False
    flow: FlowLevel = FlowLevel.NONE
    symptom_ids: List[int] = Field(default_factory=list)
    notes: str = ""
    id: int = Field(0, ge=0)

    @property
    def is_persisted(self) -> bool:
        """Check if the entry was loaded from the store."""
        return self.id > 0

    @property
    def has_data(self) -> bool:
        """Check if any period, flow, symptom or note data is present."""
        if self.is_period:
            return True
        if self.symptom_ids:
            return True
        if self.notes.strip():
            return True
        return self.flow != FlowLevel.NONE
