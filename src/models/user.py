"""
User cycle settings model for the cycle tracking engine.
"""
from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from src.services.constants import (
    DEFAULT_CYCLE_LENGTH,
    DEFAULT_PERIOD_LENGTH,
    MIN_CYCLE_LENGTH,
    MAX_CYCLE_LENGTH,
    MIN_PERIOD_LENGTH,
    MAX_PERIOD_LENGTH
)


class UserRole(str, Enum):
    """
    Account role. Owners log their own cycle, partners get a shared read view.
    """
    OWNER = "owner"
    PARTNER = "partner"


class UserCycleSettings(BaseModel):
    """
    Represents the cycle settings a user declared during onboarding or later
    in their settings.
    """
    user_id: str
    cycle_length: int = Field(DEFAULT_CYCLE_LENGTH, ge=MIN_CYCLE_LENGTH, le=MAX_CYCLE_LENGTH)
    period_length: int = Field(DEFAULT_PERIOD_LENGTH, ge=MIN_PERIOD_LENGTH, le=MAX_PERIOD_LENGTH)
    auto_period_fill: bool = True
    last_period_start: Optional[date] = None
    role: UserRole = UserRole.OWNER

    @property
    def is_owner(self) -> bool:
        """Check if computed baselines apply to this user."""
        return self.role == UserRole.OWNER

    @property
    def can_view_symptoms(self) -> bool:
        """Check if symptoms and notes may be shown to this user."""
        return self.role == UserRole.OWNER
