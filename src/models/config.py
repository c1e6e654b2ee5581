"""
Engine configuration model.
"""
import os
from zoneinfo import ZoneInfo
from pydantic import BaseModel, Field

from src.services.constants import DEFAULT_LUTEAL_PHASE_DAYS, DEFAULT_TIMEZONE


class EngineConfig(BaseModel):
    """
    Explicit configuration passed into every engine call.

    Attributes:
        timezone: IANA timezone name used for calendar-day boundaries
        luteal_phase_days: Assumed days between ovulation and the next period
    """
    timezone: str = DEFAULT_TIMEZONE
    luteal_phase_days: int = Field(DEFAULT_LUTEAL_PHASE_DAYS, ge=1)

    @property
    def tz(self) -> ZoneInfo:
        """Resolved timezone object."""
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        """
        Build configuration from environment variables.

        Reads CYCLE_TIMEZONE and LUTEAL_PHASE_DAYS, falling back to defaults.
        """
        return cls(
            timezone=os.environ.get('CYCLE_TIMEZONE', DEFAULT_TIMEZONE),
            luteal_phase_days=int(os.environ.get('LUTEAL_PHASE_DAYS', DEFAULT_LUTEAL_PHASE_DAYS))
        )
