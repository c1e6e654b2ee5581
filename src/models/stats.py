"""
Computed cycle statistics model.
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel

from src.models.phase import CyclePhase


class CycleStats(BaseModel):
    """
    Snapshot of cycle statistics and predictions.

    Rebuilt on every request from the current logs and settings and never
    persisted. Unset dates are None; a current_cycle_day of 0 means unknown.
    """
    average_cycle_length: float = 0
    median_cycle_length: int = 0
    average_period_length: float = 0
    last_period_start: Optional[date] = None
    next_period_start: Optional[date] = None
    ovulation_date: Optional[date] = None
    ovulation_exact: bool = False
    ovulation_impossible: bool = False
    fertility_window_start: Optional[date] = None
    fertility_window_end: Optional[date] = None
    current_cycle_day: int = 0
    current_phase: CyclePhase = CyclePhase.UNKNOWN

    @property
    def has_prediction(self) -> bool:
        """Check if a next period start has been predicted."""
        return self.next_period_start is not None
