"""
Calendar grid cell model.
"""
from datetime import date
from pydantic import BaseModel


class CalendarDayState(BaseModel):
    """
    Display state of one cell in a month calendar grid.

    The period, predicted, ovulation and fertility tags are mutually
    exclusive; in_month and is_today are independent of them.
    """
    date: date
    in_month: bool = False
    is_today: bool = False
    is_period: bool = False
    is_predicted: bool = False
    is_fertility: bool = False
    is_ovulation: bool = False
    has_data: bool = False

    @property
    def date_key(self) -> str:
        """ISO formatted day string."""
        return self.date.isoformat()

    @property
    def day(self) -> int:
        """Day of the month."""
        return self.date.day

    @property
    def badge(self) -> str:
        """Name of the status tag shown on the cell, empty if none."""
        if self.is_period:
            return "period"
        if self.is_predicted:
            return "predicted"
        if self.is_ovulation:
            return "ovulation"
        if self.is_fertility:
            return "fertile"
        return ""
