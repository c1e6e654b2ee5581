"""
Shared utility functions for cycle-related services.

These utilities are used across multiple service modules to handle common
operations like rounding averages and preparing logs for a given viewer.
"""
from typing import List

from src.models.log import DailyLogEntry
from src.models.user import UserCycleSettings


def round_half_up(value: float) -> int:
    """
    Round a non-negative value to the nearest int, halves rounding up.

    Example:
        >>> round_half_up(4.5)
        5
    """
    return int(value + 0.5)


def sanitize_log_for_partner(entry: DailyLogEntry) -> DailyLogEntry:
    """Copy of an entry with notes and symptoms removed."""
    return entry.model_copy(update={"notes": "", "symptom_ids": []})


def sanitize_logs_for_viewer(viewer: UserCycleSettings, logs: List[DailyLogEntry]) -> List[DailyLogEntry]:
    """
    Prepare logs for display to a viewer.

    Owners get their logs unchanged; partners only see period and flow data.

    Args:
        viewer: Settings of the user the logs are shown to
        logs: Logs to prepare

    Returns:
        List of logs safe to show to the viewer
    """
    if viewer.can_view_symptoms:
        return list(logs)
    return [sanitize_log_for_partner(entry) for entry in logs]
