"""
Service module for classifying a calendar day into a cycle phase.

The classifier is priority ordered: logged bleeding wins over predictions, and
predictions are only used when the cycle settings allow an ovulation estimate.
Every call is an independent classification against the given stats snapshot.

Typical usage:
    >>> stats = apply_baseline(settings, logs, compute_cycle_stats(logs, now, config), now, config)
    >>> phase = detect_phase(stats, logs, date(2026, 3, 1), config)
    >>> print(phase.value)
"""
from datetime import date, timedelta
from typing import Optional, Sequence

from src.models.config import EngineConfig
from src.models.log import DailyLogEntry
from src.models.phase import CyclePhase
from src.models.stats import CycleStats
from src.services.constants import DEFAULT_PERIOD_LENGTH
from src.services.dates import between_inclusive, normalize_to_calendar_day, same_calendar_day
from src.services.utils import round_half_up


def _logged_period_on(logs: Sequence[DailyLogEntry], target_day: date, config: EngineConfig) -> bool:
    tz = config.tz
    return any(
        entry.is_period and normalize_to_calendar_day(entry.date, tz) == target_day
        for entry in logs
    )


def detect_phase(
    stats: CycleStats,
    logs: Sequence[DailyLogEntry],
    target_day: date,
    config: Optional[EngineConfig] = None
) -> CyclePhase:
    """
    Classify a day into a cycle phase.

    Args:
        stats: Current cycle statistics snapshot
        logs: Logged entries; any period entry on target_day makes it menstrual
        target_day: Calendar day to classify
        config: Engine configuration used for day boundaries

    Returns:
        The CyclePhase for target_day

    Example:
        >>> detect_phase(stats, [], stats.ovulation_date)
        <CyclePhase.OVULATION: 'ovulation'>
    """
    config = config or EngineConfig()

    if _logged_period_on(logs, target_day, config):
        return CyclePhase.MENSTRUAL

    period_length = round_half_up(stats.average_period_length)
    if period_length <= 0:
        period_length = DEFAULT_PERIOD_LENGTH
    if stats.last_period_start is not None:
        period_end = stats.last_period_start + timedelta(days=period_length - 1)
        if between_inclusive(target_day, stats.last_period_start, period_end):
            return CyclePhase.MENSTRUAL

    if stats.ovulation_impossible:
        return CyclePhase.UNKNOWN

    if stats.ovulation_date is not None:
        if same_calendar_day(target_day, stats.ovulation_date):
            return CyclePhase.OVULATION
        if between_inclusive(target_day, stats.fertility_window_start, stats.fertility_window_end):
            return CyclePhase.FERTILE
        if target_day < stats.ovulation_date:
            return CyclePhase.FOLLICULAR
        return CyclePhase.LUTEAL

    return CyclePhase.UNKNOWN
