"""
Service module for building month calendar grids.

Each grid cell carries the status tags a calendar page paints: logged period,
predicted period, ovulation and fertility window. Predictions are projected
into any future month by shifting them forward in whole cycle lengths.

Typical usage:
    start, end = calendar_log_range(date(2026, 3, 1))
    logs = day_service.fetch_range(user_id, start, end)
    days = build_calendar_day_states(date(2026, 3, 1), logs, stats, now, config)
"""
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Set, Tuple

from src.models.calendar import CalendarDayState
from src.models.config import EngineConfig
from src.models.log import DailyLogEntry
from src.models.stats import CycleStats
from src.services.constants import (
    CALENDAR_RANGE_MONTHS_AFTER,
    CALENDAR_RANGE_MONTHS_BEFORE,
    CALENDAR_RANGE_PADDING_DAYS,
    DAYS_PER_WEEK,
    DEFAULT_CYCLE_LENGTH,
    DEFAULT_PERIOD_LENGTH
)
from src.services.dates import add_months, normalize_to_calendar_day
from src.services.statistics import latest_log_by_day
from src.services.utils import round_half_up


def _sunday_offset(day: date) -> int:
    """Days since the most recent Sunday (0 for a Sunday)."""
    return (day.weekday() + 1) % DAYS_PER_WEEK


def calendar_grid_bounds(month_start: date) -> Tuple[date, date]:
    """
    Get the first and last day of a Sunday-first month grid.

    Example:
        >>> calendar_grid_bounds(date(2026, 3, 1))
        (datetime.date(2026, 3, 1), datetime.date(2026, 4, 4))
    """
    month_start = month_start.replace(day=1)
    month_end = add_months(month_start, 1) - timedelta(days=1)
    grid_start = month_start - timedelta(days=_sunday_offset(month_start))
    grid_end = month_end + timedelta(days=DAYS_PER_WEEK - 1 - _sunday_offset(month_end))
    return grid_start, grid_end


def calendar_log_range(month_start: date) -> Tuple[date, date]:
    """
    Get the range of days a calendar page loads logs for.

    Covers enough history around the month to detect the cycles whose
    predictions reach into it.

    Example:
        >>> calendar_log_range(date(2026, 2, 1))
        (datetime.date(2025, 11, 23), datetime.date(2026, 5, 9))
    """
    month_start = month_start.replace(day=1)
    padding = timedelta(days=CALENDAR_RANGE_PADDING_DAYS)
    range_start = add_months(month_start, -CALENDAR_RANGE_MONTHS_BEFORE) - padding
    range_end = add_months(month_start, CALENDAR_RANGE_MONTHS_AFTER) + padding
    return range_start, range_end


def _day_span(start: date, length: int) -> Set[date]:
    return {start + timedelta(days=offset) for offset in range(length)}


def _inclusive_span(start: date, end: date) -> Set[date]:
    return _day_span(start, (end - start).days + 1) if start <= end else set()


def predicted_cycle_length(stats: CycleStats) -> int:
    """Cycle length used to project predictions into later cycles."""
    cycle_length = stats.median_cycle_length
    if cycle_length <= 0:
        cycle_length = round_half_up(stats.average_cycle_length)
    if cycle_length <= 0:
        cycle_length = DEFAULT_CYCLE_LENGTH
    return cycle_length


def predicted_period_length(stats: CycleStats) -> int:
    """Period length used to paint predicted period days."""
    return round_half_up(stats.average_period_length) or DEFAULT_PERIOD_LENGTH


def _first_visible_shift(anchor: date, grid_start: date, cycle_length: int) -> int:
    """
    Number of whole cycles the anchor can move forward before its cycle
    stops overlapping the grid start.
    """
    if anchor >= grid_start:
        return 0
    # One cycle of slack: markers of a shifted cycle may precede its anchor
    return max(0, (grid_start - anchor).days // cycle_length - 1)


def build_prediction_sets(
    stats: CycleStats,
    grid_start: date,
    grid_end: date
) -> Tuple[Set[date], Set[date], Set[date]]:
    """
    Build predicted period, ovulation and fertility day sets for a grid.

    The stored predictions describe the cycle nearest to now. For every later
    cycle they are moved forward by whole cycle lengths, so a month viewed far
    ahead still shows the markers of the cycle it contains.

    Args:
        stats: Cycle statistics snapshot
        grid_start: First visible day
        grid_end: Last visible day

    Returns:
        Tuple of (predicted period days, ovulation days, fertility days)
    """
    predicted: Set[date] = set()
    ovulation: Set[date] = set()
    fertility: Set[date] = set()

    cycle_length = predicted_cycle_length(stats)
    period_length = predicted_period_length(stats)
    has_window = stats.fertility_window_start is not None and stats.fertility_window_end is not None

    if stats.ovulation_date is not None:
        ovulation.add(stats.ovulation_date)
    if has_window:
        fertility |= _inclusive_span(stats.fertility_window_start, stats.fertility_window_end)

    if not stats.has_prediction:
        return predicted, ovulation, fertility

    shift_cycles = _first_visible_shift(stats.next_period_start, grid_start, cycle_length)
    while True:
        cycle_start = stats.next_period_start + timedelta(days=shift_cycles * cycle_length)
        if cycle_start > grid_end + timedelta(days=cycle_length):
            break

        if cycle_start <= grid_end:
            predicted |= _day_span(cycle_start, period_length)

        # Shifting by one more cycle lands the ovulation inside this cycle
        offset = timedelta(days=(shift_cycles + 1) * cycle_length)
        if stats.ovulation_date is not None and not stats.ovulation_impossible:
            ovulation.add(stats.ovulation_date + offset)
        if has_window and not stats.ovulation_impossible:
            fertility |= _inclusive_span(
                stats.fertility_window_start + offset,
                stats.fertility_window_end + offset
            )
        shift_cycles += 1

    return predicted, ovulation, fertility


def build_calendar_day_states(
    month_start: date,
    logs: Sequence[DailyLogEntry],
    stats: CycleStats,
    now: datetime,
    config: Optional[EngineConfig] = None
) -> List[CalendarDayState]:
    """
    Build the display state for every cell of a month grid.

    Args:
        month_start: Any day of the month to show
        logs: Logs covering at least the visible grid, duplicates allowed
        stats: Cycle statistics snapshot
        now: Current timestamp, marks today
        config: Engine configuration

    Returns:
        One CalendarDayState per grid day, Sunday-first, in date order

    Note:
        A day carries at most one of the period, predicted, ovulation and
        fertility tags, in that order of precedence.
    """
    config = config or EngineConfig()
    tz = config.tz
    month_start = month_start.replace(day=1)
    grid_start, grid_end = calendar_grid_bounds(month_start)

    latest_by_day = latest_log_by_day(logs, tz)
    has_data_by_day: Dict[date, bool] = {}
    for entry in logs:
        day = normalize_to_calendar_day(entry.date, tz)
        has_data_by_day[day] = has_data_by_day.get(day, False) or entry.has_data

    predicted, ovulation, fertility = build_prediction_sets(stats, grid_start, grid_end)
    today = normalize_to_calendar_day(now, tz)

    days = []
    day = grid_start
    while day <= grid_end:
        entry = latest_by_day.get(day)
        is_period = entry is not None and entry.is_period
        is_predicted = not is_period and day in predicted
        is_ovulation = not is_period and not is_predicted and day in ovulation
        is_fertility = not is_period and not is_predicted and not is_ovulation and day in fertility

        days.append(CalendarDayState(
            date=day,
            in_month=day.month == month_start.month,
            is_today=day == today,
            is_period=is_period,
            is_predicted=is_predicted,
            is_fertility=is_fertility,
            is_ovulation=is_ovulation,
            has_data=has_data_by_day.get(day, False)
        ))
        day += timedelta(days=1)

    return days
