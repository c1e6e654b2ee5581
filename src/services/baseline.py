"""
Service module for merging declared cycle settings into computed statistics.

Logged history is often too sparse to trust, especially right after
onboarding. The baseline merge fills the gaps with the user's declared cycle
length, period length and last period start, without overriding statistics
that come from enough observed cycles.

Typical usage:
    stats = compute_cycle_stats(logs, now, config)
    stats = apply_baseline(settings, logs, stats, now, config)
    print(stats.current_cycle_day, stats.current_phase)
"""
from datetime import date, datetime, timedelta
from typing import NamedTuple, Optional, Sequence, Tuple
from aws_lambda_powertools import Logger

from src.models.config import EngineConfig
from src.models.log import DailyLogEntry
from src.models.stats import CycleStats
from src.models.user import UserCycleSettings
from src.services.constants import (
    DEFAULT_CYCLE_LENGTH,
    DEFAULT_PERIOD_LENGTH,
    MIN_RELIABLE_CYCLE_STARTS,
    STALE_CYCLE_TOLERANCE_DAYS
)
from src.services.dates import normalize_to_calendar_day
from src.services.phase import detect_phase
from src.services.statistics import apply_cycle_window, detect_cycle_starts, predict_cycle_window
from src.services.utils import round_half_up

logger = Logger()


class UpcomingPredictions(NamedTuple):
    """Next period and ovulation dates that lie ahead of today."""
    next_period_start: Optional[date]
    ovulation_date: Optional[date]
    ovulation_exact: bool
    ovulation_impossible: bool


def project_cycle_start(
    last_period_start: Optional[date],
    cycle_length: int,
    today: date
) -> Optional[Tuple[date, int]]:
    """
    Project the last period start forward by whole cycles up to today.

    Args:
        last_period_start: Known period start
        cycle_length: Cycle length used for the projection
        today: Reference day

    Returns:
        Tuple of (projected cycle start, cycle day of today), or None when
        there is nothing to project from. A start in the future yields cycle
        day 0.

    Example:
        >>> project_cycle_start(date(2026, 1, 1), 28, date(2026, 2, 3))
        (datetime.date(2026, 1, 29), 6)
    """
    if last_period_start is None or cycle_length <= 0:
        return None
    if today < last_period_start:
        return last_period_start, 0

    elapsed_days = (today - last_period_start).days
    cycles_elapsed = elapsed_days // cycle_length
    projected_start = last_period_start + timedelta(days=cycles_elapsed * cycle_length)
    return projected_start, elapsed_days % cycle_length + 1


def shift_cycle_start_to_future_ovulation(
    cycle_start: date,
    ovulation_date: date,
    cycle_length: int,
    today: date
) -> date:
    """Move a cycle start forward so its ovulation is not in the past."""
    if cycle_length <= 0 or ovulation_date >= today:
        return cycle_start
    lag_days = (today - ovulation_date).days
    shift_cycles = lag_days // cycle_length + 1
    return cycle_start + timedelta(days=shift_cycles * cycle_length)


def apply_baseline(
    settings: Optional[UserCycleSettings],
    logs: Sequence[DailyLogEntry],
    stats: CycleStats,
    now: datetime,
    config: Optional[EngineConfig] = None
) -> CycleStats:
    """
    Merge declared cycle settings into computed statistics.

    With fewer than MIN_RELIABLE_CYCLE_STARTS detected starts the declared
    cycle and period lengths replace the computed ones and the last period
    start falls back to the declared one when nothing was logged. Reliable
    data keeps its computed averages. Partner settings pass through unchanged.

    Args:
        settings: Settings of the user the stats belong to
        logs: Logs the stats were computed from
        stats: Output of compute_cycle_stats
        now: Current timestamp
        config: Engine configuration

    Returns:
        New CycleStats with the baseline applied
    """
    if settings is None or not settings.is_owner:
        return stats

    config = config or EngineConfig()
    tz = config.tz
    stats = stats.model_copy()

    detected_starts = detect_cycle_starts(logs, tz)
    latest_logged_start = detected_starts[-1] if detected_starts else None
    cycle_length = settings.cycle_length
    period_length = settings.period_length or DEFAULT_PERIOD_LENGTH

    reliable = len(detected_starts) >= MIN_RELIABLE_CYCLE_STARTS
    if not reliable:
        if cycle_length > 0:
            stats.average_cycle_length = float(cycle_length)
            stats.median_cycle_length = cycle_length
        stats.average_period_length = float(period_length)
        if latest_logged_start is not None:
            stats.last_period_start = latest_logged_start
        elif settings.last_period_start is not None:
            stats.last_period_start = normalize_to_calendar_day(settings.last_period_start, tz)
    elif latest_logged_start is not None:
        stats.last_period_start = latest_logged_start

    # TODO: confirm with product whether reliable stats with a stale next_period_start should be recomputed too
    if stats.last_period_start is not None and cycle_length > 0 and (
        not reliable or stats.next_period_start is None
    ):
        stats.next_period_start = stats.last_period_start + timedelta(days=cycle_length)
        predicted_period_length = round_half_up(stats.average_period_length) or period_length
        window = predict_cycle_window(
            stats.last_period_start,
            cycle_length,
            predicted_period_length,
            config.luteal_phase_days
        )
        anchored_on_logs = latest_logged_start is not None and stats.last_period_start == latest_logged_start
        apply_cycle_window(stats, window, exact_anchor=anchored_on_logs)

    today = normalize_to_calendar_day(now, tz)
    projection = project_cycle_start(stats.last_period_start, cycle_length, today)
    if projection is not None:
        stats.current_cycle_day = projection[1]
    elif stats.last_period_start is not None and today >= stats.last_period_start:
        stats.current_cycle_day = (today - stats.last_period_start).days + 1
    else:
        stats.current_cycle_day = 0

    stats.current_phase = detect_phase(stats, logs, today, config)

    logger.debug("Applied cycle baseline", extra={
        "user_id": settings.user_id,
        "reliable": reliable,
        "detected_starts": len(detected_starts),
        "current_cycle_day": stats.current_cycle_day
    })
    return stats


def cycle_reference_length(settings: Optional[UserCycleSettings], stats: CycleStats) -> int:
    """Cycle length to compare the current cycle day against."""
    if settings is not None and settings.is_owner:
        return settings.cycle_length
    if stats.median_cycle_length > 0:
        return stats.median_cycle_length
    if stats.average_cycle_length > 0:
        return round_half_up(stats.average_cycle_length)
    return DEFAULT_CYCLE_LENGTH


def owner_baseline_cycle_length(settings: Optional[UserCycleSettings]) -> int:
    """Declared cycle length drawn as the trend chart baseline, 0 for non-owners."""
    if settings is None or not settings.is_owner:
        return 0
    return settings.cycle_length


def predicted_period_length(settings: Optional[UserCycleSettings], stats: CycleStats) -> int:
    """Period length used for upcoming predictions."""
    if settings is not None and settings.is_owner:
        return settings.period_length
    return round_half_up(stats.average_period_length) or DEFAULT_PERIOD_LENGTH


def cycle_day_looks_long(current_day: int, reference_length: int) -> bool:
    """Check if the current cycle runs well past the reference length."""
    if current_day <= 0 or reference_length <= 0:
        return False
    return current_day > reference_length + STALE_CYCLE_TOLERANCE_DAYS


def cycle_data_looks_stale(last_period_start: Optional[date], today: date, reference_length: int) -> bool:
    """
    Check if no period has been logged for longer than a full cycle.

    Uses the raw day count from the last period start, without projection.
    """
    if last_period_start is None or reference_length <= 0 or today < last_period_start:
        return False
    raw_cycle_day = (today - last_period_start).days + 1
    return raw_cycle_day > reference_length


def upcoming_predictions(
    stats: CycleStats,
    settings: Optional[UserCycleSettings],
    today: date,
    cycle_length: int,
    config: Optional[EngineConfig] = None
) -> UpcomingPredictions:
    """
    Get the next period start and ovulation date as seen from today.

    The cycle is projected forward from the last period start, and moved one
    more cycle ahead when its ovulation has already passed, so both dates
    shown on a dashboard lie in the future even when logging stopped.
    """
    config = config or EngineConfig()
    fallback = UpcomingPredictions(
        stats.next_period_start,
        stats.ovulation_date,
        stats.ovulation_exact,
        stats.ovulation_impossible
    )

    projection = project_cycle_start(stats.last_period_start, cycle_length, today)
    if projection is None:
        return fallback

    cycle_start = projection[0]
    period_length = predicted_period_length(settings, stats)
    window = predict_cycle_window(cycle_start, cycle_length, period_length, config.luteal_phase_days)
    if window.calculable and window.ovulation_date < today:
        cycle_start = shift_cycle_start_to_future_ovulation(
            cycle_start,
            window.ovulation_date,
            cycle_length,
            today
        )
        window = predict_cycle_window(cycle_start, cycle_length, period_length, config.luteal_phase_days)

    next_period_start = cycle_start + timedelta(days=cycle_length)
    if not window.calculable:
        return UpcomingPredictions(next_period_start, None, False, True)
    return UpcomingPredictions(next_period_start, window.ovulation_date, window.exact, False)
