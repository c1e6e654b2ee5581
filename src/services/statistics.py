"""
Statistics calculation service for cycle tracking data.

This module detects cycle starts from daily logs and calculates cycle lengths,
period lengths and the ovulation and fertility window predictions derived
from them.

Typical usage:
    config = EngineConfig.from_env()
    stats = compute_cycle_stats(logs, datetime.now(timezone.utc), config)
    print(stats.next_period_start, stats.ovulation_date)
"""
from datetime import date, datetime, timedelta, tzinfo
from statistics import mean
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple
from aws_lambda_powertools import Logger

from src.models.config import EngineConfig
from src.models.log import DailyLogEntry
from src.models.stats import CycleStats
from src.services.constants import (
    DEFAULT_CYCLE_LENGTH,
    DEFAULT_PERIOD_LENGTH,
    FERTILITY_DAYS_AFTER_OVULATION,
    FERTILITY_DAYS_BEFORE_OVULATION,
    MAX_PERIOD_GAP_DAYS,
    MIN_LUTEAL_PHASE_DAYS,
    MIN_RELIABLE_TREND_POINTS,
    RECENT_CYCLES_FOR_AVERAGES
)
from src.services.dates import normalize_to_calendar_day, to_utc
from src.services.phase import detect_phase
from src.services.utils import round_half_up

logger = Logger()


class CycleWindow(NamedTuple):
    """Ovulation and fertility window prediction for one cycle."""
    ovulation_date: Optional[date]
    fertility_window_start: Optional[date]
    fertility_window_end: Optional[date]
    exact: bool
    calculable: bool


IMPOSSIBLE_WINDOW = CycleWindow(None, None, None, False, False)


def _supersedes(candidate: DailyLogEntry, current: DailyLogEntry) -> bool:
    """Check if candidate is more authoritative than current for the same day."""
    candidate_ts = to_utc(candidate.date)
    current_ts = to_utc(current.date)
    if candidate_ts != current_ts:
        return candidate_ts > current_ts
    return candidate.id > current.id


def latest_log_by_day(logs: Sequence[DailyLogEntry], tz: tzinfo) -> Dict[date, DailyLogEntry]:
    """
    Pick the authoritative entry for each local calendar day.

    The store may hold several rows for one day. The row with the latest
    timestamp wins; equal timestamps are resolved by the highest id.

    Args:
        logs: Log entries in any order
        tz: Timezone defining day boundaries

    Returns:
        Mapping of calendar day to its authoritative entry
    """
    latest: Dict[date, DailyLogEntry] = {}
    for entry in logs:
        day = normalize_to_calendar_day(entry.date, tz)
        existing = latest.get(day)
        if existing is None or _supersedes(entry, existing):
            latest[day] = entry
    return latest


def deduplicate_logs(logs: Sequence[DailyLogEntry], tz: tzinfo) -> List[Tuple[date, DailyLogEntry]]:
    """Authoritative entries as (day, entry) pairs sorted by day."""
    return sorted(latest_log_by_day(logs, tz).items(), key=lambda item: item[0])


def find_period_ranges(
    logs: Sequence[DailyLogEntry],
    tz: tzinfo,
    max_gap: int = MAX_PERIOD_GAP_DAYS
) -> List[Tuple[date, date]]:
    """
    Find start and end dates for each period.

    Args:
        logs: Log entries in any order, duplicates allowed
        tz: Timezone defining day boundaries
        max_gap: Maximum number of missing days allowed within the same period

    Returns:
        List of tuples containing (period_start_date, period_end_date)

    Note:
        Period days are considered continuous if the gap between them is not
        more than max_gap days. This handles a forgotten day in the middle of
        a period without splitting it into two cycles.
    """
    period_ranges = []
    period_start = None
    last_date = None

    for day, entry in deduplicate_logs(logs, tz):
        if not entry.is_period:
            continue
        if period_start is None:
            period_start = day
            last_date = day
            continue

        days_gap = (day - last_date).days - 1
        if days_gap <= max_gap:
            last_date = day
        else:
            period_ranges.append((period_start, last_date))
            period_start = day
            last_date = day

    if period_start is not None:
        period_ranges.append((period_start, last_date))

    return period_ranges


def detect_cycle_starts(logs: Sequence[DailyLogEntry], tz: tzinfo) -> List[date]:
    """
    Detect distinct period start dates.

    Example:
        >>> starts = detect_cycle_starts(logs, ZoneInfo("UTC"))
        >>> reliable = len(starts) >= MIN_RELIABLE_CYCLE_STARTS
    """
    return [start for start, _ in find_period_ranges(logs, tz)]


def cycle_lengths(starts: Sequence[date]) -> List[int]:
    """Days between consecutive cycle starts."""
    return [(starts[i] - starts[i - 1]).days for i in range(1, len(starts))]


def average_cycle_length(lengths: Sequence[int]) -> float:
    """Arithmetic mean of cycle lengths, 0 when there are none."""
    return float(mean(lengths)) if lengths else 0.0


def median_cycle_length(lengths: Sequence[int]) -> int:
    """
    Median of cycle lengths, 0 when there are none.

    An even count averages the two middle values and rounds half up.
    """
    if not lengths:
        return 0
    ordered = sorted(lengths)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[mid]
    return round_half_up((ordered[mid - 1] + ordered[mid]) / 2)


def predict_cycle_window(
    cycle_start: date,
    cycle_length: int,
    period_length: int,
    luteal_phase_days: int
) -> CycleWindow:
    """
    Predict ovulation and the fertility window for a cycle.

    Ovulation is placed luteal_phase_days before the next period start. When
    that lands on or before the last period day, ovulation is moved to the
    day after the period if at least MIN_LUTEAL_PHASE_DAYS remain before the
    next period; such a prediction is not exact. Otherwise the cycle and
    period lengths are incompatible and no dates are returned.

    Args:
        cycle_start: First day of the cycle's period
        cycle_length: Days until the next period start
        period_length: Days of bleeding at the start of the cycle
        luteal_phase_days: Assumed days between ovulation and next period

    Returns:
        CycleWindow with ovulation and fertility bounds

    Example:
        >>> window = predict_cycle_window(date(2026, 2, 10), 28, 5, 14)
        >>> window.ovulation_date, window.exact
        (datetime.date(2026, 2, 24), True)
    """
    if cycle_length <= 0:
        return IMPOSSIBLE_WINDOW
    if period_length <= 0:
        period_length = DEFAULT_PERIOD_LENGTH

    next_start = cycle_start + timedelta(days=cycle_length)
    period_end = cycle_start + timedelta(days=period_length - 1)
    ovulation = next_start - timedelta(days=luteal_phase_days)
    exact = True

    if ovulation <= period_end:
        ovulation = period_end + timedelta(days=1)
        exact = False
        if (next_start - ovulation).days < MIN_LUTEAL_PHASE_DAYS:
            return IMPOSSIBLE_WINDOW

    fertility_start = max(
        ovulation - timedelta(days=FERTILITY_DAYS_BEFORE_OVULATION),
        period_end + timedelta(days=1)
    )
    fertility_end = min(
        ovulation + timedelta(days=FERTILITY_DAYS_AFTER_OVULATION),
        next_start - timedelta(days=1)
    )
    return CycleWindow(ovulation, fertility_start, fertility_end, exact, True)


def apply_cycle_window(stats: CycleStats, window: CycleWindow, exact_anchor: bool = True) -> None:
    """
    Copy a window prediction onto stats.

    Args:
        stats: Stats to update in place
        window: Prediction to copy
        exact_anchor: Whether the cycle start came from detected log data
    """
    if not window.calculable:
        stats.ovulation_date = None
        stats.ovulation_exact = False
        stats.ovulation_impossible = True
        stats.fertility_window_start = None
        stats.fertility_window_end = None
        return

    stats.ovulation_date = window.ovulation_date
    stats.ovulation_exact = window.exact and exact_anchor
    stats.ovulation_impossible = False
    stats.fertility_window_start = window.fertility_window_start
    stats.fertility_window_end = window.fertility_window_end


def recent_period_lengths(period_ranges: Sequence[Tuple[date, date]]) -> List[int]:
    """Inclusive lengths of the most recent periods."""
    recent = period_ranges[-RECENT_CYCLES_FOR_AVERAGES:]
    return [(end - start).days + 1 for start, end in recent]


def compute_cycle_stats(
    logs: Sequence[DailyLogEntry],
    now: datetime,
    config: Optional[EngineConfig] = None
) -> CycleStats:
    """
    Calculate cycle statistics and predictions from logged data alone.

    Args:
        logs: Log entries in any order, duplicates allowed
        now: Current timestamp
        config: Engine configuration (timezone, luteal phase length)

    Returns:
        CycleStats snapshot; fields stay unset when there is no period data
    """
    config = config or EngineConfig()
    tz = config.tz
    stats = CycleStats()
    if not logs:
        return stats

    period_ranges = find_period_ranges(logs, tz)
    if not period_ranges:
        return stats

    starts = [start for start, _ in period_ranges]
    recent_lengths = cycle_lengths(starts)[-RECENT_CYCLES_FOR_AVERAGES:]
    if recent_lengths:
        stats.average_cycle_length = average_cycle_length(recent_lengths)
        stats.median_cycle_length = median_cycle_length(recent_lengths)

    period_lengths = recent_period_lengths(period_ranges)
    stats.average_period_length = float(mean(period_lengths))

    stats.last_period_start = starts[-1]
    prediction_cycle_length = stats.median_cycle_length or DEFAULT_CYCLE_LENGTH
    stats.next_period_start = stats.last_period_start + timedelta(days=prediction_cycle_length)

    window = predict_cycle_window(
        stats.last_period_start,
        prediction_cycle_length,
        round_half_up(stats.average_period_length),
        config.luteal_phase_days
    )
    apply_cycle_window(stats, window)

    today = normalize_to_calendar_day(now, tz)
    if today >= stats.last_period_start:
        stats.current_cycle_day = (today - stats.last_period_start).days + 1

    stats.current_phase = detect_phase(stats, logs, today, config)

    logger.debug("Calculated cycle statistics", extra={
        "cycle_starts": len(starts),
        "median_cycle_length": stats.median_cycle_length,
        "average_period_length": stats.average_period_length,
        "ovulation_impossible": stats.ovulation_impossible
    })
    return stats


def completed_cycle_trend_lengths(
    logs: Sequence[DailyLogEntry],
    now: datetime,
    config: Optional[EngineConfig] = None
) -> List[int]:
    """
    Lengths of cycles that have already been closed by a later start.

    Cycles whose closing start is today or later are left out, so a period
    logged in advance does not show up as a finished cycle.
    """
    config = config or EngineConfig()
    starts = detect_cycle_starts(logs, config.tz)
    today = normalize_to_calendar_day(now, config.tz)

    lengths = []
    for index in range(1, len(starts)):
        if starts[index] >= today:
            break
        lengths.append((starts[index] - starts[index - 1]).days)
    return lengths


def trim_trailing_trend_lengths(lengths: Sequence[int], max_points: int) -> List[int]:
    """Keep the last max_points lengths; 0 or less keeps them all."""
    if max_points <= 0 or len(lengths) <= max_points:
        return list(lengths)
    return list(lengths[-max_points:])


class StatsFlags(NamedTuple):
    """Which parts of the statistics page have enough data to show."""
    has_observed_cycle_data: bool
    has_trend_data: bool
    has_reliable_trend: bool
    cycle_data_stale: bool


def build_stats_flags(
    logs: Sequence[DailyLogEntry],
    trend_point_count: int,
    cycle_data_stale: bool,
    tz: tzinfo
) -> StatsFlags:
    """
    Summarize data availability for the statistics page.

    Args:
        logs: Logs the statistics were computed from
        trend_point_count: Number of points shown in the trend chart
        cycle_data_stale: Whether no period was logged for a full cycle
        tz: Timezone defining day boundaries

    Returns:
        StatsFlags; a trend counts as reliable from MIN_RELIABLE_TREND_POINTS points
    """
    observed_cycles = len(cycle_lengths(detect_cycle_starts(logs, tz)))
    return StatsFlags(
        has_observed_cycle_data=observed_cycles > 0,
        has_trend_data=trend_point_count > 0,
        has_reliable_trend=trend_point_count >= MIN_RELIABLE_TREND_POINTS,
        cycle_data_stale=cycle_data_stale
    )


class SymptomFrequency(NamedTuple):
    """How often a symptom was logged."""
    symptom_id: int
    count: int
    total_days: int


def symptom_frequencies(logs: Sequence[DailyLogEntry], tz: tzinfo) -> List[SymptomFrequency]:
    """
    Count the days each symptom was logged on.

    Only the authoritative entry of each day is counted, and total_days is
    the number of logged days. Results are ordered by count, most frequent
    first, then by symptom id.

    Example:
        >>> symptom_frequencies(logs, ZoneInfo("UTC"))
        [SymptomFrequency(symptom_id=4, count=3, total_days=10)]
    """
    entries = latest_log_by_day(logs, tz).values()
    total_days = len(entries)
    counts: Dict[int, int] = {}
    for entry in entries:
        for symptom_id in set(entry.symptom_ids):
            counts[symptom_id] = counts.get(symptom_id, 0) + 1

    frequencies = [SymptomFrequency(symptom_id, count, total_days) for symptom_id, count in counts.items()]
    return sorted(frequencies, key=lambda item: (-item.count, item.symptom_id))
