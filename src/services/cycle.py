"""
Service module for menstrual cycle statistics and calendar views.

This module runs the per-request pipeline: fetch logs, detect cycles, compute
statistics, merge the user's declared baseline, and derive the current phase
or a month calendar from the result. Nothing computed here is persisted.

Typical usage:
    service = get_cycle_service()
    stats, logs = service.build_cycle_stats_for_range(settings, start, end, now)
    days = service.build_calendar_month(settings, date(2026, 3, 1), now)
"""
from datetime import date, datetime, timezone
from typing import List, NamedTuple, Optional, Tuple

from src.models.calendar import CalendarDayState
from src.models.config import EngineConfig
from src.models.log import DailyLogEntry
from src.models.phase import CyclePhase
from src.models.stats import CycleStats
from src.models.user import UserCycleSettings
from src.services.baseline import (
    apply_baseline,
    cycle_data_looks_stale,
    cycle_day_looks_long,
    cycle_reference_length,
    owner_baseline_cycle_length,
    upcoming_predictions,
    UpcomingPredictions
)
from src.services.calendar import build_calendar_day_states, calendar_log_range
from src.services.dates import normalize_to_calendar_day
from src.services.phase import detect_phase
from src.services.statistics import (
    build_stats_flags,
    completed_cycle_trend_lengths,
    compute_cycle_stats,
    symptom_frequencies,
    trim_trailing_trend_lengths,
    StatsFlags,
    SymptomFrequency
)
from src.services.utils import sanitize_logs_for_viewer
from src.utils.logging import logger


class CycleOverview(NamedTuple):
    """Everything a dashboard shows about the current cycle."""
    stats: CycleStats
    upcoming: UpcomingPredictions
    trend_lengths: List[int]
    data_looks_stale: bool
    cycle_day_looks_long: bool
    baseline_cycle_length: int
    flags: StatsFlags
    symptom_frequencies: List[SymptomFrequency]


class CycleService:
    """Service building cycle statistics, phases and calendars for a user."""

    def __init__(self, day_service, settings_store=None, config: Optional[EngineConfig] = None):
        """
        Initialize cycle service.

        Args:
            day_service: DayService used to fetch logs
            settings_store: Optional settings repository for load_settings
            config: Engine configuration
        """
        self.days = day_service
        self.settings = settings_store
        self.config = config or EngineConfig()

    def _now(self, now: Optional[datetime]) -> datetime:
        return now or datetime.now(timezone.utc)

    def load_settings(self, user_id: str) -> Optional[UserCycleSettings]:
        """Load stored settings for a user, None if there is no settings store."""
        if self.settings is None:
            return None
        return self.settings.load_settings(user_id)

    def stats_from_logs(
        self,
        settings: Optional[UserCycleSettings],
        logs: List[DailyLogEntry],
        now: Optional[datetime] = None
    ) -> CycleStats:
        """Compute statistics for already fetched logs and apply the baseline."""
        now = self._now(now)
        stats = compute_cycle_stats(logs, now, self.config)
        return apply_baseline(settings, logs, stats, now, self.config)

    def build_cycle_stats_for_range(
        self,
        settings: UserCycleSettings,
        start_day: date,
        end_day: date,
        now: Optional[datetime] = None
    ) -> Tuple[CycleStats, List[DailyLogEntry]]:
        """
        Build cycle statistics from the logs within a day range.

        Args:
            settings: Settings of the user whose logs are analyzed
            start_day: First local day to load
            end_day: Last local day to load
            now: Current timestamp, defaults to the current time

        Returns:
            Tuple of (stats with baseline applied, fetched logs)

        Raises:
            Store errors propagate unchanged
        """
        logs = self.days.fetch_range(settings.user_id, start_day, end_day)
        stats = self.stats_from_logs(settings, logs, now)
        logger.info("Built cycle statistics", extra={
            "user_id": settings.user_id,
            "log_count": len(logs),
            "current_phase": stats.current_phase.value,
            "current_cycle_day": stats.current_cycle_day
        })
        return stats, logs

    def current_phase(
        self,
        settings: UserCycleSettings,
        day: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> CyclePhase:
        """Classify a day, today by default, using all of the user's logs."""
        now = self._now(now)
        logs = self.days.fetch_all(settings.user_id)
        stats = self.stats_from_logs(settings, logs, now)
        target_day = day or normalize_to_calendar_day(now, self.config.tz)
        return detect_phase(stats, logs, target_day, self.config)

    def build_overview(
        self,
        settings: UserCycleSettings,
        now: Optional[datetime] = None,
        max_trend_points: int = 0,
        owner_id: Optional[str] = None
    ) -> CycleOverview:
        """
        Build dashboard and statistics page data from all of the owner's logs.

        Args:
            settings: Settings of the viewer
            now: Current timestamp, defaults to the current time
            max_trend_points: Keep only the latest completed cycles in the
                trend, 0 keeps all of them
            owner_id: Whose logs to load, defaults to settings.user_id.
                Partner viewers pass the id of the owner they follow.

        Returns:
            CycleOverview. Symptom frequencies are empty for viewers who
            cannot see symptoms.
        """
        now = self._now(now)
        tz = self.config.tz
        today = normalize_to_calendar_day(now, tz)
        logs = self.days.fetch_all(owner_id or settings.user_id)
        stats = self.stats_from_logs(settings, logs, now)

        reference_length = cycle_reference_length(settings, stats)
        stale_anchor = settings.last_period_start or stats.last_period_start
        data_looks_stale = cycle_data_looks_stale(stale_anchor, today, reference_length)
        trend_lengths = trim_trailing_trend_lengths(
            completed_cycle_trend_lengths(logs, now, self.config),
            max_trend_points
        )
        frequencies = symptom_frequencies(logs, tz) if settings.can_view_symptoms else []

        return CycleOverview(
            stats=stats,
            upcoming=upcoming_predictions(stats, settings, today, reference_length, self.config),
            trend_lengths=trend_lengths,
            data_looks_stale=data_looks_stale,
            cycle_day_looks_long=cycle_day_looks_long(stats.current_cycle_day, reference_length),
            baseline_cycle_length=owner_baseline_cycle_length(settings),
            flags=build_stats_flags(logs, len(trend_lengths), data_looks_stale, tz),
            symptom_frequencies=frequencies
        )

    def build_calendar_month(
        self,
        settings: UserCycleSettings,
        month_start: date,
        now: Optional[datetime] = None,
        owner_id: Optional[str] = None
    ) -> List[CalendarDayState]:
        """
        Build the calendar grid for a month.

        Loads the logs around the month, computes statistics from them and
        projects predictions into the month. Partner viewers pass the owner's
        id as owner_id and get sanitized logs.
        """
        now = self._now(now)
        range_start, range_end = calendar_log_range(month_start)
        logs = self.days.fetch_range(owner_id or settings.user_id, range_start, range_end)
        logs = sanitize_logs_for_viewer(settings, logs)
        stats = self.stats_from_logs(settings, logs, now)
        return build_calendar_day_states(month_start, logs, stats, now, self.config)
