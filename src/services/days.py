"""
Service module for reading and writing daily log entries.

This module exposes the log store operations the cycle engine works with,
keyed by local calendar day, plus the day write workflow: upsert an entry,
extend a newly started period with auto-fill, and keep the stored last period
start in sync.

Typical usage:
    service = DayService(DynamoLogStore(), DynamoSettingsStore(), EngineConfig.from_env())
    entry = service.save_day(user_id, date(2026, 3, 10), DayEntryInput(is_period=True, flow=FlowLevel.MEDIUM))
"""
from datetime import date, timedelta
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field

from src.models.config import EngineConfig
from src.models.log import DailyLogEntry, FlowLevel
from src.services.constants import (
    AUTO_FILL_LOOKBACK_DAYS,
    DEFAULT_PERIOD_LENGTH,
    MAX_PERIOD_LENGTH,
    MIN_PERIOD_LENGTH
)
from src.services.dates import day_boundaries, normalize_to_calendar_day, range_boundaries
from src.services.exceptions import (
    DayEntryCreateError,
    DayEntryLoadError,
    DayEntryUpdateError,
    DeleteDayError,
    SyncLastPeriodError
)
from src.services.statistics import detect_cycle_starts
from src.utils.logging import logger


class DayEntryInput(BaseModel):
    """
    Values submitted for one day.
    """
    is_period: bool = False
    flow: FlowLevel = FlowLevel.NONE
    notes: str = ""
    symptom_ids: List[int] = Field(default_factory=list)


class DayService:
    """Service for day-level log operations and period auto-fill."""

    def __init__(self, log_store, settings_store, config: Optional[EngineConfig] = None):
        """
        Initialize day service.

        Args:
            log_store: Repository of daily log entries (see DynamoLogStore)
            settings_store: Repository of user settings (see DynamoSettingsStore)
            config: Engine configuration
        """
        self.logs = log_store
        self.settings = settings_store
        self.config = config or EngineConfig()

    @property
    def tz(self):
        return self.config.tz

    def fetch_range(self, user_id: str, start_day: date, end_day: date) -> List[DailyLogEntry]:
        """
        Get entries from the start of start_day through the end of end_day.

        Both days are local calendar days; entries are matched by the local
        day they fall on, not by their stored UTC date.
        """
        range_start, range_end = range_boundaries(start_day, end_day, self.tz)
        return self.logs.list_range(user_id, range_start, range_end)

    def fetch_all(self, user_id: str) -> List[DailyLogEntry]:
        """Get every entry of a user."""
        return self.logs.list_by_user(user_id)

    def fetch_by_day(self, user_id: str, day: date) -> DailyLogEntry:
        """
        Get the authoritative entry for a local calendar day.

        Returns:
            The stored entry, or an unsaved placeholder (id 0) when the day
            has no entry
        """
        day_start, day_end = day_boundaries(day, self.tz)
        entry = self.logs.find_by_day_range(user_id, day_start, day_end)
        if entry is None:
            return DailyLogEntry(user_id=user_id, date=day_start)
        return entry

    def day_has_data(self, user_id: str, day: date) -> bool:
        """Check if any entry on the day holds period, flow, symptom or note data."""
        day_start, day_end = day_boundaries(day, self.tz)
        entries = self.logs.list_range(user_id, day_start, day_end)
        return any(entry.has_data for entry in entries)

    def upsert_day_entry(self, user_id: str, day: date, payload: DayEntryInput) -> Tuple[DailyLogEntry, bool]:
        """
        Create or overwrite the entry for a day.

        Args:
            user_id: Owner of the entry
            day: Local calendar day
            payload: Submitted values

        Returns:
            Tuple of (stored entry, whether the day was a period day before)

        Raises:
            DayEntryLoadError: If the existing entry cannot be loaded
            DayEntryCreateError: If a new entry cannot be created
            DayEntryUpdateError: If the existing entry cannot be saved
        """
        day_start, day_end = day_boundaries(day, self.tz)
        try:
            existing = self.logs.find_by_day_range(user_id, day_start, day_end)
        except Exception as e:
            logger.exception("Error loading day entry", extra={"user_id": user_id, "day": str(day)})
            raise DayEntryLoadError(f"Failed to load day entry: {str(e)}") from e

        values = payload.model_dump()
        if existing is not None:
            was_period = existing.is_period
            updated = existing.model_copy(update=values)
            try:
                return self.logs.save(updated), was_period
            except Exception as e:
                logger.exception("Error updating day entry", extra={"user_id": user_id, "day": str(day)})
                raise DayEntryUpdateError(f"Failed to update day entry: {str(e)}") from e

        entry = DailyLogEntry(user_id=user_id, date=day_start, **values)
        try:
            return self.logs.create(entry), False
        except Exception as e:
            logger.exception("Error creating day entry", extra={"user_id": user_id, "day": str(day)})
            raise DayEntryCreateError(f"Failed to create day entry: {str(e)}") from e

    def delete_by_day(self, user_id: str, day: date) -> None:
        """Delete every entry on a local calendar day."""
        day_start, day_end = day_boundaries(day, self.tz)
        self.logs.delete_by_day_range(user_id, day_start, day_end)

    def delete_day_and_refresh(self, user_id: str, day: date) -> None:
        """
        Delete a day and resync the stored last period start.

        Raises:
            DeleteDayError: If the day cannot be deleted
            SyncLastPeriodError: If the last period start cannot be refreshed
        """
        try:
            self.delete_by_day(user_id, day)
        except Exception as e:
            logger.exception("Error deleting day", extra={"user_id": user_id, "day": str(day)})
            raise DeleteDayError(f"Failed to delete day: {str(e)}") from e
        try:
            self.refresh_last_period_start(user_id)
        except Exception as e:
            logger.exception("Error syncing last period start", extra={"user_id": user_id})
            raise SyncLastPeriodError(f"Failed to sync last period start: {str(e)}") from e

    def refresh_last_period_start(self, user_id: str) -> Optional[date]:
        """
        Recompute and persist the user's last period start from logged data.

        Returns:
            The latest detected cycle start, None if no period is logged
        """
        starts = detect_cycle_starts(self.logs.list_period_days(user_id), self.tz)
        latest = starts[-1] if starts else None
        self.settings.update_last_period_start(user_id, latest)
        return latest

    def load_auto_fill_settings(self, user_id: str) -> Tuple[int, bool]:
        """
        Get the period length and auto-fill flag for a user.

        Returns:
            Tuple of (period length, auto-fill enabled); users without
            settings get the default length with auto-fill disabled
        """
        settings = self.settings.load_settings(user_id)
        if settings is None:
            return DEFAULT_PERIOD_LENGTH, False
        period_length = settings.period_length
        if period_length < MIN_PERIOD_LENGTH or period_length > MAX_PERIOD_LENGTH:
            period_length = DEFAULT_PERIOD_LENGTH
        return period_length, settings.auto_period_fill

    def _has_period_in_recent_days(self, user_id: str, day: date, lookback_days: int) -> bool:
        for offset in range(1, lookback_days + 1):
            if self.fetch_by_day(user_id, day - timedelta(days=offset)).is_period:
                return True
        return False

    def should_auto_fill(
        self,
        user_id: str,
        day: date,
        was_period: bool,
        auto_fill_enabled: bool,
        period_length: int
    ) -> bool:
        """
        Decide whether a new period day should be extended into a full period.

        Auto-fill is skipped when it is disabled, when the period length is a
        single day, when the day was already a period day before this write,
        or when any of the previous AUTO_FILL_LOOKBACK_DAYS days is a period
        day, so marking a day inside a running period never starts a new run.
        """
        if not auto_fill_enabled or period_length <= 1 or was_period:
            return False

        day = normalize_to_calendar_day(day, self.tz)
        if self.fetch_by_day(user_id, day - timedelta(days=1)).is_period:
            return False
        return not self._has_period_in_recent_days(user_id, day, AUTO_FILL_LOOKBACK_DAYS)

    def auto_fill_following_days(
        self,
        user_id: str,
        day: date,
        period_length: int,
        flow: FlowLevel
    ) -> int:
        """
        Mark the days after a period start as period days.

        Walks offsets 1..period_length-1. Empty days get a new period entry
        with the same flow, existing non-period entries without data are
        marked as period, and existing period days are left alone. The fill
        stops at the first day that holds other user data, so manual entries
        are never overwritten.

        Args:
            user_id: Owner of the entries
            day: The period start that was just written
            period_length: Expected period length in days
            flow: Flow to record on filled days

        Returns:
            Number of days written

        Raises:
            Store errors propagate unchanged
        """
        if period_length <= 1:
            return 0

        day = normalize_to_calendar_day(day, self.tz)
        written = 0
        for offset in range(1, period_length):
            target_day = day + timedelta(days=offset)
            entry = self.fetch_by_day(user_id, target_day)

            if entry.is_persisted:
                if entry.has_data and not entry.is_period:
                    logger.info("Stopped period auto-fill at user data", extra={
                        "user_id": user_id,
                        "day": str(target_day)
                    })
                    break
                if entry.is_period:
                    continue
                self.logs.save(entry.model_copy(update={"is_period": True, "flow": flow}))
                written += 1
                continue

            day_start, _ = day_boundaries(target_day, self.tz)
            self.logs.create(DailyLogEntry(
                user_id=user_id,
                date=day_start,
                is_period=True,
                flow=flow
            ))
            written += 1

        logger.info("Auto-filled period days", extra={
            "user_id": user_id,
            "start_day": str(day),
            "days_written": written
        })
        return written

    def save_day(self, user_id: str, day: date, payload: DayEntryInput) -> DailyLogEntry:
        """
        Run the full day write workflow.

        Upserts the entry, auto-fills the rest of the period when a new period
        starts on this day, and refreshes the stored last period start when
        period data changed.

        Returns:
            The stored entry for the day
        """
        day = normalize_to_calendar_day(day, self.tz)
        entry, was_period = self.upsert_day_entry(user_id, day, payload)

        if payload.is_period:
            period_length, auto_fill_enabled = self.load_auto_fill_settings(user_id)
            if self.should_auto_fill(user_id, day, was_period, auto_fill_enabled, period_length):
                self.auto_fill_following_days(user_id, day, period_length, payload.flow)

        if payload.is_period or was_period:
            self.refresh_last_period_start(user_id)

        return entry
