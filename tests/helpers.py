"""
Test helpers: log entry builders and in-memory stores.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from src.models.log import DailyLogEntry, FlowLevel
from src.models.user import UserCycleSettings
from src.services.dates import to_utc

USER_ID = "123"


def make_log(
    day: date,
    is_period: bool = True,
    hour: int = 12,
    log_id: int = 0,
    flow: Optional[FlowLevel] = None,
    notes: str = "",
    symptom_ids: Optional[List[int]] = None,
    user_id: str = USER_ID
) -> DailyLogEntry:
    """Create a log entry stored at the given UTC hour of a day."""
    if flow is None:
        flow = FlowLevel.MEDIUM if is_period else FlowLevel.NONE
    return DailyLogEntry(
        user_id=user_id,
        date=datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc),
        is_period=is_period,
        flow=flow,
        notes=notes,
        symptom_ids=symptom_ids or [],
        id=log_id
    )


def make_period(start: date, length: int = 5, user_id: str = USER_ID) -> List[DailyLogEntry]:
    """Create consecutive period entries starting at start."""
    return [make_log(start + timedelta(days=i), user_id=user_id) for i in range(length)]


class FakeLogStore:
    """In-memory log store with the same method surface as DynamoLogStore."""

    def __init__(self, entries: Optional[List[DailyLogEntry]] = None):
        self.entries: List[DailyLogEntry] = []
        self._next_id = 1
        for entry in entries or []:
            self.create(entry)

    def _sorted(self, entries):
        return sorted(entries, key=lambda entry: (to_utc(entry.date), entry.id))

    def list_by_user(self, user_id):
        return self._sorted([entry for entry in self.entries if entry.user_id == user_id])

    def list_range(self, user_id, range_start, range_end):
        result = []
        for entry in self.list_by_user(user_id):
            ts = to_utc(entry.date)
            if range_start is not None and ts < to_utc(range_start):
                continue
            if range_end is not None and ts >= to_utc(range_end):
                continue
            result.append(entry)
        return result

    def list_period_days(self, user_id):
        return [entry for entry in self.list_by_user(user_id) if entry.is_period]

    def find_by_day_range(self, user_id, day_start, day_end):
        entries = self.list_range(user_id, day_start, day_end)
        return entries[-1] if entries else None

    def create(self, entry):
        stored = entry.model_copy(update={"id": self._next_id})
        self._next_id += 1
        self.entries.append(stored)
        return stored

    def save(self, entry):
        self.entries = [existing for existing in self.entries if existing.id != entry.id]
        self.entries.append(entry)
        return entry

    def delete_by_day_range(self, user_id, day_start, day_end):
        doomed = {entry.id for entry in self.list_range(user_id, day_start, day_end)}
        self.entries = [entry for entry in self.entries if entry.id not in doomed]
        return len(doomed)


class FakeSettingsStore:
    """In-memory settings store with the same method surface as DynamoSettingsStore."""

    def __init__(self, settings: Optional[UserCycleSettings] = None):
        self.settings: Dict[str, UserCycleSettings] = {}
        self.last_period_updates: List[Optional[date]] = []
        if settings is not None:
            self.save_settings(settings)

    def load_settings(self, user_id):
        return self.settings.get(user_id)

    def save_settings(self, settings):
        self.settings[settings.user_id] = settings
        return settings

    def update_last_period_start(self, user_id, last_period_start):
        self.last_period_updates.append(last_period_start)
        if user_id in self.settings:
            self.settings[user_id] = self.settings[user_id].model_copy(
                update={"last_period_start": last_period_start}
            )
