"""
DynamoDB-backed storage for daily log entries.

Entries live under the user's partition with a sort key that starts with the
entry's UTC timestamp. Local calendar-day queries convert their [start, end)
boundaries to UTC first, so an entry stored as 21:00Z answers a query for the
next local day in a +03:00 zone.

Typical usage:
    store = DynamoLogStore()
    start, end = day_boundaries(day, config.tz)
    entry = store.find_by_day_range(user_id, start, end)
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Key

from src.models.log import DailyLogEntry, FlowLevel
from src.services.dates import to_utc
from src.utils.dynamo import (
    LOG_COUNTER_SK,
    LOG_SK_PREFIX,
    create_log_range_sk,
    create_log_sk,
    create_pk,
    get_dynamo
)

logger = Logger()

TIMESTAMP_KEY_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def log_timestamp_key(value: datetime) -> str:
    """UTC timestamp string whose lexical order matches time order."""
    return to_utc(value).strftime(TIMESTAMP_KEY_FORMAT)


def parse_timestamp_key(value: str) -> datetime:
    """Parse a timestamp written by log_timestamp_key."""
    return datetime.strptime(value, TIMESTAMP_KEY_FORMAT).replace(tzinfo=timezone.utc)


def entry_to_item(entry: DailyLogEntry) -> Dict[str, Any]:
    """Convert a log entry to a DynamoDB item."""
    timestamp_key = log_timestamp_key(entry.date)
    return {
        "PK": create_pk(entry.user_id),
        "SK": create_log_sk(timestamp_key, entry.id),
        "user_id": entry.user_id,
        "log_id": entry.id,
        "date": timestamp_key,
        "is_period": entry.is_period,
        "flow": entry.flow.value,
        "symptom_ids": list(entry.symptom_ids),
        "notes": entry.notes
    }


def item_to_entry(item: Dict[str, Any]) -> DailyLogEntry:
    """Convert a DynamoDB item to a log entry."""
    return DailyLogEntry(
        user_id=item["user_id"],
        id=int(item["log_id"]),
        date=parse_timestamp_key(item["date"]),
        is_period=bool(item.get("is_period", False)),
        flow=FlowLevel(item.get("flow", FlowLevel.NONE.value)),
        symptom_ids=[int(symptom_id) for symptom_id in item.get("symptom_ids", [])],
        notes=item.get("notes", "")
    )


def _sort_key(entry: DailyLogEntry):
    return to_utc(entry.date), entry.id


class DynamoLogStore:
    """Repository for daily log entries."""

    def __init__(self, dynamo=None):
        """Initialize log store with a DynamoDB client."""
        self.dynamo = dynamo or get_dynamo()

    def _query(self, user_id: str, sort_key_condition) -> List[DailyLogEntry]:
        items = self.dynamo.query_items(
            partition_key="PK",
            partition_value=create_pk(user_id),
            sort_key_condition=sort_key_condition
        )
        return [item_to_entry(item) for item in items if item["SK"].startswith(LOG_SK_PREFIX)]

    def list_by_user(self, user_id: str) -> List[DailyLogEntry]:
        """All entries of a user, oldest first."""
        entries = self._query(user_id, Key("SK").begins_with(LOG_SK_PREFIX))
        return sorted(entries, key=_sort_key)

    def list_range(
        self,
        user_id: str,
        range_start: Optional[datetime],
        range_end: Optional[datetime]
    ) -> List[DailyLogEntry]:
        """
        Entries with range_start <= date < range_end, oldest first.

        Either bound may be None for an open range.

        Args:
            user_id: Owner of the entries
            range_start: Inclusive aware lower bound
            range_end: Exclusive aware upper bound

        Returns:
            Matching entries sorted by timestamp, then id
        """
        lower = create_log_range_sk(log_timestamp_key(range_start)) if range_start else LOG_SK_PREFIX
        upper = create_log_range_sk(log_timestamp_key(range_end)) if range_end else LOG_SK_PREFIX + "~"
        entries = self._query(user_id, Key("SK").between(lower, upper))

        # between() is inclusive; drop entries sitting exactly on the end bound
        if range_end is not None:
            end_utc = to_utc(range_end)
            entries = [entry for entry in entries if to_utc(entry.date) < end_utc]
        return sorted(entries, key=_sort_key)

    def list_period_days(self, user_id: str) -> List[DailyLogEntry]:
        """Entries marked as period days, oldest first."""
        return [entry for entry in self.list_by_user(user_id) if entry.is_period]

    def find_by_day_range(
        self,
        user_id: str,
        day_start: datetime,
        day_end: datetime
    ) -> Optional[DailyLogEntry]:
        """
        Get the authoritative entry within a day range.

        Returns:
            The entry with the latest timestamp (highest id on ties), or None
        """
        entries = self.list_range(user_id, day_start, day_end)
        return entries[-1] if entries else None

    def next_log_id(self, user_id: str) -> int:
        """Atomically allocate the next entry id for a user."""
        return self.dynamo.increment_counter({"PK": create_pk(user_id), "SK": LOG_COUNTER_SK}, "log_seq")

    def create(self, entry: DailyLogEntry) -> DailyLogEntry:
        """
        Persist a new entry and assign its id.

        Returns:
            The stored entry
        """
        stored = entry.model_copy(update={"id": self.next_log_id(entry.user_id)})
        self.dynamo.put_item(entry_to_item(stored))
        logger.info("Created daily log entry", extra={
            "user_id": stored.user_id,
            "log_id": stored.id,
            "is_period": stored.is_period
        })
        return stored

    def save(self, entry: DailyLogEntry) -> DailyLogEntry:
        """Overwrite an existing entry in place."""
        self.dynamo.put_item(entry_to_item(entry))
        logger.info("Saved daily log entry", extra={
            "user_id": entry.user_id,
            "log_id": entry.id,
            "is_period": entry.is_period
        })
        return entry

    def delete_by_day_range(self, user_id: str, day_start: datetime, day_end: datetime) -> int:
        """
        Delete every entry within a day range, duplicates included.

        Returns:
            Number of deleted entries
        """
        entries = self.list_range(user_id, day_start, day_end)
        deleted = self.dynamo.batch_delete([
            {"PK": create_pk(user_id), "SK": create_log_sk(log_timestamp_key(entry.date), entry.id)}
            for entry in entries
        ])
        logger.info("Deleted daily log entries", extra={
            "user_id": user_id,
            "deleted": deleted
        })
        return deleted
