"""
DynamoDB-backed storage for user cycle settings.
"""
from datetime import date
from typing import Any, Dict, Optional
from aws_lambda_powertools import Logger

from src.models.user import UserCycleSettings, UserRole
from src.utils.dynamo import SETTINGS_SK, create_pk, get_dynamo

logger = Logger()


def settings_to_item(settings: UserCycleSettings) -> Dict[str, Any]:
    """Convert settings to a DynamoDB item."""
    return {
        "PK": create_pk(settings.user_id),
        "SK": SETTINGS_SK,
        "user_id": settings.user_id,
        "cycle_length": settings.cycle_length,
        "period_length": settings.period_length,
        "auto_period_fill": settings.auto_period_fill,
        "last_period_start": settings.last_period_start.isoformat() if settings.last_period_start else None,
        "role": settings.role.value
    }


def item_to_settings(item: Dict[str, Any]) -> UserCycleSettings:
    """Convert a DynamoDB item to settings."""
    last_period_start = item.get("last_period_start")
    return UserCycleSettings(
        user_id=item["user_id"],
        cycle_length=int(item["cycle_length"]),
        period_length=int(item["period_length"]),
        auto_period_fill=bool(item.get("auto_period_fill", True)),
        last_period_start=date.fromisoformat(last_period_start) if last_period_start else None,
        role=UserRole(item.get("role", UserRole.OWNER.value))
    )


class DynamoSettingsStore:
    """Repository for user cycle settings."""

    def __init__(self, dynamo=None):
        """Initialize settings store with a DynamoDB client."""
        self.dynamo = dynamo or get_dynamo()

    def load_settings(self, user_id: str) -> Optional[UserCycleSettings]:
        """
        Load a user's settings.

        Returns:
            Settings if the user completed onboarding, None otherwise
        """
        item = self.dynamo.get_item({"PK": create_pk(user_id), "SK": SETTINGS_SK})
        if not item:
            return None
        return item_to_settings(item)

    def save_settings(self, settings: UserCycleSettings) -> UserCycleSettings:
        """Store the full settings record."""
        self.dynamo.put_item(settings_to_item(settings))
        logger.info("Saved cycle settings", extra={"user_id": settings.user_id})
        return settings

    def update_last_period_start(self, user_id: str, last_period_start: Optional[date]) -> None:
        """
        Persist the last period start derived from logged data.

        Args:
            user_id: User to update
            last_period_start: Latest detected cycle start, None to clear it
        """
        value = last_period_start.isoformat() if last_period_start else None
        self.dynamo.set_attributes(
            {"PK": create_pk(user_id), "SK": SETTINGS_SK},
            {"last_period_start": value}
        )
        logger.info("Updated last period start", extra={
            "user_id": user_id,
            "last_period_start": value
        })
