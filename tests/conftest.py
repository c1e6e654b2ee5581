"""
Pytest configuration and shared fixtures.
"""
import pytest
from datetime import date
from typing import List

from src.models.config import EngineConfig
from src.models.log import DailyLogEntry
from src.models.user import UserCycleSettings, UserRole
from tests.helpers import USER_ID, make_period


@pytest.fixture
def config() -> EngineConfig:
    """Default engine configuration (UTC, 14 day luteal phase)."""
    return EngineConfig()


@pytest.fixture
def moscow_config() -> EngineConfig:
    """Engine configuration for a +03:00 zone without DST."""
    return EngineConfig(timezone="Europe/Moscow")


@pytest.fixture
def owner_settings() -> UserCycleSettings:
    """Owner with default declared cycle values."""
    return UserCycleSettings(user_id=USER_ID, cycle_length=28, period_length=5)


@pytest.fixture
def partner_settings() -> UserCycleSettings:
    """Partner viewing the owner's cycle."""
    return UserCycleSettings(user_id=USER_ID, role=UserRole.PARTNER)


@pytest.fixture
def regular_period_logs() -> List[DailyLogEntry]:
    """Three 5-day periods, 28 days apart, starting 2026-01-01."""
    return (
        make_period(date(2026, 1, 1))
        + make_period(date(2026, 1, 29))
        + make_period(date(2026, 2, 26))
    )
