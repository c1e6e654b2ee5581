"""Tests for merging declared cycle settings into computed statistics."""
from datetime import date, datetime, timezone

from src.models.phase import CyclePhase
from src.models.stats import CycleStats
from src.models.user import UserCycleSettings
from src.services.baseline import (
    apply_baseline,
    cycle_data_looks_stale,
    cycle_day_looks_long,
    cycle_reference_length,
    owner_baseline_cycle_length,
    project_cycle_start,
    upcoming_predictions
)
from src.services.statistics import compute_cycle_stats
from tests.helpers import USER_ID, make_period


def merged_stats(settings, logs, now, config):
    return apply_baseline(settings, logs, compute_cycle_stats(logs, now, config), now, config)


def test_partner_settings_pass_through(partner_settings, regular_period_logs, config):
    """Test partner viewers get the computed stats unchanged."""
    now = datetime(2026, 3, 5, tzinfo=timezone.utc)
    stats = compute_cycle_stats(regular_period_logs, now, config)
    assert apply_baseline(partner_settings, regular_period_logs, stats, now, config) is stats


def test_missing_settings_pass_through(config):
    """Test stats are unchanged without settings."""
    stats = CycleStats()
    assert apply_baseline(None, [], stats, datetime(2026, 3, 5, tzinfo=timezone.utc), config) is stats


def test_declared_values_used_without_logs(config):
    """Test declared settings drive predictions for a new user."""
    settings = UserCycleSettings(
        user_id=USER_ID,
        cycle_length=28,
        period_length=5,
        last_period_start=date(2026, 3, 1)
    )
    stats = merged_stats(settings, [], datetime(2026, 3, 10, tzinfo=timezone.utc), config)

    assert stats.average_cycle_length == 28.0
    assert stats.median_cycle_length == 28
    assert stats.average_period_length == 5.0
    assert stats.last_period_start == date(2026, 3, 1)
    assert stats.next_period_start == date(2026, 3, 29)
    assert stats.ovulation_date == date(2026, 3, 15)
    # A declared start is not precise enough for an exact ovulation
    assert not stats.ovulation_exact
    assert stats.fertility_window_start == date(2026, 3, 10)
    assert stats.fertility_window_end == date(2026, 3, 16)
    assert stats.current_cycle_day == 10
    assert stats.current_phase == CyclePhase.FERTILE


def test_sparse_logs_prefer_logged_start(config):
    """Test a single logged start overrides the declared start."""
    settings = UserCycleSettings(
        user_id=USER_ID,
        cycle_length=30,
        period_length=5,
        last_period_start=date(2026, 2, 1)
    )
    logs = make_period(date(2026, 3, 1), 4)
    stats = merged_stats(settings, logs, datetime(2026, 3, 10, tzinfo=timezone.utc), config)

    assert stats.average_cycle_length == 30.0
    assert stats.median_cycle_length == 30
    assert stats.average_period_length == 5.0
    assert stats.last_period_start == date(2026, 3, 1)
    assert stats.next_period_start == date(2026, 3, 31)
    assert stats.ovulation_date == date(2026, 3, 17)
    assert stats.ovulation_exact
    assert stats.current_cycle_day == 10


def test_reliable_logs_keep_computed_values(config):
    """Test two or more starts keep the observed averages."""
    settings = UserCycleSettings(
        user_id=USER_ID,
        cycle_length=35,
        period_length=5,
        last_period_start=date(2025, 12, 1)
    )
    logs = make_period(date(2026, 1, 1)) + make_period(date(2026, 1, 29)) + make_period(date(2026, 2, 26))
    stats = merged_stats(settings, logs, datetime(2026, 3, 5, tzinfo=timezone.utc), config)

    assert stats.average_cycle_length == 28.0
    assert stats.median_cycle_length == 28
    assert stats.last_period_start == date(2026, 2, 26)
    assert stats.next_period_start == date(2026, 3, 26)


def test_future_declared_start_has_unknown_cycle_day(config):
    """Test a declared start after today yields cycle day 0."""
    settings = UserCycleSettings(user_id=USER_ID, last_period_start=date(2026, 3, 20))
    stats = merged_stats(settings, [], datetime(2026, 3, 10, tzinfo=timezone.utc), config)
    assert stats.current_cycle_day == 0


def test_incompatible_settings_mark_ovulation_impossible(config):
    """Test a 15 day cycle with a 10 day period has no ovulation."""
    settings = UserCycleSettings(
        user_id=USER_ID,
        cycle_length=15,
        period_length=10,
        last_period_start=date(2026, 3, 1)
    )
    stats = merged_stats(settings, [], datetime(2026, 3, 5, tzinfo=timezone.utc), config)

    assert stats.ovulation_impossible
    assert not stats.ovulation_exact
    assert stats.ovulation_date is None
    assert stats.fertility_window_start is None
    assert stats.fertility_window_end is None
    assert stats.current_phase == CyclePhase.MENSTRUAL

    later = merged_stats(settings, [], datetime(2026, 3, 12, tzinfo=timezone.utc), config)
    assert later.current_cycle_day == 12
    assert later.current_phase == CyclePhase.UNKNOWN


def test_project_cycle_start():
    """Test projection of the last start forward by whole cycles."""
    assert project_cycle_start(date(2026, 1, 1), 28, date(2026, 2, 3)) == (date(2026, 1, 29), 6)
    assert project_cycle_start(date(2026, 1, 1), 28, date(2026, 1, 1)) == (date(2026, 1, 1), 1)
    assert project_cycle_start(date(2026, 2, 1), 28, date(2026, 1, 1)) == (date(2026, 2, 1), 0)
    assert project_cycle_start(None, 28, date(2026, 1, 1)) is None


def test_upcoming_predictions_lie_ahead(owner_settings, config):
    """Test upcoming dates are projected past today."""
    stats = CycleStats(last_period_start=date(2026, 1, 1), average_period_length=5)

    upcoming = upcoming_predictions(stats, owner_settings, date(2026, 3, 10), 28, config)
    assert upcoming.next_period_start == date(2026, 3, 26)
    assert upcoming.ovulation_date == date(2026, 3, 12)
    assert not upcoming.ovulation_impossible

    # Ovulation of the projected cycle already passed, so move one cycle on
    upcoming = upcoming_predictions(stats, owner_settings, date(2026, 3, 14), 28, config)
    assert upcoming.next_period_start == date(2026, 4, 23)
    assert upcoming.ovulation_date == date(2026, 4, 9)


def test_cycle_reference_length(owner_settings, partner_settings):
    """Test owners compare against their declared length, others against stats."""
    stats = CycleStats(median_cycle_length=31, average_cycle_length=30.6)
    assert cycle_reference_length(owner_settings, stats) == 28
    assert cycle_reference_length(partner_settings, stats) == 31
    assert cycle_reference_length(None, CycleStats(average_cycle_length=30.6)) == 31
    assert cycle_reference_length(None, CycleStats()) == 28


def test_stale_and_long_cycle_checks():
    """Test thresholds for stale data and long cycles."""
    assert cycle_data_looks_stale(date(2026, 1, 1), date(2026, 1, 29), 28)
    assert not cycle_data_looks_stale(date(2026, 1, 1), date(2026, 1, 28), 28)
    assert not cycle_data_looks_stale(None, date(2026, 1, 28), 28)
    assert cycle_day_looks_long(36, 28)
    assert not cycle_day_looks_long(35, 28)
    assert not cycle_day_looks_long(0, 28)


def test_owner_baseline_cycle_length(owner_settings, partner_settings):
    """Test only owners get a declared baseline for the trend chart."""
    assert owner_baseline_cycle_length(owner_settings) == 28
    assert owner_baseline_cycle_length(owner_settings.model_copy(update={"cycle_length": 32})) == 32
    assert owner_baseline_cycle_length(partner_settings) == 0
    assert owner_baseline_cycle_length(None) == 0
