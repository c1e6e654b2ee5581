"""
Constants shared by cycle calculations, settings validation and storage.
"""

# Declared settings ranges
MIN_CYCLE_LENGTH = 15
MAX_CYCLE_LENGTH = 90
MIN_PERIOD_LENGTH = 1
MAX_PERIOD_LENGTH = 10

# Fallbacks when neither logs nor settings provide a value
DEFAULT_CYCLE_LENGTH = 28
DEFAULT_PERIOD_LENGTH = 5
DEFAULT_LUTEAL_PHASE_DAYS = 14
DEFAULT_TIMEZONE = "UTC"

# Shortest luteal phase accepted when ovulation has to be moved after the period
MIN_LUTEAL_PHASE_DAYS = 7

# Fertility window relative to ovulation, inclusive
FERTILITY_DAYS_BEFORE_OVULATION = 5
FERTILITY_DAYS_AFTER_OVULATION = 1

# Cycle detection
MAX_PERIOD_GAP_DAYS = 1
MIN_RELIABLE_CYCLE_STARTS = 2
RECENT_CYCLES_FOR_AVERAGES = 6

# Auto-fill
AUTO_FILL_LOOKBACK_DAYS = 3

# Calendar
DAYS_PER_WEEK = 7
CALENDAR_RANGE_MONTHS_BEFORE = 2
CALENDAR_RANGE_MONTHS_AFTER = 3
CALENDAR_RANGE_PADDING_DAYS = 8

# Trend and dashboard
STALE_CYCLE_TOLERANCE_DAYS = 7

# Trend points needed before the trend chart is treated as reliable
MIN_RELIABLE_TREND_POINTS = 3
