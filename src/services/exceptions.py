"""
Service-level exceptions.

This module contains exceptions that can be raised by the day write workflow.
Store failures in the calculation paths propagate unchanged; impossible cycle
settings are reported through CycleStats, never raised.
"""

class DayEntryError(Exception):
    """Base exception for day entry persistence errors."""
    pass

class DayEntryLoadError(DayEntryError):
    """Raised when the existing entry for a day cannot be loaded."""
    pass

class DayEntryCreateError(DayEntryError):
    """Raised when a new day entry cannot be created."""
    pass

class DayEntryUpdateError(DayEntryError):
    """Raised when an existing day entry cannot be saved."""
    pass

class DeleteDayError(DayEntryError):
    """Raised when the entries for a day cannot be deleted."""
    pass

class SyncLastPeriodError(DayEntryError):
    """Raised when the stored last period start cannot be refreshed."""
    pass
