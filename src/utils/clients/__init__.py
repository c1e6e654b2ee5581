"""
Centralized client initialization module.

This module provides lazy-loaded shared stores and services for the application.
"""
from src.models.config import EngineConfig
from src.services.cycle import CycleService
from src.services.days import DayService
from src.services.log_store import DynamoLogStore
from src.services.settings_store import DynamoSettingsStore
from src.utils.dynamo import get_dynamo

# Initialize shared clients (lazy loading)
_config = None
_log_store = None
_settings_store = None

def get_config() -> EngineConfig:
    """Get or load engine configuration."""
    global _config
    if _config is None:
        _config = EngineConfig.from_env()
    return _config

def get_log_store() -> DynamoLogStore:
    """Get or create log store."""
    global _log_store
    if _log_store is None:
        _log_store = DynamoLogStore(get_dynamo())
    return _log_store

def get_settings_store() -> DynamoSettingsStore:
    """Get or create settings store."""
    global _settings_store
    if _settings_store is None:
        _settings_store = DynamoSettingsStore(get_dynamo())
    return _settings_store

def get_day_service() -> DayService:
    """Create a day service over the shared stores."""
    return DayService(get_log_store(), get_settings_store(), get_config())

def get_cycle_service() -> CycleService:
    """Create a cycle service over the shared stores."""
    return CycleService(get_day_service(), get_settings_store(), get_config())
