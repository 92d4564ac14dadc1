"""
Database Module
"""
from .connection import (
    check_database_health,
    close_database,
    get_db,
    get_engine,
    get_session_factory,
    init_database,
)
from .models import Base
from .store import SurveyStatsStore

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_engine",
    "get_session_factory",
    "check_database_health",
    "Base",
    "SurveyStatsStore",
]
