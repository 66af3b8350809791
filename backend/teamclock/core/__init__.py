"""
TeamClock - Core Package
========================

Core business logic, models, and schemas.
"""

from teamclock.core.config import settings
from teamclock.core.database import Base, get_db, get_db_session

__all__ = ["Base", "get_db", "get_db_session", "settings"]
