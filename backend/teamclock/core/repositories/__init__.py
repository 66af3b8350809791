"""
Repositories
============

Typed storage interfaces and their two backends:

- SqlUnitOfWork: async SQLAlchemy (SQLite or PostgreSQL)
- InMemoryUnitOfWork: dict-backed store for local/dev mode and tests
"""

from teamclock.core.repositories.base import (
    CompanyRepository,
    ProjectRepository,
    SessionRepository,
    UnitOfWork,
    UserRepository,
)
from teamclock.core.repositories.memory import InMemoryStore, InMemoryUnitOfWork
from teamclock.core.repositories.sql import SqlUnitOfWork

__all__ = [
    "CompanyRepository",
    "InMemoryStore",
    "InMemoryUnitOfWork",
    "ProjectRepository",
    "SessionRepository",
    "SqlUnitOfWork",
    "UnitOfWork",
    "UserRepository",
]
