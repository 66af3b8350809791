"""
Repository Interfaces
=====================

One typed repository per entity, grouped in a unit of work that commits or
rolls back as a whole. Services only ever see these interfaces, so the
storage backend (SQL or in-memory) is chosen by whoever builds the unit of
work.
"""

from abc import ABC, abstractmethod
from collections.abc import Collection
from typing import Optional
from uuid import UUID

from teamclock.core.models import Company, Project, SessionStatus, User, WorkSession


class UserRepository(ABC):
    """Storage for user records."""

    @abstractmethod
    async def get(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_external_id(self, external_identity_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def add(self, user: User) -> User:
        pass

    @abstractmethod
    async def save(self, user: User) -> User:
        """Persist changes made to a loaded user."""
        pass

    @abstractmethod
    async def list_by_company(self, company_id: UUID) -> list[User]:
        pass


class CompanyRepository(ABC):
    """Storage for companies."""

    @abstractmethod
    async def get(self, company_id: UUID) -> Optional[Company]:
        pass

    @abstractmethod
    async def get_by_invite_code(self, invite_code: str) -> Optional[Company]:
        """Exact match on an already-normalized (uppercase) code."""
        pass

    @abstractmethod
    async def add(self, company: Company) -> Company:
        """Insert; raises ConflictError if the invite code is already taken."""
        pass


class ProjectRepository(ABC):
    """Storage for company projects."""

    @abstractmethod
    async def get(self, project_id: UUID) -> Optional[Project]:
        pass

    @abstractmethod
    async def add(self, project: Project) -> Project:
        pass

    @abstractmethod
    async def save(self, project: Project) -> Project:
        pass

    @abstractmethod
    async def delete(self, project: Project) -> None:
        pass

    @abstractmethod
    async def list_by_company(self, company_id: UUID) -> list[Project]:
        pass


class SessionRepository(ABC):
    """Storage for work sessions."""

    @abstractmethod
    async def get(self, session_id: UUID) -> Optional[WorkSession]:
        pass

    @abstractmethod
    async def add(self, session: WorkSession) -> WorkSession:
        pass

    @abstractmethod
    async def complete(
        self,
        session_id: UUID,
        end_time: int,
        tokens_input: int,
        tokens_output: int,
    ) -> bool:
        """
        Mark an active session completed.

        Must be a single compare-and-swap on status: returns False, and
        writes nothing, when the session is missing or no longer active.
        """
        pass

    @abstractmethod
    async def list_active(
        self,
        user_ids: Optional[Collection[UUID]] = None,
    ) -> list[WorkSession]:
        """Active sessions, optionally restricted to a set of users."""
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: UUID,
        limit: int,
        before: Optional[int] = None,
    ) -> list[WorkSession]:
        """Newest first by start_time; `before` is an exclusive start_time cursor."""
        pass

    @abstractmethod
    async def list_since(
        self,
        user_ids: Collection[UUID],
        since: int,
        status: Optional[SessionStatus] = None,
    ) -> list[WorkSession]:
        """Sessions of the given users with start_time >= since."""
        pass


class UnitOfWork(ABC):
    """
    A set of repositories sharing one transaction.

    Usage:
        async with uow:
            user = await uow.users.get(user_id)
            ...
            await uow.commit()

    Leaving the block with an exception rolls back.
    """

    users: UserRepository
    companies: CompanyRepository
    projects: ProjectRepository
    sessions: SessionRepository

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            await self.rollback()
