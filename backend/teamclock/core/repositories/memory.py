"""
In-memory repository backend.

Used for local/dev mode and service tests. State lives in an explicit
InMemoryStore object that the caller owns and injects; there is no module
level store.
"""

import asyncio
from collections.abc import Collection
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from teamclock.core.exceptions import ConflictError
from teamclock.core.models import Company, Project, SessionStatus, User, WorkSession
from teamclock.core.repositories.base import (
    CompanyRepository,
    ProjectRepository,
    SessionRepository,
    UnitOfWork,
    UserRepository,
)


@dataclass
class InMemoryStore:
    """Backing dicts for the in-memory repositories (insertion ordered)."""

    users: dict[UUID, User] = field(default_factory=dict)
    companies: dict[UUID, Company] = field(default_factory=dict)
    projects: dict[UUID, Project] = field(default_factory=dict)
    sessions: dict[UUID, WorkSession] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class InMemoryUserRepository(UserRepository):

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get(self, user_id: UUID) -> Optional[User]:
        return self.store.users.get(user_id)

    async def get_by_external_id(self, external_identity_id: str) -> Optional[User]:
        for user in self.store.users.values():
            if user.external_identity_id == external_identity_id:
                return user
        return None

    async def add(self, user: User) -> User:
        self.store.users[user.id] = user
        return user

    async def save(self, user: User) -> User:
        self.store.users[user.id] = user
        return user

    async def list_by_company(self, company_id: UUID) -> list[User]:
        return [u for u in self.store.users.values() if u.company_id == company_id]


class InMemoryCompanyRepository(CompanyRepository):

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get(self, company_id: UUID) -> Optional[Company]:
        return self.store.companies.get(company_id)

    async def get_by_invite_code(self, invite_code: str) -> Optional[Company]:
        for company in self.store.companies.values():
            if company.invite_code == invite_code:
                return company
        return None

    async def add(self, company: Company) -> Company:
        if await self.get_by_invite_code(company.invite_code) is not None:
            raise ConflictError(
                f"Invite code {company.invite_code} is already taken",
                invite_code=company.invite_code,
            )
        self.store.companies[company.id] = company
        return company


class InMemoryProjectRepository(ProjectRepository):

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get(self, project_id: UUID) -> Optional[Project]:
        return self.store.projects.get(project_id)

    async def add(self, project: Project) -> Project:
        self.store.projects[project.id] = project
        return project

    async def save(self, project: Project) -> Project:
        self.store.projects[project.id] = project
        return project

    async def delete(self, project: Project) -> None:
        self.store.projects.pop(project.id, None)

    async def list_by_company(self, company_id: UUID) -> list[Project]:
        return [p for p in self.store.projects.values() if p.company_id == company_id]


class InMemorySessionRepository(SessionRepository):

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get(self, session_id: UUID) -> Optional[WorkSession]:
        return self.store.sessions.get(session_id)

    async def add(self, session: WorkSession) -> WorkSession:
        self.store.sessions[session.id] = session
        return session

    async def complete(
        self,
        session_id: UUID,
        end_time: int,
        tokens_input: int,
        tokens_output: int,
    ) -> bool:
        async with self.store.lock:
            session = self.store.sessions.get(session_id)
            if session is None or session.status != SessionStatus.ACTIVE:
                return False
            session.end_time = end_time
            session.tokens_input = tokens_input
            session.tokens_output = tokens_output
            session.status = SessionStatus.COMPLETED
            return True

    async def list_active(
        self,
        user_ids: Optional[Collection[UUID]] = None,
    ) -> list[WorkSession]:
        wanted = set(user_ids) if user_ids is not None else None
        return [
            s for s in self.store.sessions.values()
            if s.status == SessionStatus.ACTIVE
            and (wanted is None or s.user_id in wanted)
        ]

    async def list_for_user(
        self,
        user_id: UUID,
        limit: int,
        before: Optional[int] = None,
    ) -> list[WorkSession]:
        sessions = [
            s for s in self.store.sessions.values()
            if s.user_id == user_id and (before is None or s.start_time < before)
        ]
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions[:limit]

    async def list_since(
        self,
        user_ids: Collection[UUID],
        since: int,
        status: Optional[SessionStatus] = None,
    ) -> list[WorkSession]:
        wanted = set(user_ids)
        return [
            s for s in self.store.sessions.values()
            if s.user_id in wanted
            and s.start_time >= since
            and (status is None or s.status == status)
        ]


class InMemoryUnitOfWork(UnitOfWork):
    """Writes land in the store immediately; commit and rollback are no-ops."""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.users = InMemoryUserRepository(store)
        self.companies = InMemoryCompanyRepository(store)
        self.projects = InMemoryProjectRepository(store)
        self.sessions = InMemorySessionRepository(store)

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass
