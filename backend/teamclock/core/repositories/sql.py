"""
SQL repository backend (async SQLAlchemy).

All repositories of a unit of work share one AsyncSession, so a service's
writes are committed or rolled back together. Filters are pushed into the
query so the indexes on sessions (status, user_id/status,
user_id/start_time) do the work.
"""

from collections.abc import Collection
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from teamclock.core.exceptions import ConflictError
from teamclock.core.models import Company, Project, SessionStatus, User, WorkSession
from teamclock.core.repositories.base import (
    CompanyRepository,
    ProjectRepository,
    SessionRepository,
    UnitOfWork,
    UserRepository,
)


class SqlUserRepository(UserRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_external_id(self, external_identity_id: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.external_identity_id == external_identity_id)
        )
        return result.scalar_one_or_none()

    async def add(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def save(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def list_by_company(self, company_id: UUID) -> list[User]:
        result = await self.db.execute(
            select(User).where(User.company_id == company_id).order_by(User.name)
        )
        return list(result.scalars().all())


class SqlCompanyRepository(CompanyRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, company_id: UUID) -> Optional[Company]:
        return await self.db.get(Company, company_id)

    async def get_by_invite_code(self, invite_code: str) -> Optional[Company]:
        result = await self.db.execute(
            select(Company).where(Company.invite_code == invite_code)
        )
        return result.scalars().first()

    async def add(self, company: Company) -> Company:
        # A duplicate invite code only rolls back the savepoint
        try:
            async with self.db.begin_nested():
                self.db.add(company)
        except IntegrityError as e:
            raise ConflictError(
                f"Invite code {company.invite_code} is already taken",
                invite_code=company.invite_code,
            ) from e
        return company


class SqlProjectRepository(ProjectRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, project_id: UUID) -> Optional[Project]:
        return await self.db.get(Project, project_id)

    async def add(self, project: Project) -> Project:
        self.db.add(project)
        await self.db.flush()
        return project

    async def save(self, project: Project) -> Project:
        self.db.add(project)
        await self.db.flush()
        return project

    async def delete(self, project: Project) -> None:
        await self.db.delete(project)
        await self.db.flush()

    async def list_by_company(self, company_id: UUID) -> list[Project]:
        result = await self.db.execute(
            select(Project).where(Project.company_id == company_id).order_by(Project.name)
        )
        return list(result.scalars().all())


class SqlSessionRepository(SessionRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, session_id: UUID) -> Optional[WorkSession]:
        return await self.db.get(WorkSession, session_id, populate_existing=True)

    async def add(self, session: WorkSession) -> WorkSession:
        self.db.add(session)
        await self.db.flush()
        return session

    async def complete(
        self,
        session_id: UUID,
        end_time: int,
        tokens_input: int,
        tokens_output: int,
    ) -> bool:
        result = await self.db.execute(
            update(WorkSession)
            .where(
                WorkSession.id == session_id,
                WorkSession.status == SessionStatus.ACTIVE,
            )
            .values(
                end_time=end_time,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                status=SessionStatus.COMPLETED,
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def list_active(
        self,
        user_ids: Optional[Collection[UUID]] = None,
    ) -> list[WorkSession]:
        query = select(WorkSession).where(WorkSession.status == SessionStatus.ACTIVE)
        if user_ids is not None:
            if not user_ids:
                return []
            query = query.where(WorkSession.user_id.in_(list(user_ids)))
        query = query.order_by(WorkSession.start_time)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_for_user(
        self,
        user_id: UUID,
        limit: int,
        before: Optional[int] = None,
    ) -> list[WorkSession]:
        query = select(WorkSession).where(WorkSession.user_id == user_id)
        if before is not None:
            query = query.where(WorkSession.start_time < before)
        query = query.order_by(WorkSession.start_time.desc()).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_since(
        self,
        user_ids: Collection[UUID],
        since: int,
        status: Optional[SessionStatus] = None,
    ) -> list[WorkSession]:
        if not user_ids:
            return []
        query = select(WorkSession).where(
            WorkSession.user_id.in_(list(user_ids)),
            WorkSession.start_time >= since,
        )
        if status is not None:
            query = query.where(WorkSession.status == status)
        query = query.order_by(WorkSession.start_time)

        result = await self.db.execute(query)
        return list(result.scalars().all())


class SqlUnitOfWork(UnitOfWork):
    """Repositories bound to a single AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = SqlUserRepository(db)
        self.companies = SqlCompanyRepository(db)
        self.projects = SqlProjectRepository(db)
        self.sessions = SqlSessionRepository(db)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
