"""
Company / Membership
====================

Invite-code based onboarding. A user is either unaffiliated or a member of
exactly one company:

    Unaffiliated ──create / join──> Member ──leave──> Unaffiliated

There is no pending state; a valid invite code joins immediately.
"""

from collections.abc import Callable
from functools import partial
from typing import Optional
from uuid import UUID, uuid4

import structlog

from teamclock.core.config import settings
from teamclock.core.exceptions import (
    ConflictError,
    NotFoundError,
    ResourceExhaustedError,
    ValidationFailedError,
)
from teamclock.core.models import Company, User
from teamclock.core.repositories.base import UnitOfWork
from teamclock.core.tracking.invite_codes import generate_invite_code, normalize_invite_code

logger = structlog.get_logger()


class MembershipService:
    """
    Companies, invite codes and who belongs where.

    Args:
        uow: Unit of work
        code_generator: Produces candidate invite codes (injectable so tests
            can force collisions)
        max_attempts: Candidate codes tried before giving up
    """

    def __init__(
        self,
        uow: UnitOfWork,
        code_generator: Optional[Callable[[], str]] = None,
        max_attempts: Optional[int] = None,
    ):
        self.uow = uow
        self.code_length = settings.INVITE_CODE_LENGTH
        self.code_generator = code_generator or partial(
            generate_invite_code, self.code_length
        )
        self.max_attempts = max_attempts or settings.INVITE_CODE_MAX_ATTEMPTS

    async def _require_user(self, user_id: UUID) -> User:
        user = await self.uow.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _insert_with_unique_code(self, name: str) -> Company:
        for attempt in range(1, self.max_attempts + 1):
            code = self.code_generator().upper()
            if await self.uow.companies.get_by_invite_code(code) is None:
                try:
                    return await self.uow.companies.add(
                        Company(id=uuid4(), name=name, invite_code=code)
                    )
                except ConflictError:
                    # taken between the lookup and the insert
                    pass
            logger.info("Invite code collision", attempt=attempt)

        logger.error(
            "Invite code space exhausted",
            attempts=self.max_attempts,
            code_length=self.code_length,
        )
        raise ResourceExhaustedError(
            f"Failed to generate a unique invite code after {self.max_attempts} attempts"
        )

    # ======================================================================
    # Companies
    # ======================================================================

    async def create_company(self, name: str, creator_id: UUID) -> Company:
        """
        Create a company and make its creator the first member.

        Raises:
            ValidationFailedError: If the name is blank
            NotFoundError: If the creator does not exist
            ResourceExhaustedError: If no unique invite code was found
        """
        name = (name or "").strip()
        if not name:
            raise ValidationFailedError("Company name is required", field="name")

        async with self.uow:
            creator = await self._require_user(creator_id)
            company = await self._insert_with_unique_code(name)

            creator.company_id = company.id
            await self.uow.users.save(creator)
            await self.uow.commit()

        logger.info(
            "Company created",
            company_id=str(company.id),
            creator_id=str(creator_id),
        )
        return company

    async def get_company(self, company_id: UUID) -> Company:
        company = await self.uow.companies.get(company_id)
        if company is None:
            raise NotFoundError("Company", company_id)
        return company

    async def lookup_by_invite_code(self, invite_code: str) -> Optional[Company]:
        """
        Find a company by invite code, ignoring case and surrounding spaces.

        Raises:
            ValidationFailedError: If the code is not 6 alphanumerics
        """
        code = normalize_invite_code(invite_code, self.code_length)
        return await self.uow.companies.get_by_invite_code(code)

    # ======================================================================
    # Membership
    # ======================================================================

    async def join_company(self, user_id: UUID, company_id: UUID) -> User:
        """
        Raises:
            NotFoundError: If the user or company does not exist
        """
        async with self.uow:
            user = await self._require_user(user_id)
            if await self.uow.companies.get(company_id) is None:
                raise NotFoundError("Company", company_id)

            previous = user.company_id
            user.company_id = company_id
            await self.uow.users.save(user)
            await self.uow.commit()

        logger.info(
            "User joined company",
            user_id=str(user_id),
            company_id=str(company_id),
            previous_company_id=str(previous) if previous else None,
        )
        return user

    async def join_by_invite_code(self, user_id: UUID, invite_code: str) -> Company:
        company = await self.lookup_by_invite_code(invite_code)
        if company is None:
            raise NotFoundError("Company with invite code", invite_code.strip().upper())
        await self.join_company(user_id, company.id)
        return company

    async def leave_company(self, user_id: UUID) -> User:
        """
        Clear the user's company. Their sessions stay as they are.

        Raises:
            NotFoundError: If the user does not exist
        """
        async with self.uow:
            user = await self._require_user(user_id)
            previous = user.company_id
            user.company_id = None
            await self.uow.users.save(user)
            await self.uow.commit()

        logger.info(
            "User left company",
            user_id=str(user_id),
            company_id=str(previous) if previous else None,
        )
        return user

    async def team_members(self, company_id: UUID) -> list[User]:
        return await self.uow.users.list_by_company(company_id)
