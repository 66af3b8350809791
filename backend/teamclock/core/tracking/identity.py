"""Identity Resolver - external identity to internal user record."""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from teamclock.core.config import settings
from teamclock.core.exceptions import NotFoundError, ValidationFailedError
from teamclock.core.models import User
from teamclock.core.repositories.base import UnitOfWork

logger = structlog.get_logger()


class IdentityResolver:
    """Looks up and maintains the user record behind an identity provider subject."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def resolve(self, external_identity_id: str) -> Optional[User]:
        return await self.uow.users.get_by_external_id(external_identity_id)

    async def get_user(self, user_id: UUID) -> User:
        user = await self.uow.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def upsert_profile(
        self,
        external_identity_id: str,
        name: str,
        role: str = "",
        avatar_ref: Optional[str] = None,
    ) -> User:
        """
        Create the user on first profile submission, update it afterwards.

        On update the avatar is only replaced when a new one is given.

        Raises:
            ValidationFailedError: If the name is blank
        """
        name = (name or "").strip()
        if not name:
            raise ValidationFailedError("Name is required", field="name")
        role = (role or "").strip()
        avatar_ref = (avatar_ref or "").strip() or None

        async with self.uow:
            user = await self.uow.users.get_by_external_id(external_identity_id)
            if user is None:
                user = User(
                    id=uuid4(),
                    external_identity_id=external_identity_id,
                    name=name,
                    role=role,
                    avatar_ref=avatar_ref or settings.DEFAULT_AVATAR_REF,
                    company_id=None,
                )
                await self.uow.users.add(user)
                created = True
            else:
                user.name = name
                user.role = role
                if avatar_ref:
                    user.avatar_ref = avatar_ref
                await self.uow.users.save(user)
                created = False
            await self.uow.commit()

        logger.info("Profile saved", user_id=str(user.id), created=created)
        return user
