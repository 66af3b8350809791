"""
TeamClock - API Dependencies
============================

Shared dependencies for FastAPI endpoints: identity tokens, the unit of
work, tracking services and the current user.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from teamclock.core.config import settings
from teamclock.core.database import get_db
from teamclock.core.models import User
from teamclock.core.repositories import SqlUnitOfWork, UnitOfWork
from teamclock.core.tracking import (
    IdentityResolver,
    MembershipService,
    ProjectRegistry,
    SessionLedger,
    StatsService,
)


# ==========================================================================
# Security
# ==========================================================================

security = HTTPBearer(auto_error=False)


# ==========================================================================
# Token Utilities
# ==========================================================================

def create_identity_token(
    external_identity_id: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Mint a token the way the identity provider does.

    Production tokens come from the provider; this is for local development,
    seeding and tests, and only works with the shared HS secret.

    Args:
        external_identity_id: Provider subject id
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.IDENTITY_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": external_identity_id,
        "exp": now + expires_delta,
        "iat": now,
        "jti": secrets.token_hex(16),
    }
    if settings.IDENTITY_JWT_AUDIENCE:
        payload["aud"] = settings.IDENTITY_JWT_AUDIENCE
    if settings.IDENTITY_JWT_ISSUER:
        payload["iss"] = settings.IDENTITY_JWT_ISSUER

    return jwt.encode(
        payload,
        settings.IDENTITY_JWT_SECRET,
        algorithm=settings.IDENTITY_JWT_ALGORITHM,
    )


def decode_identity_token(token: str) -> dict:
    """
    Decode and validate an identity provider token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.IDENTITY_JWT_SECRET,
            algorithms=[settings.IDENTITY_JWT_ALGORITHM],
            audience=settings.IDENTITY_JWT_AUDIENCE,
            issuer=settings.IDENTITY_JWT_ISSUER,
            options={"verify_aud": settings.IDENTITY_JWT_AUDIENCE is not None},
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


# ==========================================================================
# Unit of Work & Services
# ==========================================================================

async def get_uow(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UnitOfWork:
    """
    SQL unit of work bound to the request's database session.

    In memory mode the app overrides this dependency with its own store.
    """
    return SqlUnitOfWork(db)


Uow = Annotated[UnitOfWork, Depends(get_uow)]


def get_identity_resolver(uow: Uow) -> IdentityResolver:
    return IdentityResolver(uow)


def get_ledger(uow: Uow) -> SessionLedger:
    return SessionLedger(uow)


def get_membership(uow: Uow) -> MembershipService:
    return MembershipService(uow)


def get_project_registry(uow: Uow) -> ProjectRegistry:
    return ProjectRegistry(uow)


def get_stats(uow: Uow) -> StatsService:
    return StatsService(uow)


Identity = Annotated[IdentityResolver, Depends(get_identity_resolver)]
Ledger = Annotated[SessionLedger, Depends(get_ledger)]
Membership = Annotated[MembershipService, Depends(get_membership)]
Projects = Annotated[ProjectRegistry, Depends(get_project_registry)]
Stats = Annotated[StatsService, Depends(get_stats)]


# ==========================================================================
# Current Identity / User
# ==========================================================================

async def get_current_identity(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> str:
    """
    External identity id of the caller.

    Raises:
        HTTPException: If not authenticated
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_identity_token(credentials.credentials)

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return subject


async def get_current_user(
    external_identity_id: Annotated[str, Depends(get_current_identity)],
    identity: Identity,
) -> User:
    """
    The caller's user record.

    Raises:
        HTTPException: 403 if the caller has not submitted a profile yet
    """
    user = await identity.resolve(external_identity_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile not created",
        )
    return user


async def get_current_member(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    The caller, who must belong to a company.

    Raises:
        HTTPException: 403 if the caller is not in a company
    """
    if current_user.company_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a member of any company",
        )
    return current_user


# ==========================================================================
# Type Aliases for Dependency Injection
# ==========================================================================

CurrentIdentity = Annotated[str, Depends(get_current_identity)]
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentMember = Annotated[User, Depends(get_current_member)]
