"""
TeamClock - Companies API
=========================

Company creation, invite-code lookup and membership.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from teamclock.api.deps import CurrentMember, CurrentUser, Membership
from teamclock.core.schemas import (
    CompanyCreate,
    CompanyJoin,
    CompanyResponse,
    MessageResponse,
    UserResponse,
)

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.post(
    "",
    response_model=CompanyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a company",
    responses={
        201: {"description": "Company created, caller joined it"},
        503: {"description": "Could not generate a unique invite code"},
    },
)
async def create_company(
    data: CompanyCreate,
    current_user: CurrentUser,
    membership: Membership,
) -> CompanyResponse:
    """Create a company with a fresh invite code and join the caller to it."""
    company = await membership.create_company(data.name, current_user.id)
    return CompanyResponse.model_validate(company)


@router.get(
    "/lookup",
    response_model=CompanyResponse,
    summary="Find a company by invite code",
    responses={
        404: {"description": "No company with this code"},
        422: {"description": "Malformed invite code"},
    },
)
async def lookup_company_by_invite_code(
    current_user: CurrentUser,
    membership: Membership,
    invite_code: str = Query(..., max_length=16),
) -> CompanyResponse:
    """Case-insensitive lookup, used to preview a company before joining."""
    company = await membership.lookup_by_invite_code(invite_code)
    if company is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Company not found",
        )
    return CompanyResponse.model_validate(company)


@router.post(
    "/join",
    response_model=CompanyResponse,
    summary="Join a company",
    responses={404: {"description": "Unknown invite code or company"}},
)
async def join_company(
    data: CompanyJoin,
    current_user: CurrentUser,
    membership: Membership,
) -> CompanyResponse:
    """Join by invite code, or by company id when the client already resolved it."""
    if data.invite_code:
        company = await membership.join_by_invite_code(current_user.id, data.invite_code)
    elif data.company_id is not None:
        await membership.join_company(current_user.id, data.company_id)
        company = await membership.get_company(data.company_id)
    else:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="invite_code or company_id is required",
        )
    return CompanyResponse.model_validate(company)


@router.post(
    "/leave",
    response_model=MessageResponse,
    summary="Leave the current company",
)
async def leave_company(
    current_user: CurrentUser,
    membership: Membership,
) -> MessageResponse:
    """Leave the caller's company. Past sessions stay attributed to the caller."""
    await membership.leave_company(current_user.id)
    return MessageResponse(message="Left company", success=True)


def _require_own_company(current_member, company_id: UUID) -> None:
    if current_member.company_id != company_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Company not found",
        )


@router.get(
    "/{company_id}",
    response_model=CompanyResponse,
    summary="Get the caller's company",
)
async def get_company(
    company_id: UUID,
    current_member: CurrentMember,
    membership: Membership,
) -> CompanyResponse:
    _require_own_company(current_member, company_id)
    return CompanyResponse.model_validate(await membership.get_company(company_id))


@router.get(
    "/{company_id}/members",
    response_model=list[UserResponse],
    summary="List team members",
)
async def list_team_members(
    company_id: UUID,
    current_member: CurrentMember,
    membership: Membership,
) -> list[UserResponse]:
    _require_own_company(current_member, company_id)
    members = await membership.team_members(company_id)
    return [UserResponse.model_validate(m) for m in members]
