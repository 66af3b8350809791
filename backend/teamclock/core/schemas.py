"""
TeamClock - Pydantic Schemas
============================

Request and response schemas for the API. Requests only check shape;
business rules (blank names, URL pattern, invite code format) are enforced
by the tracking core so every caller gets the same errors.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from teamclock.core.models import SessionStatus
from teamclock.core.tracking.aggregation import format_duration


# ==========================================================================
# Base Schemas
# ==========================================================================

class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class MessageResponse(BaseSchema):
    """Generic message response."""

    message: str
    success: bool = True


class ErrorResponse(BaseSchema):
    """Error payload for every non-2xx response produced by the app."""

    error: str
    detail: Optional[str] = None
    code: Optional[str] = None


class HealthResponse(BaseSchema):
    """Health check response."""

    status: str
    version: str
    environment: str
    storage: str


# ==========================================================================
# Users
# ==========================================================================

class ProfileUpdate(BaseSchema):
    """Profile submission; creates the user the first time."""

    name: str = Field(max_length=255)
    role: str = Field("", max_length=255)
    avatar_ref: Optional[str] = Field(None, max_length=2000)


class UserResponse(BaseSchema):
    id: UUID
    name: str
    role: str
    avatar_ref: str
    company_id: Optional[UUID] = None


# ==========================================================================
# Companies
# ==========================================================================

class CompanyCreate(BaseSchema):
    name: str = Field(max_length=255)


class CompanyJoin(BaseSchema):
    """Join by invite code (usual path) or by company id."""

    invite_code: Optional[str] = Field(None, max_length=16)
    company_id: Optional[UUID] = None


class CompanyResponse(BaseSchema):
    id: UUID
    name: str
    invite_code: str


# ==========================================================================
# Projects
# ==========================================================================

class ProjectCreate(BaseSchema):
    name: str = Field(max_length=255)
    description: Optional[str] = None
    repository_url: Optional[str] = Field(None, max_length=2000)


class ProjectUpdate(BaseSchema):
    """Partial update; omitted fields are left alone."""

    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    repository_url: Optional[str] = Field(None, max_length=2000)


class ProjectResponse(BaseSchema):
    id: UUID
    company_id: UUID
    name: str
    description: Optional[str] = None
    repository_url: Optional[str] = None


# ==========================================================================
# Sessions
# ==========================================================================

class SessionStart(BaseSchema):
    project_name: str = Field(max_length=255)


# sessions.tokens_* are BIGINT columns
MAX_TOKENS = 2**63 - 1


class SessionStop(BaseSchema):
    tokens_input: Optional[int] = Field(None, le=MAX_TOKENS)
    tokens_output: Optional[int] = Field(None, le=MAX_TOKENS)


class SessionResponse(BaseSchema):
    id: UUID
    user_id: UUID
    project_name: str
    start_time: int  # epoch ms
    end_time: Optional[int] = None
    tokens_input: Optional[int] = None
    tokens_output: Optional[int] = None
    status: SessionStatus
    duration_seconds: Optional[int] = None


# ==========================================================================
# Stats
# ==========================================================================

class TotalsResponse(BaseSchema):
    total_seconds: int
    total_input_tokens: int
    total_output_tokens: int
    session_count: int

    @computed_field  # type: ignore[misc]
    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens

    @computed_field  # type: ignore[misc]
    @property
    def formatted_duration(self) -> str:
        return format_duration(self.total_seconds)


class DayGroupResponse(BaseSchema):
    day: date
    label: str
    totals: TotalsResponse
    sessions: list[SessionResponse]


class HistoryReportResponse(BaseSchema):
    totals: TotalsResponse
    days: list[DayGroupResponse]


class ProjectBreakdownResponse(BaseSchema):
    project_name: str
    totals: TotalsResponse


class MemberBreakdownResponse(BaseSchema):
    member: UserResponse
    totals: TotalsResponse


class MemberSummaryResponse(BaseSchema):
    member: UserResponse
    totals: TotalsResponse
    projects: list[ProjectBreakdownResponse]


class ProjectSummaryResponse(BaseSchema):
    project: ProjectResponse
    totals: TotalsResponse
    members: list[MemberBreakdownResponse]


class TeamSummaryResponse(BaseSchema):
    days: int
    totals: TotalsResponse
    members: list[MemberSummaryResponse]
    projects: list[ProjectSummaryResponse]


class PresenceResponse(BaseSchema):
    member: UserResponse
    is_active: bool
    current_projects: list[str]
    active_sessions: list[SessionResponse]


class ProjectStatsResponse(BaseSchema):
    project: ProjectResponse
    days: int
    totals: TotalsResponse
    sessions: list[SessionResponse]
