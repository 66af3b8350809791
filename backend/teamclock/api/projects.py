"""
TeamClock - Projects API
========================

CRUD for the caller's company projects, plus per-project stats.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from teamclock.api.deps import CurrentMember, Projects, Stats
from teamclock.core.config import settings
from teamclock.core.models import Project, User
from teamclock.core.schemas import (
    MessageResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectStatsResponse,
    ProjectUpdate,
)

router = APIRouter(prefix="/projects", tags=["Projects"])


async def _get_team_project(projects, project_id: UUID, member: User) -> Project:
    """Projects of other companies are reported as missing."""
    project = await projects.get_project(project_id)
    if project.company_id != member.company_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found",
        )
    return project


@router.get(
    "",
    response_model=list[ProjectResponse],
    summary="List projects",
)
async def list_projects(current_member: CurrentMember, projects: Projects) -> list[ProjectResponse]:
    items = await projects.list_projects(current_member.company_id)
    return [ProjectResponse.model_validate(p) for p in items]


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    responses={422: {"description": "Blank name or malformed repository URL"}},
)
async def create_project(
    data: ProjectCreate,
    current_member: CurrentMember,
    projects: Projects,
) -> ProjectResponse:
    project = await projects.create_project(
        current_member.company_id,
        name=data.name,
        description=data.description,
        repository_url=data.repository_url,
    )
    return ProjectResponse.model_validate(project)


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Get project",
)
async def get_project(
    project_id: UUID,
    current_member: CurrentMember,
    projects: Projects,
) -> ProjectResponse:
    project = await _get_team_project(projects, project_id, current_member)
    return ProjectResponse.model_validate(project)


@router.patch(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Update project",
)
async def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    current_member: CurrentMember,
    projects: Projects,
) -> ProjectResponse:
    """
    Update the fields present in the request body.

    Renaming does not touch existing sessions; they keep the old name.
    """
    await _get_team_project(projects, project_id, current_member)
    project = await projects.update_project(project_id, **data.model_dump(exclude_unset=True))
    return ProjectResponse.model_validate(project)


@router.delete(
    "/{project_id}",
    response_model=MessageResponse,
    summary="Delete project",
)
async def delete_project(
    project_id: UUID,
    current_member: CurrentMember,
    projects: Projects,
) -> MessageResponse:
    """Delete a project. Sessions logged under it are kept."""
    await _get_team_project(projects, project_id, current_member)
    await projects.delete_project(project_id)
    return MessageResponse(message="Project deleted", success=True)


@router.get(
    "/{project_id}/stats",
    response_model=ProjectStatsResponse,
    summary="Project time and token totals",
)
async def get_project_stats(
    project_id: UUID,
    current_member: CurrentMember,
    projects: Projects,
    stats: Stats,
    days: int = Query(settings.PROJECT_STATS_WINDOW_DAYS, ge=0, le=3660),
) -> ProjectStatsResponse:
    """Team sessions logged under this project's current name."""
    await _get_team_project(projects, project_id, current_member)
    return ProjectStatsResponse.model_validate(await stats.project_stats(project_id, days))
