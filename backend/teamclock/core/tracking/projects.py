"""Project Registry - named projects scoped to a company."""

import re
from typing import Optional
from uuid import UUID, uuid4

import structlog

from teamclock.core.exceptions import NotFoundError, ValidationFailedError
from teamclock.core.models import Project
from teamclock.core.repositories.base import UnitOfWork

logger = structlog.get_logger()

REPOSITORY_URL_PATTERN = re.compile(r"^https?://(www\.)?github\.com/[\w\-.]+/[\w\-.]+/?$")

_UNSET = object()


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationFailedError("Project name is required", field="name")
    return cleaned


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _clean_repository_url(url: Optional[str]) -> Optional[str]:
    url = _clean_optional(url)
    if url is not None and not REPOSITORY_URL_PATTERN.match(url):
        raise ValidationFailedError(
            "Repository URL must look like https://github.com/owner/repo",
            field="repository_url",
        )
    return url


class ProjectRegistry:
    """
    CRUD for projects.

    Sessions keep their own copy of the project name, so renaming or
    deleting a project never rewrites history. Stats that join sessions to
    projects match by the current name only.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def create_project(
        self,
        company_id: UUID,
        name: str,
        description: Optional[str] = None,
        repository_url: Optional[str] = None,
    ) -> Project:
        """
        Raises:
            ValidationFailedError: Blank name or malformed repository URL
            NotFoundError: If the company does not exist
        """
        project = Project(
            id=uuid4(),
            company_id=company_id,
            name=_clean_name(name),
            description=_clean_optional(description),
            repository_url=_clean_repository_url(repository_url),
        )

        async with self.uow:
            if await self.uow.companies.get(company_id) is None:
                raise NotFoundError("Company", company_id)
            await self.uow.projects.add(project)
            await self.uow.commit()

        logger.info("Project created", project_id=str(project.id), company_id=str(company_id))
        return project

    async def get_project(self, project_id: UUID) -> Project:
        project = await self.uow.projects.get(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    async def list_projects(self, company_id: Optional[UUID]) -> list[Project]:
        if company_id is None:
            return []
        return await self.uow.projects.list_by_company(company_id)

    async def update_project(
        self,
        project_id: UUID,
        name=_UNSET,
        description=_UNSET,
        repository_url=_UNSET,
    ) -> Project:
        """
        Partial update; only the fields passed are changed.

        Passing None (or a blank string) for description or repository_url
        clears it.
        """
        changes = {}
        if name is not _UNSET:
            changes["name"] = _clean_name(name)
        if description is not _UNSET:
            changes["description"] = _clean_optional(description)
        if repository_url is not _UNSET:
            changes["repository_url"] = _clean_repository_url(repository_url)

        async with self.uow:
            project = await self.get_project(project_id)
            for field_name, value in changes.items():
                setattr(project, field_name, value)
            await self.uow.projects.save(project)
            await self.uow.commit()

        logger.info("Project updated", project_id=str(project_id), fields=sorted(changes))
        return project

    async def delete_project(self, project_id: UUID) -> None:
        async with self.uow:
            project = await self.get_project(project_id)
            await self.uow.projects.delete(project)
            await self.uow.commit()

        logger.info("Project deleted", project_id=str(project_id))
