"""Project API endpoints."""

from fastapi import APIRouter, Depends, Query

from opencode_panel.api.dependencies import get_project_service
from opencode_panel.api.schemas import (
    CreateProjectRequest,
    LogsResponse,
    ProjectDeletedResponse,
    ProjectStateResponse,
)
from opencode_panel.services import CreatedProject, ProjectInfo, ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=list[ProjectInfo])
async def list_projects(
    service: ProjectService = Depends(get_project_service),
) -> list[ProjectInfo]:
    """List workspaces merged with live container state."""
    return await service.list()


@router.post("", status_code=201, response_model=CreatedProject)
async def create_project(
    request: CreateProjectRequest,
    service: ProjectService = Depends(get_project_service),
) -> CreatedProject:
    """Clone (or create) the repository and start the project container."""
    return await service.create(
        name=request.name,
        repo=request.repo,
        description=request.description,
        api_keys=request.api_keys,
        created_by=request.created_by,
    )


@router.post("/{name}/start", response_model=ProjectStateResponse)
async def start_project(
    name: str,
    service: ProjectService = Depends(get_project_service),
) -> ProjectStateResponse:
    await service.start(name)
    return ProjectStateResponse(name=name, running=True)


@router.post("/{name}/stop", response_model=ProjectStateResponse)
async def stop_project(
    name: str,
    service: ProjectService = Depends(get_project_service),
) -> ProjectStateResponse:
    await service.stop(name)
    return ProjectStateResponse(name=name, running=False)


@router.delete("/{name}", response_model=ProjectDeletedResponse)
async def delete_project(
    name: str,
    service: ProjectService = Depends(get_project_service),
) -> ProjectDeletedResponse:
    await service.delete(name)
    return ProjectDeletedResponse(name=name, deleted=True)


@router.get("/{name}/logs", response_model=LogsResponse)
async def project_logs(
    name: str,
    lines: int = Query(default=50, ge=1, le=10000),
    service: ProjectService = Depends(get_project_service),
) -> LogsResponse:
    """Tail of the container's combined stdout/stderr."""
    return LogsResponse(logs=await service.logs(name, lines))
