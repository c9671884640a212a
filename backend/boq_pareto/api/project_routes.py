"""Project API — listing and deletion."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boq_pareto.api.deps import get_db, get_file_store, get_project_repository
from boq_pareto.db.repositories import ProjectRepository
from boq_pareto.models.api_schemas import DeleteProjectResponse, ProjectListResponse, ProjectOut
from boq_pareto.services.errors import NotFoundError, StorageError
from boq_pareto.services.file_store import LocalFileStore

logger = logging.getLogger("boq-pareto-projects")

router = APIRouter(prefix="/api/projects", tags=["Projects"])


@router.get("", response_model=ProjectListResponse)
async def list_projects(projects: ProjectRepository = Depends(get_project_repository)):
    rows = await projects.list_all()
    return ProjectListResponse(projects=[ProjectOut.model_validate(p) for p in rows])


@router.delete("/{project_id}", response_model=DeleteProjectResponse)
async def delete_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    projects: ProjectRepository = Depends(get_project_repository),
    files: LocalFileStore = Depends(get_file_store),
):
    """Deletes the stored file, then the project with its line items and insights."""
    project = await projects.get_project(project_id)
    if project is None:
        raise NotFoundError("Project not found")

    try:
        files.remove(project.file_path)
    except StorageError as exc:
        logger.warning(f"Failed to delete file {project.file_path}: {exc}", extra={"project_id": project_id})

    await projects.delete(project_id)
    await db.commit()
    return DeleteProjectResponse(success=True, message="Project deleted successfully")
