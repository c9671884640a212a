"""Upload API — spreadsheet intake and project creation."""
import os
import uuid
import logging
from fastapi import APIRouter, UploadFile, File, Form, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boq_pareto.api.deps import get_db, get_file_store, get_project_repository
from boq_pareto.config import ALLOWED_UPLOAD_EXTENSIONS, MAX_UPLOAD_MB
from boq_pareto.db.repositories import ProjectRepository
from boq_pareto.models.api_schemas import UploadResponse
from boq_pareto.services.errors import InternalError, InvalidArgumentError, StorageError
from boq_pareto.services.file_store import LocalFileStore

logger = logging.getLogger("boq-pareto-upload")

router = APIRouter(prefix="/api", tags=["Upload"])


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    project_name: str = Form(...),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    projects: ProjectRepository = Depends(get_project_repository),
    files: LocalFileStore = Depends(get_file_store),
):
    """
    Stores a BoQ spreadsheet and registers a project in status ``uploaded``.
    Processing is a separate call to ``POST /api/analysis/process``.
    """
    if not project_name.strip():
        raise InvalidArgumentError("Project name is required")

    file_name = os.path.basename(file.filename or "")
    ext = os.path.splitext(file_name)[-1].lower()
    if ext not in ALLOWED_UPLOAD_EXTENSIONS:
        raise InvalidArgumentError(
            f"Unsupported file type '{ext or file_name}'. Allowed: {', '.join(ALLOWED_UPLOAD_EXTENSIONS)}"
        )

    data = await file.read()
    if not data:
        raise InvalidArgumentError("Uploaded file is empty")
    if len(data) > MAX_UPLOAD_MB * 1024 * 1024:
        raise InvalidArgumentError(f"File exceeds the {MAX_UPLOAD_MB} MB upload limit")

    project_id = str(uuid.uuid4())
    key = f"{project_id}/{file_name}"
    try:
        files.upload(key, data)
    except StorageError as exc:
        logger.error(f"[{project_id}] Upload storage failed: {exc}", extra={"project_id": project_id})
        raise InternalError("Failed to store uploaded file") from exc

    project = await projects.create(project_id, project_name.strip(), file_name, key)
    await db.commit()
    logger.info(f"[{project_id}] Uploaded {file_name} ({len(data)} bytes)", extra={"project_id": project_id})

    return UploadResponse(project_id=project.id, file_name=project.file_name, uploaded_at=project.uploaded_at)
