"""Files API routes (read side)."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from teledrive.auth import Principal, get_current_principal
from teledrive.database import get_db
from teledrive.schemas.file import FileListResponse, FileRecordResponse
from teledrive.services.file_records import list_records

router = APIRouter(prefix="/api/files", tags=["files"])


@router.get("", response_model=FileListResponse)
async def list_files(
    folder_path: Optional[str] = Query(None, alias="folderPath"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's files, newest first."""
    records = await list_records(db, principal.id, folder_path)
    return FileListResponse(files=[FileRecordResponse.model_validate(r) for r in records])
