"""Storage gateway route: one POST endpoint for upload, download and delete."""
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from teledrive.auth import Principal, get_current_principal
from teledrive.database import get_db
from teledrive.schemas.file import FileRecordResponse
from teledrive.schemas.storage import DeleteResponse, ErrorResponse, StorageRequest, UploadResponse
from teledrive.services.storage_gateway import DeleteOutcome, DownloadResult, StorageGateway
from teledrive.services.telegram_transport import TelegramTransport

router = APIRouter(prefix="/api", tags=["storage"])

_gateway = StorageGateway(TelegramTransport())


def get_gateway() -> StorageGateway:
    """FastAPI dependency; overridden in tests."""
    return _gateway


@router.post(
    "/storage",
    responses={
        201: {"model": UploadResponse},
        200: {"model": DeleteResponse, "description": "Delete result, or the raw bytes for a download"},
        **{code: {"model": ErrorResponse} for code in (400, 401, 404, 412, 413, 500, 502, 503)},
    },
)
async def handle_storage_request(
    body: StorageRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    gateway: StorageGateway = Depends(get_gateway),
):
    """Upload, download or delete a file in the caller's Telegram channel."""
    result = await gateway.dispatch(db, principal, body)

    if isinstance(result, DownloadResult):
        return Response(
            content=result.content,
            media_type="application/octet-stream",
            headers={"Content-Disposition": _attachment_header(result.filename)},
        )

    if isinstance(result, DeleteOutcome):
        response = DeleteResponse(removed=result.removed, remote_retracted=result.remote_retracted)
        return JSONResponse(jsonable_encoder(response.model_dump(by_alias=True)))

    response = UploadResponse(file=FileRecordResponse.model_validate(result))
    return JSONResponse(jsonable_encoder(response.model_dump(by_alias=True)), status_code=201)


def _attachment_header(filename: Optional[str]) -> str:
    if not filename:
        return "attachment"
    return f"attachment; filename*=UTF-8''{quote(filename)}"
