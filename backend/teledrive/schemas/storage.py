"""Request/response envelopes for the single storage endpoint."""
from typing import Optional

from pydantic import field_validator

from teledrive.schemas.base import CamelModel
from teledrive.schemas.file import FileRecordResponse


class StorageRequest(CamelModel):
    """``action`` is validated by the gateway, not here, so an unknown value
    is reported as an invalid action rather than a schema error."""
    action: str
    file_data: Optional[str] = None
    file_name: Optional[str] = None
    file_id: Optional[str] = None
    message_id: Optional[int] = None
    folder_path: Optional[str] = None

    @field_validator("file_id", mode="before")
    @classmethod
    def coerce_numeric_file_id(cls, v):
        """Older clients put the numeric message id in fileId."""
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v


class UploadResponse(CamelModel):
    success: bool = True
    file: FileRecordResponse


class DeleteResponse(CamelModel):
    success: bool = True
    removed: int = 0
    remote_retracted: bool = True


class ErrorResponse(CamelModel):
    error: str
