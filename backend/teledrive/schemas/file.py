"""File record response schemas."""
import uuid
from datetime import datetime

from teledrive.schemas.base import CamelORMModel


class FileRecordResponse(CamelORMModel):
    id: uuid.UUID
    user_id: str
    name: str
    size_bytes: int
    content_type_hint: str
    mime_type: str
    remote_blob_ref: str
    remote_message_ref: int
    folder_path: str
    status: str
    created_at: datetime


class FileListResponse(CamelORMModel):
    files: list[FileRecordResponse]
