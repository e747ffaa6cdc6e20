"""File record persistence: the local half of every upload and delete."""
import logging
import mimetypes
from pathlib import PurePosixPath
from typing import Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teledrive.errors import PersistenceError
from teledrive.models.file_record import FileRecord, ROOT_FOLDER, STATUS_COMPLETED

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def content_type_hint_for(name: str) -> str:
    """Lower-cased extension without the dot, or 'unknown'."""
    suffix = PurePosixPath(name).suffix
    return suffix[1:].lower() if len(suffix) > 1 else "unknown"


def mime_type_for(name: str) -> str:
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or DEFAULT_MIME_TYPE


async def create_record(
    db: AsyncSession,
    owner: str,
    name: str,
    size_bytes: int,
    blob_ref: str,
    message_ref: int,
    folder_path: str = ROOT_FOLDER,
) -> FileRecord:
    """Insert one completed file record.

    Only call this after the transport accepted the bytes; the row must never
    point at a blob that was not stored.
    """
    record = FileRecord(
        user_id=owner,
        name=name,
        size_bytes=size_bytes,
        content_type_hint=content_type_hint_for(name),
        mime_type=mime_type_for(name),
        remote_blob_ref=blob_ref,
        remote_message_ref=message_ref,
        folder_path=folder_path or ROOT_FOLDER,
        status=STATUS_COMPLETED,
    )
    try:
        db.add(record)
        await db.commit()
        await db.refresh(record)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Database error saving {name} for {owner}: {e}")
        raise PersistenceError() from e
    return record


async def delete_records(db: AsyncSession, message_ref: int, owner: str) -> int:
    """Delete records for ``message_ref`` owned by ``owner``. Returns rows removed.

    Zero rows is not an error: deleting an already-deleted file succeeds.
    """
    try:
        result = await db.execute(
            delete(FileRecord).where(
                FileRecord.remote_message_ref == message_ref,
                FileRecord.user_id == owner,
            )
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Database error deleting message {message_ref} for {owner}: {e}")
        raise PersistenceError("Failed to delete file record") from e
    return result.rowcount or 0


async def list_records(
    db: AsyncSession, owner: str, folder_path: Optional[str] = None,
) -> list[FileRecord]:
    """All of ``owner``'s records, newest first."""
    query = (
        select(FileRecord)
        .where(FileRecord.user_id == owner)
        .order_by(desc(FileRecord.created_at), desc(FileRecord.id))
    )
    if folder_path:
        query = query.where(FileRecord.folder_path == folder_path)
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to load file records") from e
    return list(result.scalars().all())
