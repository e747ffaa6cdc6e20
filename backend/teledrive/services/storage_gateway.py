"""File-operations gateway.

Brokers upload, download and delete between the caller, the ``files`` table
and the Telegram channel. The two stores share no transaction, so every
operation is an ordered sequence of independent steps:

    upload   store bytes remotely -> insert record
    download resolve + fetch remotely (no record lookup)
    delete   retract remote message (soft) -> delete record (hard)

A remote store followed by a failed insert leaves an orphaned message in the
channel. Nothing here compensates for it; ``on_orphaned_blob`` is the hook a
reconciliation job can attach to.
"""
import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from teledrive.auth import Principal
from teledrive.errors import InvalidAction, MalformedRequest, PersistenceError
from teledrive.models.file_record import FileRecord, ROOT_FOLDER
from teledrive.schemas.storage import StorageRequest
from teledrive.services.credentials import TelegramCredentials, resolve_credentials
from teledrive.services.file_records import create_record, delete_records
from teledrive.services.telegram_transport import StoredBlob, TelegramTransport

logger = logging.getLogger(__name__)


class StorageAction(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE = "delete"


def parse_action(raw: Optional[str]) -> StorageAction:
    try:
        return StorageAction(raw)
    except ValueError:
        raise InvalidAction(f"Invalid action: {raw!r}") from None


def decode_file_data(file_data: Optional[str]) -> bytes:
    """Decode ``data:<mime>;base64,<payload>`` (or a bare base64 string)."""
    if not file_data:
        raise MalformedRequest("fileData is required for upload")

    payload = file_data
    if file_data.startswith("data:"):
        header, sep, payload = file_data.partition(",")
        if not sep or not header.endswith(";base64"):
            raise MalformedRequest("fileData must be a base64 data URI")

    try:
        return base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError):
        raise MalformedRequest("fileData is not valid base64") from None


@dataclass
class DownloadResult:
    content: bytes
    filename: Optional[str] = None


@dataclass
class DeleteOutcome:
    """``removed`` is the hard result; the remote fields are informational."""
    removed: int
    remote_retracted: bool
    remote_error: Optional[str] = None


GatewayResult = Union[FileRecord, DownloadResult, DeleteOutcome]
OrphanHook = Callable[[str, StoredBlob, str], None]


def log_orphaned_blob(owner: str, blob: StoredBlob, name: str) -> None:
    logger.error(
        f"Orphaned Telegram message {blob.message_ref} (file_id {blob.blob_ref}) "
        f"for {name!r} owned by {owner}: metadata insert failed"
    )


class StorageGateway:
    def __init__(self, transport: TelegramTransport, on_orphaned_blob: OrphanHook = log_orphaned_blob):
        self.transport = transport
        self.on_orphaned_blob = on_orphaned_blob

    async def dispatch(
        self, db: AsyncSession, principal: Principal, request: StorageRequest,
    ) -> GatewayResult:
        """Resolve credentials, then route on the request's action."""
        credentials = await resolve_credentials(db, principal.id)
        action = parse_action(request.action)

        if action is StorageAction.UPLOAD:
            return await self.upload(
                db, principal, credentials,
                name=request.file_name,
                file_data=request.file_data,
                folder_path=request.folder_path,
            )
        if action is StorageAction.DOWNLOAD:
            return await self.download(credentials, request.file_id, request.file_name)
        if action is StorageAction.DELETE:
            return await self.delete(db, principal, credentials, _message_ref_from(request))
        raise InvalidAction(f"Invalid action: {action.value!r}")

    async def upload(
        self,
        db: AsyncSession,
        principal: Principal,
        credentials: TelegramCredentials,
        name: Optional[str],
        file_data: Optional[str],
        folder_path: Optional[str] = None,
    ) -> FileRecord:
        if not name or not name.strip():
            raise MalformedRequest("fileName is required for upload")
        raw_bytes = decode_file_data(file_data)

        blob = await self.transport.store(credentials, raw_bytes, name)
        try:
            record = await create_record(
                db, principal.id, name, len(raw_bytes),
                blob.blob_ref, blob.message_ref, folder_path or ROOT_FOLDER,
            )
        except PersistenceError:
            self.on_orphaned_blob(principal.id, blob, name)
            raise

        logger.info(f"Uploaded {name} for {principal.id} as record {record.id}")
        return record

    async def download(
        self, credentials: TelegramCredentials, blob_ref: Optional[str], filename: Optional[str] = None,
    ) -> DownloadResult:
        if not blob_ref:
            raise MalformedRequest("fileId is required for download")
        content = await self.transport.locate(credentials, blob_ref)
        return DownloadResult(content=content, filename=filename)

    async def delete(
        self, db: AsyncSession, principal: Principal, credentials: TelegramCredentials, message_ref: int,
    ) -> DeleteOutcome:
        retracted = await self.transport.retract(credentials, message_ref)
        removed = await delete_records(db, message_ref, principal.id)
        logger.info(
            f"Deleted message {message_ref} for {principal.id}: "
            f"{removed} record(s) removed, remote retracted={retracted.ok}"
        )
        return DeleteOutcome(
            removed=removed, remote_retracted=retracted.ok, remote_error=retracted.description,
        )


def _message_ref_from(request: StorageRequest) -> int:
    """``messageId``, or a numeric ``fileId`` as sent by older clients."""
    if request.message_id is not None:
        return request.message_id
    try:
        return int(request.file_id)
    except (TypeError, ValueError):
        raise MalformedRequest("messageId is required for delete") from None
