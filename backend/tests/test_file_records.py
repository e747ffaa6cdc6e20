"""Tests for file record persistence on an in-memory database."""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from conftest import OTHER_PRINCIPAL_ID, PRINCIPAL_ID
from teledrive.errors import PersistenceError
from teledrive.models import FileRecord
from teledrive.services.file_records import (
    content_type_hint_for,
    create_record,
    delete_records,
    list_records,
    mime_type_for,
)


@pytest.mark.parametrize("name,expected", [
    ("hello.txt", "txt"),
    ("Report.PDF", "pdf"),
    ("archive.tar.gz", "gz"),
    ("README", "unknown"),
    ("trailing.", "unknown"),
])
def test_content_type_hint(name, expected):
    assert content_type_hint_for(name) == expected


def test_mime_type_falls_back_to_octet_stream():
    assert mime_type_for("photo.png") == "image/png"
    assert mime_type_for("blob.zz-unknown") == "application/octet-stream"


@pytest.mark.asyncio
async def test_create_record_fills_derived_fields(db_session):
    record = await create_record(db_session, PRINCIPAL_ID, "hello.txt", 5, "file-abc", 101)

    assert record.id is not None
    assert record.user_id == PRINCIPAL_ID
    assert record.size_bytes == 5
    assert record.content_type_hint == "txt"
    assert record.mime_type == "text/plain"
    assert record.remote_blob_ref == "file-abc"
    assert record.remote_message_ref == 101
    assert record.folder_path == "/"
    assert record.status == "completed"
    assert record.created_at is not None


@pytest.mark.asyncio
async def test_create_record_wraps_database_failure():
    db = AsyncMock()
    db.add = lambda obj: None
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))

    with pytest.raises(PersistenceError):
        await create_record(db, PRINCIPAL_ID, "a.txt", 1, "f", 1)

    db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_is_scoped_to_owner(db_session):
    await create_record(db_session, PRINCIPAL_ID, "mine.txt", 1, "f1", 200)
    await create_record(db_session, OTHER_PRINCIPAL_ID, "theirs.txt", 1, "f2", 200)

    removed = await delete_records(db_session, 200, PRINCIPAL_ID)

    assert removed == 1
    remaining = await list_records(db_session, OTHER_PRINCIPAL_ID)
    assert [r.name for r in remaining] == ["theirs.txt"]


@pytest.mark.asyncio
async def test_delete_twice_is_idempotent(db_session):
    await create_record(db_session, PRINCIPAL_ID, "a.txt", 1, "f1", 300)

    assert await delete_records(db_session, 300, PRINCIPAL_ID) == 1
    assert await delete_records(db_session, 300, PRINCIPAL_ID) == 0


@pytest.mark.asyncio
async def test_delete_unknown_message_removes_nothing(db_session):
    assert await delete_records(db_session, 999999, PRINCIPAL_ID) == 0


@pytest.mark.asyncio
async def test_list_newest_first_and_isolated(db_session):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    db_session.add_all([
        FileRecord(user_id=PRINCIPAL_ID, name="old.txt", size_bytes=1, remote_blob_ref="a",
                   remote_message_ref=1, created_at=base),
        FileRecord(user_id=PRINCIPAL_ID, name="new.txt", size_bytes=1, remote_blob_ref="b",
                   remote_message_ref=2, created_at=base + timedelta(hours=2)),
        FileRecord(user_id=PRINCIPAL_ID, name="mid.txt", size_bytes=1, remote_blob_ref="c",
                   remote_message_ref=3, created_at=base + timedelta(hours=1)),
        FileRecord(user_id=OTHER_PRINCIPAL_ID, name="other.txt", size_bytes=1, remote_blob_ref="d",
                   remote_message_ref=4, created_at=base + timedelta(hours=3)),
    ])
    await db_session.commit()

    records = await list_records(db_session, PRINCIPAL_ID)

    assert [r.name for r in records] == ["new.txt", "mid.txt", "old.txt"]
    assert all(r.user_id == PRINCIPAL_ID for r in records)


@pytest.mark.asyncio
async def test_list_filters_by_folder(db_session):
    await create_record(db_session, PRINCIPAL_ID, "root.txt", 1, "f1", 1)
    await create_record(db_session, PRINCIPAL_ID, "doc.pdf", 1, "f2", 2, folder_path="/documents")

    records = await list_records(db_session, PRINCIPAL_ID, "/documents")

    assert [r.name for r in records] == ["doc.pdf"]


@pytest.mark.asyncio
async def test_same_name_uploads_create_independent_records(db_session):
    await create_record(db_session, PRINCIPAL_ID, "dup.txt", 1, "f1", 10)
    await create_record(db_session, PRINCIPAL_ID, "dup.txt", 1, "f2", 11)

    records = await list_records(db_session, PRINCIPAL_ID)

    assert len(records) == 2
    assert {r.remote_message_ref for r in records} == {10, 11}
