"""FileRecord model - file metadata (actual bytes live in a Telegram channel message)."""
import uuid
from sqlalchemy import String, BigInteger, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from teledrive.models.base import Base, CreatedAtMixin, UserMixin

STATUS_COMPLETED = "completed"
ROOT_FOLDER = "/"


class FileRecord(Base, CreatedAtMixin, UserMixin):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    content_type_hint: Mapped[str] = mapped_column(String(50), nullable=False, default="unknown")
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False, default="application/octet-stream")

    # Set together, once, from the sendDocument response
    remote_blob_ref: Mapped[str] = mapped_column(String(255), nullable=False)
    remote_message_ref: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    folder_path: Mapped[str] = mapped_column(String(1000), nullable=False, default=ROOT_FOLDER)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_COMPLETED)

    __table_args__ = (
        Index("idx_files_user_message", "user_id", "remote_message_ref"),
        Index("idx_files_user_created_at", "user_id", "created_at"),
    )
