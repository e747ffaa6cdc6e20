"""Profile model - per-principal Telegram bot configuration.

Rows are written by the external setup flow; the gateway only reads them.
"""
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from teledrive.models.base import Base, TimestampMixin


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    bot_token: Mapped[str | None] = mapped_column(String(200), nullable=True)
    channel_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bot_username: Mapped[str | None] = mapped_column(String(100), nullable=True)
    telegram_setup_completed: Mapped[bool] = mapped_column(Boolean, default=False)
