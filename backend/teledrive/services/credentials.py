"""Resolve a principal's Telegram bot credentials from their profile."""
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teledrive.errors import ConfigurationMissing, PersistenceError
from teledrive.models.profile import Profile


@dataclass(frozen=True)
class TelegramCredentials:
    bot_token: str
    channel_id: str

    def __repr__(self) -> str:
        return f"TelegramCredentials(bot_token='***', channel_id={self.channel_id!r})"


async def resolve_credentials(db: AsyncSession, principal_id: str) -> TelegramCredentials:
    """Look up the bot token and channel id for ``principal_id``.

    Re-read on every request so a credential change made through setup takes
    effect without a restart. Raises ConfigurationMissing if either value is
    absent.
    """
    try:
        profile = await db.get(Profile, principal_id)
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to load Telegram configuration: {e}") from e

    bot_token = (profile.bot_token or "").strip() if profile else ""
    channel_id = (profile.channel_id or "").strip() if profile else ""
    if not bot_token or not channel_id:
        raise ConfigurationMissing()
    return TelegramCredentials(bot_token=bot_token, channel_id=channel_id)
