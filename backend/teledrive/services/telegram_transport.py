"""Async Telegram Bot API client used as the blob store.

Three remote operations back the gateway:

- ``store``   -> sendDocument to the principal's channel
- ``locate``  -> getFile, then fetch the bytes from the returned file path
- ``retract`` -> deleteMessage (best effort)

The file path returned by getFile is short-lived and is never handed back to
callers or persisted; ``locate`` resolves and consumes it in one call.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

import aiohttp

from teledrive.config import settings
from teledrive.errors import (
    BlobNotFound,
    GatewayError,
    PayloadTooLarge,
    TransportRejected,
    TransportUnavailable,
)
from teledrive.services.credentials import TelegramCredentials

logger = logging.getLogger(__name__)

# sendDocument may come back classified as another media type
_MEDIA_KEYS = ("document", "animation", "video", "audio", "voice")


@dataclass(frozen=True)
class StoredBlob:
    blob_ref: str
    message_ref: int


@dataclass(frozen=True)
class RetractOutcome:
    """Result of a best-effort deleteMessage. A failure here is soft."""
    ok: bool
    description: Optional[str] = None


@dataclass
class BatchItemResult:
    name: str
    blob: Optional[StoredBlob] = None
    error: Optional[GatewayError] = None

    @property
    def skipped(self) -> bool:
        return self.blob is None


def safe_error_message(e: Exception, fallback: str = "connection failed") -> str:
    """Some aiohttp errors stringify to ''. Fall back to the class name."""
    msg = str(e).strip()
    if not msg:
        msg = f"{type(e).__name__}: {fallback}"
    return msg


class TelegramTransport:
    """Async HTTP client for the Telegram Bot API.

    Supports ``async with`` to share one connection pool across calls; used
    bare, each call opens and closes its own session.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.TELEGRAM_API_URL).rstrip("/")
        self.max_upload_bytes = max_upload_bytes or settings.MAX_UPLOAD_BYTES
        self._timeout = aiohttp.ClientTimeout(total=timeout or settings.TELEGRAM_TIMEOUT_SECONDS)
        self._session: Optional[aiohttp.ClientSession] = None

    async def open(self) -> None:
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "TelegramTransport":
        await self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ── Public operations ───────────────────────────────────────────

    def check_size(self, name: str, raw_bytes: bytes) -> None:
        """Raise PayloadTooLarge before any bytes go over the wire."""
        if len(raw_bytes) > self.max_upload_bytes:
            raise PayloadTooLarge(name, len(raw_bytes), self.max_upload_bytes)

    async def store(self, credentials: TelegramCredentials, raw_bytes: bytes, name: str) -> StoredBlob:
        """Send ``raw_bytes`` as a document to the configured channel."""
        self.check_size(name, raw_bytes)

        form = aiohttp.FormData()
        form.add_field("chat_id", credentials.channel_id)
        form.add_field("caption", f"📁 {name}")
        form.add_field("document", raw_bytes, filename=name, content_type="application/octet-stream")

        payload = await self._request_json(
            credentials, "POST", self._method_url(credentials, "sendDocument"), data=form,
        )
        if not payload.get("ok"):
            raise TransportRejected(
                payload.get("description") or "unknown error", payload.get("error_code"),
            )

        message = payload.get("result") or {}
        message_ref = message.get("message_id")
        blob_ref = None
        for key in _MEDIA_KEYS:
            media = message.get(key)
            if isinstance(media, dict) and media.get("file_id"):
                blob_ref = media["file_id"]
                break

        if not blob_ref or message_ref is None:
            raise TransportRejected("sendDocument response did not include a file id and message id")

        logger.info(f"Stored {name} ({len(raw_bytes)} bytes) as message {message_ref}")
        return StoredBlob(blob_ref=blob_ref, message_ref=int(message_ref))

    async def store_many(
        self, credentials: TelegramCredentials, items: list[tuple[str, bytes]],
    ) -> list[BatchItemResult]:
        """Store several files in order. Oversized items are skipped, not fatal."""
        results = []
        for name, raw_bytes in items:
            try:
                blob = await self.store(credentials, raw_bytes, name)
            except PayloadTooLarge as e:
                logger.warning(f"Skipping {name}: {e.message}")
                results.append(BatchItemResult(name=name, error=e))
                continue
            results.append(BatchItemResult(name=name, blob=blob))
        return results

    async def locate(self, credentials: TelegramCredentials, blob_ref: str) -> bytes:
        """Fetch the bytes behind ``blob_ref``. No retry is attempted."""
        async with self._session_scope() as session:
            payload = await self._send(
                credentials, session, "GET",
                self._method_url(credentials, "getFile"), params={"file_id": blob_ref},
            )
            file_path = (payload.get("result") or {}).get("file_path")
            if not payload.get("ok") or not file_path:
                raise BlobNotFound(payload.get("description") or "file reference is invalid or expired")

            url = f"{self.base_url}/file/bot{credentials.bot_token}/{file_path}"
            try:
                async with session.get(url) as resp:
                    if resp.status >= 400:
                        raise TransportUnavailable(f"File download failed with HTTP {resp.status}")
                    return await resp.read()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise TransportUnavailable(
                    f"File download failed: {self._redact(credentials, safe_error_message(e))}"
                ) from e

    async def retract(self, credentials: TelegramCredentials, message_ref: int) -> RetractOutcome:
        """Delete the channel message carrying a blob. Failures are logged, not raised."""
        try:
            payload = await self._request_json(
                credentials, "POST", self._method_url(credentials, "deleteMessage"),
                json={"chat_id": credentials.channel_id, "message_id": message_ref},
            )
        except TransportUnavailable as e:
            logger.warning(f"Failed to delete message {message_ref} from Telegram: {e.message}")
            return RetractOutcome(ok=False, description=e.message)

        if not payload.get("ok"):
            description = payload.get("description") or "unknown error"
            logger.warning(f"Failed to delete message {message_ref} from Telegram: {description}")
            return RetractOutcome(ok=False, description=description)
        return RetractOutcome(ok=True)

    # ── HTTP plumbing ───────────────────────────────────────────────

    def _method_url(self, credentials: TelegramCredentials, method: str) -> str:
        return f"{self.base_url}/bot{credentials.bot_token}/{method}"

    @staticmethod
    def _redact(credentials: TelegramCredentials, text: str) -> str:
        return text.replace(credentials.bot_token, "***")

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Persistent session if open, otherwise a one-off."""
        if self._session:
            yield self._session
            return
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            yield session

    async def _request_json(
        self, credentials: TelegramCredentials, method: str, url: str, **kwargs: Any,
    ) -> dict:
        async with self._session_scope() as session:
            return await self._send(credentials, session, method, url, **kwargs)

    async def _send(
        self, credentials: TelegramCredentials, session: aiohttp.ClientSession,
        method: str, url: str, **kwargs: Any,
    ) -> dict:
        """Make one Bot API call and return its JSON envelope.

        Connection failures and bodies that are not a Bot API envelope (proxy
        error pages, empty 5xx answers) raise TransportUnavailable. Only a real
        envelope, ``ok`` or not, is returned to the caller.
        """
        try:
            async with session.request(method, url, **kwargs) as resp:
                try:
                    payload = await resp.json(content_type=None)
                except ValueError:
                    payload = None
                if not isinstance(payload, dict):
                    text = self._redact(credentials, (await resp.text())[:200])
                    raise TransportUnavailable(f"HTTP {resp.status}: {text}".strip())
                return payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportUnavailable(
                f"Telegram API is unreachable: {self._redact(credentials, safe_error_message(e))}"
            ) from e
