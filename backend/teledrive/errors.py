"""Gateway error taxonomy.

Every failure the gateway surfaces is a ``GatewayError`` subclass. Each carries
the HTTP status it maps to and a human-readable message that is returned to
the caller unchanged as ``{"error": message}``.
"""
from typing import Optional


class GatewayError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(GatewayError):
    status_code = 401
    default_message = "Unauthorized"


class ConfigurationMissing(GatewayError):
    status_code = 412
    default_message = "Telegram configuration not found"


class InvalidAction(GatewayError):
    status_code = 400
    default_message = "Invalid action"


class MalformedRequest(GatewayError):
    status_code = 400
    default_message = "Malformed request"


class PayloadTooLarge(GatewayError):
    status_code = 413

    def __init__(self, name: str, size_bytes: int, limit_bytes: int):
        self.name = name
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        limit_mb = limit_bytes // (1024 * 1024)
        super().__init__(f"{name} is larger than {limit_mb}MB and cannot be stored")


class TransportRejected(GatewayError):
    """Telegram answered with ``ok: false``. The description is kept verbatim."""
    status_code = 502

    def __init__(self, description: str, error_code: Optional[int] = None):
        self.description = description
        self.error_code = error_code
        super().__init__(f"Telegram API error: {description}")


class TransportUnavailable(GatewayError):
    status_code = 503
    default_message = "Telegram API is unreachable"


class BlobNotFound(GatewayError):
    status_code = 404

    def __init__(self, description: str = "file reference is invalid or expired"):
        self.description = description
        super().__init__(f"Failed to get file info: {description}")


class PersistenceError(GatewayError):
    status_code = 500
    default_message = "Failed to save file metadata"
