"""Error taxonomy shared by the stores and the HTTP layer.

Each error carries the HTTP status it maps to. Routers let these propagate
and a single exception handler in ``main`` renders ``{"error": message}``.
"""

from __future__ import annotations


class StockStreamError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(StockStreamError):
    """Malformed request input, e.g. a login email without an '@'."""

    status_code = 400
    default_message = "Invalid email"


class Unauthorized(StockStreamError):
    """Session token is unknown or revoked."""

    status_code = 401
    default_message = "Invalid session"


class InvalidInstrument(StockStreamError):
    """Symbol is outside the supported instrument universe."""

    status_code = 400
    default_message = "Unsupported stock"


class UnknownUser(StockStreamError):
    """A user id did not resolve in the directory.

    Sessions always point at existing users, so seeing this at the HTTP layer
    means internal state is inconsistent.
    """

    status_code = 404
    default_message = "User not found"


class ConfigurationError(StockStreamError):
    """Invalid environment configuration. Raised at startup only."""
