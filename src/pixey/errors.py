"""Domain exceptions.

Services raise these; the global handlers in ``pixey.middleware.error_handler``
turn them into ``{"success": false, "error": ...}`` responses with the
matching HTTP status.
"""

from __future__ import annotations


class PixeyError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(PixeyError):
    """Missing or malformed request data."""

    status_code = 400


class InsufficientPixels(PixeyError):
    """The wallet cannot afford the requested placement."""

    status_code = 400

    def __init__(self, cost: int, balance: int) -> None:
        super().__init__(f"Not enough pixels. Need {cost}, have {balance}")
        self.cost = cost
        self.balance = balance


class BurnVerificationError(PixeyError):
    """The submitted burn transaction does not qualify for credit."""

    status_code = 400


class AuthenticationError(PixeyError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class PermissionDenied(PixeyError):
    """Authenticated, but not allowed to act on this resource."""

    status_code = 403


class NotFound(PixeyError):
    status_code = 404


class Conflict(PixeyError):
    """Uniqueness violation (duplicate username, replayed burn signature)."""

    status_code = 409


class BatchTooLarge(PixeyError):
    status_code = 413


class UpstreamError(PixeyError):
    """Database or RPC dependency failed. Never retried."""

    status_code = 500
