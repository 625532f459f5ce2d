"""Errors raised by the sync layer."""

from typing import Optional


class SyncError(Exception):
    """Base class for every failure talking to the persistence gateway."""

    status_code: int = 500

    def __init__(self, message: str = "", key: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        self.key = key


class UnauthorizedError(SyncError):
    """No identity was supplied; the caller should send the user to sign-in."""

    status_code = 401


class BadRequestError(SyncError):
    """The key was missing or unknown, or the value was missing or invalid."""

    status_code = 400


class NotFoundError(SyncError):
    """The key has never been stored for this user."""

    status_code = 404


class BackendError(SyncError):
    """The store failed, or the network did (timeouts included)."""

    status_code = 500


class UnknownError(SyncError):
    """Anything the gateway could not classify."""

    status_code = 500


def error_for_status(status_code: int, message: str = "", key: Optional[str] = None) -> SyncError:
    """Map an HTTP status code onto the error taxonomy."""
    if status_code == 401:
        return UnauthorizedError(message, key)
    if status_code == 400:
        return BadRequestError(message, key)
    if status_code == 404:
        return NotFoundError(message, key)
    if status_code >= 500:
        return BackendError(message, key)
    return UnknownError(message, key)
