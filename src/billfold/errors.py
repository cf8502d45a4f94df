"""Exception hierarchy shared by services, handlers and the front door.

Every error carries the HTTP ``status`` the front door should answer with.
"""

from __future__ import annotations


class BillfoldError(Exception):
    """Base for all billfold errors."""

    status: int = 500


class ValidationError(BillfoldError):
    """400: the request body or a path parameter is invalid."""

    status = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(BillfoldError):
    """404: the addressed resource does not exist."""

    status = 404

    def __init__(self, resource: str, id: str | None = None) -> None:  # noqa: A002
        message = f"{resource} with id {id} not found" if id else f"{resource} not found"
        super().__init__(message)
        self.resource = resource
        self.id = id


class ConflictError(BillfoldError):
    """409: the resource already exists."""

    status = 409


class ReadOnlyError(BillfoldError):
    """423: the month is locked against edits."""

    status = 423

    def __init__(self, month: str) -> None:
        super().__init__(f"Month {month} is read-only. Unlock it to make changes.")
        self.month = month


class StorageError(BillfoldError):
    """500: a data file could not be read or written."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
