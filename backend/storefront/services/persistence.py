# Overview: Commit boundary shared by every service that writes to the catalog store.

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db


class PersistenceError(Exception):
    """Raised when a write to the catalog store fails; the session is rolled back."""
    def __init__(self, message: str = "Persistence failed", details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def commit_or_raise(message: str = "Persistence failed") -> None:
    """
    Commit the current unit of work or roll all of it back.

    Callers stage every row of an operation before calling this, so a failure
    never leaves a partial write behind. There is no retry: after a rollback
    the staged rows are gone and the caller must re-run the operation.
    """
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError(message) from exc
