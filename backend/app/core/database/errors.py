"""
Database error taxonomy and classification helpers.

Driver errors (psycopg, SQLAlchemy) are mapped onto a small set of tagged
variants so callers can branch on ``isinstance`` / ``code`` instead of
digging through wrapped exceptions.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import NoResultFound

# https://www.postgresql.org/docs/current/errcodes-appendix.html
UNIQUE_VIOLATION = "23505"


class DatabaseError(Exception):
    """Base class for classified database errors."""

    code: str | None = None

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ConfigError(DatabaseError):
    """Malformed connection configuration. Fatal to open_database, never retried."""


class ConnectivityError(DatabaseError):
    """Database could not be reached. Retried by the readiness ping loop."""


class CancellationError(DatabaseError):
    """The probe context was cancelled or its deadline passed."""

    def __init__(self, message: str, *, deadline_exceeded: bool = False) -> None:
        super().__init__(message)
        self.deadline_exceeded = deadline_exceeded


class UniqueConstraintViolation(DatabaseError):
    code = UNIQUE_VIOLATION


class NoRowsFound(DatabaseError):
    """Query returned zero rows where exactly one was expected."""


def _sqlstate(err: BaseException) -> str | None:
    # SQLAlchemy wraps driver errors in DBAPIError and keeps the original on .orig
    for candidate in (err, getattr(err, "orig", None)):
        code = getattr(candidate, "sqlstate", None)
        if isinstance(code, str):
            return code
    return None


def classify(err: BaseException | None) -> BaseException | None:
    """
    Return the tagged variant for *err*, or *err* itself when it is not one
    of the recognised conditions. ``None`` maps to ``None``.
    """
    if err is None or isinstance(err, DatabaseError):
        return err
    if isinstance(err, NoResultFound):
        return NoRowsFound(str(err) or "no rows in result set")
    if _sqlstate(err) == UNIQUE_VIOLATION:
        return UniqueConstraintViolation(str(err))
    return err


def is_unique_violation(err: BaseException | None) -> bool:
    """True iff *err* carries the unique-violation code 23505."""
    classified = classify(err)
    return isinstance(classified, DatabaseError) and classified.code == UNIQUE_VIOLATION


def is_no_rows_error(err: BaseException | None) -> bool:
    """True iff *err* is the "no rows" condition."""
    return isinstance(classify(err), NoRowsFound)


@contextmanager
def translate_errors() -> Iterator[None]:
    """
    Re-raise driver errors raised inside the block as their classified
    variant. Unrecognised errors propagate unchanged.
    """
    try:
        yield
    except Exception as e:
        classified = classify(e)
        if classified is e:
            raise
        raise classified from e
