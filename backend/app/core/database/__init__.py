"""
Application Postgres database: connection config, pooled handle, readiness
probe and error classification.

Nothing here reads settings or logs; callers pass a DatabaseConfig in and
handle errors themselves.
"""

from .config import DatabaseConfig, build_uri
from .connect import Database, DBNameQueryHook, available_parallelism, open_database
from .errors import (
    UNIQUE_VIOLATION,
    CancellationError,
    ConfigError,
    ConnectivityError,
    DatabaseError,
    NoRowsFound,
    UniqueConstraintViolation,
    classify,
    is_no_rows_error,
    is_unique_violation,
    translate_errors,
)
from .health import ProbeContext, status_check

__all__ = [
    "DatabaseConfig",
    "build_uri",
    "Database",
    "DBNameQueryHook",
    "available_parallelism",
    "open_database",
    "ProbeContext",
    "status_check",
    "UNIQUE_VIOLATION",
    "DatabaseError",
    "ConfigError",
    "ConnectivityError",
    "CancellationError",
    "UniqueConstraintViolation",
    "NoRowsFound",
    "classify",
    "is_unique_violation",
    "is_no_rows_error",
    "translate_errors",
]
