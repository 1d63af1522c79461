"""
Health-check helpers for liveness and readiness probes.

Liveness  — is the process alive and not deadlocked?  (cheap, no I/O)
Readiness — can it serve traffic?  (Postgres answers a real query)
"""

import logging

from app.core.config import settings
from app.core.database import DatabaseError, ProbeContext, status_check
from app.core.db import db

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Individual dependency checks
# ---------------------------------------------------------------------------

def check_postgres() -> bool:
    """Ping + SELECT true within DB_STATUS_CHECK_TIMEOUT. Returns True if ok."""
    ctx = ProbeContext(timeout=settings.DB_STATUS_CHECK_TIMEOUT)
    try:
        status_check(ctx, db)
        return True
    except DatabaseError as e:
        logger.warning("Postgres not ready: %s", e)
        return False
    except Exception:
        logger.warning("Postgres liveness query failed", exc_info=True)
        return False


# ---------------------------------------------------------------------------
# Composite probes
# ---------------------------------------------------------------------------

def liveness_check() -> tuple[bool, list[str]]:
    """
    Lightweight liveness probe — just confirms the Python process is responsive.
    No I/O, no DB calls.  Return format matches readiness_check for consistency.
    """
    return (True, [])


def readiness_check() -> tuple[bool, list[str]]:
    """
    Run the Postgres readiness probe.
    Returns (ok, list of failure messages).
    """
    failures: list[str] = []

    if not check_postgres():
        failures.append("postgres")

    return (len(failures) == 0, failures)
