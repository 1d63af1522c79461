"""Unit tests for ProbeContext and status_check (database mocked)."""

import math
import threading
import time
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.database import CancellationError, ConnectivityError, ProbeContext, status_check


def _db() -> MagicMock:
    db = MagicMock()
    db.ping.return_value = None
    db.select_true.return_value = True
    return db


def test_status_check_ok_on_first_attempt() -> None:
    db = _db()
    ctx = ProbeContext(timeout=5)
    assert status_check(ctx, db) is None
    db.ping.assert_called_once_with()
    db.select_true.assert_called_once()


def test_status_check_already_cancelled() -> None:
    """A cancelled context fails fast and never runs the liveness query."""
    db = _db()
    ctx = ProbeContext(timeout=5)
    ctx.cancel()
    with pytest.raises(CancellationError) as exc_info:
        status_check(ctx, db)
    assert exc_info.value.deadline_exceeded is False
    db.select_true.assert_not_called()


def test_status_check_deadline_exceeded() -> None:
    db = _db()
    ctx = ProbeContext(timeout=0.01)
    time.sleep(0.02)
    with pytest.raises(CancellationError) as exc_info:
        status_check(ctx, db)
    assert exc_info.value.deadline_exceeded is True
    db.select_true.assert_not_called()


def test_status_check_retries_ping_with_linear_backoff() -> None:
    """First N-1 pings fail, the Nth succeeds; waits grow 1s, 2s, 3s, ..."""
    db = _db()
    db.ping.side_effect = [ConnectivityError("down")] * 4 + [None]
    ctx = ProbeContext(timeout=60)
    with patch.object(ctx, "wait") as wait:
        status_check(ctx, db)
    assert db.ping.call_count == 5
    assert [c.args[0] for c in wait.call_args_list] == [1, 2, 3, 4]
    db.select_true.assert_called_once()


def test_status_check_has_no_attempt_cap() -> None:
    db = _db()
    db.ping.side_effect = [ConnectivityError("down")] * 50 + [None]
    ctx = ProbeContext(timeout=60)
    with patch.object(ctx, "wait"):
        status_check(ctx, db)
    assert db.ping.call_count == 51


def test_status_check_cancel_during_backoff() -> None:
    """Cancelling while sleeping returns the cancellation error, not the ping error."""
    db = _db()
    db.ping.side_effect = ConnectivityError("down")
    ctx = ProbeContext(timeout=60)
    with patch.object(ctx, "wait", side_effect=lambda _s: ctx.cancel()):
        with pytest.raises(CancellationError):
            status_check(ctx, db)
    assert db.ping.call_count == 1
    db.select_true.assert_not_called()


def test_status_check_cancelled_between_phases() -> None:
    db = _db()
    ctx = ProbeContext(timeout=60)
    db.ping.side_effect = lambda: ctx.cancel()
    with pytest.raises(CancellationError):
        status_check(ctx, db)
    db.select_true.assert_not_called()


def test_status_check_query_error_is_returned_verbatim() -> None:
    db = _db()
    err = OperationalError("SELECT true", {}, Exception("terminating connection"))
    db.select_true.side_effect = err
    with pytest.raises(OperationalError) as exc_info:
        status_check(ProbeContext(timeout=5), db)
    assert exc_info.value is err


def test_status_check_passes_remaining_time_to_query() -> None:
    db = _db()
    status_check(ProbeContext(timeout=5), db)
    timeout = db.select_true.call_args.kwargs["timeout"]
    assert 0 < timeout <= 5


def test_probe_context_requires_positive_timeout() -> None:
    with pytest.raises(ValueError):
        ProbeContext(timeout=0)


def test_probe_context_external_event() -> None:
    event = threading.Event()
    ctx = ProbeContext(timeout=5, cancel_event=event)
    assert ctx.err() is None
    event.set()
    assert ctx.cancelled
    assert isinstance(ctx.err(), CancellationError)


def test_probe_context_wait_wakes_on_cancel() -> None:
    ctx = ProbeContext(timeout=60)
    threading.Timer(0.05, ctx.cancel).start()
    ctx.wait(30)
    assert ctx.cancelled


@pytest.mark.parametrize("timeout", [math.inf, math.nan, -1.0])
def test_probe_context_rejects_non_finite_timeout(timeout: float) -> None:
    with pytest.raises(ValueError):
        ProbeContext(timeout=timeout)
