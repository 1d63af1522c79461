"""
Readiness probe for the application database.

status_check() loops on a ping with linear backoff until it succeeds or the
caller's ProbeContext is cancelled / expires, then forces a real round trip
with ``SELECT true``. There is no attempt cap: the context is the only bound.
"""

import math
import threading
import time

from tenacity import Retrying, retry_if_exception_type, stop_never, wait_incrementing

from .connect import Database
from .errors import CancellationError, ConnectivityError


class ProbeContext:
    """
    Cancellation scope for a probe: a mandatory timeout plus an optional
    event another thread can set to cancel early.
    """

    def __init__(
        self, timeout: float, cancel_event: threading.Event | None = None
    ) -> None:
        if not math.isfinite(timeout) or timeout <= 0:
            raise ValueError("timeout must be a positive, finite number of seconds")
        self.timeout = timeout
        self._deadline = time.monotonic() + timeout
        self._event = cancel_event or threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> float:
        return max(0.0, self._deadline - time.monotonic())

    def err(self) -> CancellationError | None:
        """Why the context is done, or None while it is still live."""
        if self._event.is_set():
            return CancellationError("context canceled")
        if self.remaining() <= 0:
            return CancellationError("context deadline exceeded", deadline_exceeded=True)
        return None

    def check(self) -> None:
        err = self.err()
        if err is not None:
            raise err

    def wait(self, seconds: float) -> None:
        """Sleep up to *seconds*; wakes early on cancel or deadline."""
        self._event.wait(min(seconds, self.remaining()))


def status_check(ctx: ProbeContext, db: Database) -> None:
    """
    Return None if the database answers, raise otherwise.

    Raises CancellationError when *ctx* is cancelled or expires while
    pinging; errors from the final query propagate as raised by the driver.
    """
    for attempt in Retrying(
        retry=retry_if_exception_type(ConnectivityError),
        wait=wait_incrementing(start=1, increment=1),
        stop=stop_never,
        sleep=ctx.wait,
        reraise=True,
    ):
        with attempt:
            ctx.check()
            db.ping()

    # Ping may succeed just as the context ends.
    ctx.check()

    # A proxy in front of the database can answer pings on its own.
    db.select_true(timeout=ctx.remaining())
