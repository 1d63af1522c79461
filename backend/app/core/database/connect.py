"""
Open the application Postgres database: SQLAlchemy engine over psycopg.

No driver registration step: the engine is built explicitly from a
DatabaseConfig, and opening it never touches the network.
"""

import math
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg
import sentry_sdk
from psycopg.conninfo import make_conninfo
from sqlalchemy import create_engine, event, func, true
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlmodel import Session, select

from .config import DatabaseConfig, build_uri
from .errors import ConfigError, ConnectivityError

DRIVER_NAME = "postgresql+psycopg"

# https://docs.sqlalchemy.org/en/20/core/pooling.html
CONNS_PER_CPU = 4


def available_parallelism() -> int:
    """Number of CPUs this process may run on (at least 1)."""
    if hasattr(os, "process_cpu_count"):  # 3.13+
        n = os.process_cpu_count()
    elif hasattr(os, "sched_getaffinity"):
        n = len(os.sched_getaffinity(0))
    else:
        n = os.cpu_count()
    return n or 1


class DBNameQueryHook:
    """Tags the current Sentry span of every statement with the database name."""

    def __init__(self, db_name: str) -> None:
        self.db_name = db_name

    def attach(self, engine: Engine) -> None:
        event.listen(engine, "before_cursor_execute", self.before_cursor_execute)

    def before_cursor_execute(
        self,
        conn: Any,  # noqa: ARG002
        cursor: Any,  # noqa: ARG002
        statement: str,  # noqa: ARG002
        parameters: Any,  # noqa: ARG002
        context: Any,  # noqa: ARG002
        executemany: bool,  # noqa: ARG002
    ) -> None:
        span = sentry_sdk.get_current_span()
        if span is None:
            return
        span.set_tag("db.name", self.db_name)
        span.set_data("db.name", self.db_name)


class Database:
    """Pooled handle to the application database. Owned by the caller."""

    def __init__(
        self,
        engine: Engine,
        *,
        name: str,
        max_open_conns: int,
        max_idle_conns: int,
        query_hook: DBNameQueryHook,
    ) -> None:
        self.engine = engine
        self.name = name
        self.max_open_conns = max_open_conns
        self.max_idle_conns = max_idle_conns
        self.query_hook = query_hook

    def __repr__(self) -> str:
        return f"Database(name={self.name!r}, url={self.engine.url!r})"

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    def ping(self) -> None:
        """Check a pooled connection can be opened and answers a protocol ping."""
        try:
            with self.engine.connect() as conn:
                self.engine.dialect.do_ping(conn.connection.dbapi_connection)
        except (SQLAlchemyError, psycopg.Error, OSError) as e:
            raise ConnectivityError(f"database {self.name!r} unreachable: {e}") from e

    def select_true(self, timeout: float | None = None) -> bool:
        """
        Run ``SELECT true`` and scan the single boolean. Forces a real round
        trip to the database engine. *timeout* (seconds) bounds the statement.
        """
        with self.session() as session:
            if timeout is not None and math.isfinite(timeout):
                timeout_ms = max(1, int(timeout * 1000))
                session.exec(
                    select(func.set_config("statement_timeout", str(timeout_ms), True))
                ).one()
            return session.exec(select(true())).one()

    def dispose(self) -> None:
        self.engine.dispose()


def _driver_config(uri: str) -> tuple[URL, dict[str, Any]]:
    """Parse the canonical URI into a psycopg URL plus connect() arguments."""
    try:
        url = make_url(uri)
    except ArgumentError:
        # the message would echo the full URI, password included
        raise ConfigError("could not parse database URI") from None
    except ValueError as e:
        raise ConfigError(f"invalid database URI: {e}") from e

    query = dict(url.query)
    # prepare_threshold=None: no server-side prepared statements (pgbouncer et al.)
    connect_args: dict[str, Any] = {"prepare_threshold": None}
    timezone = query.pop("timezone", None)
    if timezone:
        connect_args["options"] = f"-c TimeZone={timezone}"
    url = url.set(drivername=DRIVER_NAME, query=query)

    params = url.translate_connect_args(username="user", database="dbname")
    params.update(query)
    if "options" in connect_args:
        params["options"] = connect_args["options"]
    try:
        make_conninfo("", **params)
    except psycopg.ProgrammingError as e:
        raise ConfigError(f"invalid connection parameters: {e}") from e
    return url, connect_args


def open_database(cfg: DatabaseConfig) -> Database:
    """
    Open a pooled handle from *cfg*.

    Max open and max idle connections are both 4 x available CPUs. The
    connection itself is established lazily on first use.
    """
    url, connect_args = _driver_config(build_uri(cfg))

    max_conns = CONNS_PER_CPU * available_parallelism()
    engine = create_engine(
        url,
        pool_size=max_conns,
        max_overflow=0,
        connect_args=connect_args,
    )

    hook = DBNameQueryHook(cfg.name)
    hook.attach(engine)
    return Database(
        engine,
        name=cfg.name,
        max_open_conns=max_conns,
        max_idle_conns=max_conns,
        query_hook=hook,
    )
