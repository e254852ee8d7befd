from __future__ import annotations

from typing import Iterable

from sqlalchemy import create_engine, event, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import get_settings, normalize_database_url

settings = get_settings()

# SQLSTATE / MySQL error numbers that mean "try again", not "bad input".
_TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03", "57014", "08000", "08003", "08006"}
_TRANSIENT_MYSQL_ERRNOS = {1205, 1213, 2006, 2013}
_TRANSIENT_MESSAGES = (
    "deadlock detected",
    "deadlock found",
    "lock wait timeout",
    "lock timeout",
    "could not obtain lock",
    "could not serialize access",
    "database is locked",
    "connection refused",
    "connection reset",
    "server closed the connection unexpectedly",
    "timed out",
)


def configure_sqlite_locking(engine: Engine) -> Engine:
    """Open every SQLite transaction with BEGIN IMMEDIATE.

    SQLite has no row locks and ignores FOR UPDATE, so the write lock on the
    whole database stands in for the ordered row locks taken by the booking
    transactions.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(connection) -> None:
        connection.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(database_url: str, *, echo: bool = False, lock_timeout_ms: int = 5000) -> Engine:
    url = normalize_database_url(database_url)
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": max(lock_timeout_ms, 1) / 1000},
        )
        return configure_sqlite_locking(engine)

    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine(settings.database_url, echo=settings.database_echo, lock_timeout_ms=settings.lock_timeout_ms)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def apply_lock_timeout(db: Session, timeout_ms: int) -> None:
    """Bound how long the current transaction waits for row locks."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        # set_config(..., true) is transaction scoped, the same as SET LOCAL.
        db.execute(select(func.set_config("lock_timeout", f"{int(timeout_ms)}ms", True)))
    elif dialect in {"mysql", "mariadb"}:
        seconds = max(1, int(timeout_ms) // 1000)
        db.execute(text("SET SESSION innodb_lock_wait_timeout = :seconds"), {"seconds": seconds})
    # SQLite waits on its busy timeout, configured on connect.


def _iter_exception_chain(exc: BaseException) -> Iterable[BaseException]:
    seen: set[int] = set()
    cur: BaseException | None = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        yield cur
        orig = getattr(cur, "orig", None)
        if isinstance(orig, BaseException) and id(orig) not in seen:
            yield orig
            seen.add(id(orig))
        cur = cur.__cause__ or cur.__context__


def _sqlstate(exc: BaseException) -> str | None:
    return getattr(exc, "pgcode", None) or getattr(exc, "sqlstate", None)


def is_transient_storage_error(exc: BaseException) -> bool:
    """Detect lock timeouts, deadlocks, serialization failures and lost connections.

    Constraint violations and SQL errors are never transient.
    """
    if isinstance(exc, IntegrityError):
        return False
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True

    for item in _iter_exception_chain(exc):
        if _sqlstate(item) in _TRANSIENT_SQLSTATES:
            return True
        args = getattr(item, "args", ())
        if args and isinstance(args[0], int) and args[0] in _TRANSIENT_MYSQL_ERRNOS:
            return True
        message = str(item).lower()
        if any(marker in message for marker in _TRANSIENT_MESSAGES):
            return True
    return False


def is_exclusion_violation(exc: BaseException) -> bool:
    """True when a storage-level range exclusion constraint rejected the write."""
    for item in _iter_exception_chain(exc):
        if _sqlstate(item) == "23P01":
            return True
        if "exclusion constraint" in str(item).lower():
            return True
    return False
