# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from statusgraph.core.settings import Settings
from statusgraph.db.session import Base
from statusgraph.models import Account, AccountStat, Status, StatusStat
from statusgraph.services import cache as cache_module
from statusgraph.services.activity import ActivityTracker
from statusgraph.services.cache import MemoryCache
from statusgraph.services.lifecycle import create_status

TEST_DB_URL = "sqlite://"

_USERNAME_COUNTER = count(1)
_TEST_SETTINGS_INSTANCE = Settings()


class FakeClock:
    """Monotonic clock the tests can move forward by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite issues its own BEGIN lazily, which breaks SAVEPOINT handling.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def committing_session(engine: Engine) -> Iterator[Session]:
    """Yield a session whose commits reach the database; tables are emptied afterwards."""
    session = Session(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


@pytest.fixture()
def clock() -> FakeClock:
    """Return a hand-driven clock for cache expiry."""
    return FakeClock()


@pytest.fixture()
def memory_cache(clock: FakeClock) -> MemoryCache:
    """Return an empty in-process cache driven by ``clock``."""
    return MemoryCache(clock=clock)


@pytest.fixture(autouse=True)
def default_cache(monkeypatch: pytest.MonkeyPatch, memory_cache: MemoryCache) -> MemoryCache:
    """Make the process-wide cache an isolated in-memory one for every test."""
    monkeypatch.setattr(cache_module, "_default_cache", memory_cache)
    return memory_cache


@pytest.fixture()
def activity(memory_cache: MemoryCache) -> ActivityTracker:
    """Return an activity tracker writing into the test cache."""
    return ActivityTracker(cache=memory_cache)


@pytest.fixture()
def make_account(db_session: Session) -> Callable[..., Account]:
    """Return a factory creating persisted accounts."""

    def _make(**fields: Any) -> Account:
        fields.setdefault("username", f"user{next(_USERNAME_COUNTER)}")
        account = Account(**fields)
        db_session.add(account)
        db_session.flush()
        return account

    return _make


@pytest.fixture()
def alice(make_account: Callable[..., Account]) -> Account:
    """Create the primary local account."""
    return make_account(username="alice")


@pytest.fixture()
def bob(make_account: Callable[..., Account]) -> Account:
    """Create a second local account."""
    return make_account(username="bob")


@pytest.fixture()
def carol(make_account: Callable[..., Account]) -> Account:
    """Create a third local account."""
    return make_account(username="carol")


@pytest.fixture()
def make_status(
    db_session: Session,
    activity: ActivityTracker,
) -> Callable[..., Status]:
    """Return a factory creating statuses through the lifecycle manager."""

    def _make(account: Account, **fields: Any) -> Status:
        fields.setdefault("text", "hello world")
        return create_status(db_session, Status(account=account, **fields), activity=activity)

    return _make


@pytest.fixture()
def statuses_count(db_session: Session) -> Callable[[Account], int]:
    """Return a reader for the stored statuses counter of an account."""

    def _read(account: Account) -> int:
        stat = db_session.get(AccountStat, account.id)
        return stat.statuses_count if stat is not None else 0

    return _read


@pytest.fixture()
def stat_value(db_session: Session) -> Callable[[Status, str], int]:
    """Return a reader for one stored counter of a status."""

    def _read(status: Status, key: str) -> int:
        stat = db_session.get(StatusStat, status.id)
        return getattr(stat, key) if stat is not None else 0

    return _read
