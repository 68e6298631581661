from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from dataclasses import dataclass

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite://")

import db.models  # noqa: E402,F401
from db.base import Base  # noqa: E402
from db.models import CustomStatus, Store, TicketField, TicketType, User  # noqa: E402


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite issues its own BEGIN; take over so SAVEPOINT works.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # noqa: ANN001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:  # noqa: ANN001
        conn.exec_driver_sql("BEGIN")


@pytest.fixture()
def engine(tmp_path) -> Iterator[Engine]:  # noqa: ANN001
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'helpdesk.db'}",
        connect_args={"check_same_thread": False},
    )
    _enable_sqlite_savepoints(test_engine)
    Base.metadata.create_all(test_engine)
    try:
        yield test_engine
    finally:
        test_engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def db_session(session_factory: Callable[[], Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@dataclass(frozen=True)
class SeededStore:
    store_id: int
    other_store_id: int
    user_id: int
    service_type_id: int
    repair_type_id: int
    custom_status_id: int


@pytest.fixture()
def seeded_store(db_session: Session) -> SeededStore:
    """
    One store with two ticket types, a custom status and a user, plus an
    empty second store.
    """

    store = Store(name="Skidbutiken")
    other = Store(name="Cykelverkstaden")
    db_session.add_all([store, other])
    db_session.flush()

    user = User(store_id=store.id, email="personal@skidbutiken.se", name="Personal")
    service = TicketType(
        store_id=store.id,
        name="Skidservice",
        fields=[
            TicketField(name="Skida", field_type="TEXT", is_required=False),
            TicketField(name="Sulmått", field_type="NUMBER", is_required=False),
            TicketField(name="Klar", field_type="DUE_DATE", is_required=False),
        ],
    )
    repair = TicketType(
        store_id=store.id,
        name="Reparation",
        fields=[TicketField(name="Serienummer", field_type="TEXT", is_required=True)],
    )
    custom_status = CustomStatus(store_id=store.id, name="Väntar på delar", color="#ffaa00")
    db_session.add_all([user, service, repair, custom_status])
    db_session.commit()

    return SeededStore(
        store_id=store.id,
        other_store_id=other.id,
        user_id=user.id,
        service_type_id=service.id,
        repair_type_id=repair.id,
        custom_status_id=custom_status.id,
    )
