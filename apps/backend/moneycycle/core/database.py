from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, declared_attr

from .config import settings


class Base(DeclarativeBase):
    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return cls.__name__.lower()


def configure_sqlite(eng: Engine) -> None:
    """SQLite 안정성 설정: FK enforce + WAL 모드 + SAVEPOINT 지원.

    pysqlite는 자체적으로 BEGIN 시점을 관리하여 SAVEPOINT가 바깥 트랜잭션을
    커밋해 버리므로, 드라이버 트랜잭션 관리를 끄고 BEGIN을 직접 발행합니다.
    """

    @event.listens_for(eng, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[override]
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(eng, "begin")
    def do_begin(conn):  # type: ignore[override]
        conn.exec_driver_sql("BEGIN")


engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

if settings.DATABASE_URL.startswith("sqlite"):
    configure_sqlite(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables. Schema migrations are out of scope for this backend."""
    from .. import models  # noqa: F401  # register mappers on Base.metadata

    Base.metadata.create_all(bind=bind or engine)
