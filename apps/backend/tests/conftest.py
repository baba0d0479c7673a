from __future__ import annotations

import os
import tempfile
from datetime import date
from typing import Generator, Any

import pytest

# 사용자 환경을 건드리지 않도록 임시 파일 SQLite 사용 (앱 import 전에 설정)
_fd, _TEST_DB_PATH = tempfile.mkstemp(prefix="moneycycle_test_", suffix=".sqlite3")
os.close(_fd)
os.environ["MC_DATABASE_URL"] = f"sqlite:///{_TEST_DB_PATH}"
os.environ.setdefault("MC_CRON_SECRET", "test-cron-secret")

from sqlalchemy.orm import sessionmaker  # noqa: E402

from moneycycle import models  # noqa: E402
from moneycycle.core import database  # noqa: E402
from moneycycle.core.database import Base, get_db, init_db  # noqa: E402
from moneycycle.main import app  # noqa: E402
from moneycycle.seed import seed_user  # noqa: E402


@pytest.fixture(scope="session")
def engine():
    init_db(database.engine)
    yield database.engine
    database.engine.dispose()
    for suffix in ("", "-wal", "-shm"):
        try:
            os.remove(_TEST_DB_PATH + suffix)
        except OSError:
            pass


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Any, Any, Any]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    # 간단 시드: demo user + 설정(cycle_start_day=1) + 기본 카테고리
    seed_user(session)
    session.commit()

    try:
        yield session
    finally:
        session.close()
        # 테이블 데이터 정리: FK 순서 역순으로 삭제
        with engine.begin() as conn:
            for tbl in reversed(Base.metadata.sorted_tables):
                conn.execute(tbl.delete())


@pytest.fixture(autouse=True)
def override_dependency(db_session):
    # FastAPI DI override
    def _get_db_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db_override
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client(db_session):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def user(db_session) -> models.User:
    return db_session.query(models.User).filter_by(email="demo@example.com").one()


@pytest.fixture()
def category_ids(db_session, user) -> dict[str, int]:
    rows = db_session.query(models.Category).filter_by(user_id=user.id).all()
    return {row.name: row.id for row in rows}


@pytest.fixture()
def freeze_today(monkeypatch):
    """Pin the local calendar date used by routers and the scheduled job."""

    def _freeze(value: date) -> None:
        monkeypatch.setattr(models, "today_local", lambda now=None: value)

    return _freeze
