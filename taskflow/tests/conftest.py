import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from datetime import datetime, timedelta, timezone
import os
from typing import Generator

# Must be set before settings (and anything importing them) are loaded.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "testsecretkey"

import taskflow.models
from taskflow.models.base import Base

from taskflow.core.settings import settings as app_settings
from taskflow.main import app

engine = create_engine(
    app_settings.DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

from taskflow.dependencies import get_db
from taskflow.core import security
from taskflow.crud.category import SqlCategoryStore
from taskflow.crud.task import SqlTaskStore
from taskflow.services.task_service import TaskService

USER_ID = 1
OTHER_USER_ID = 2
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for the task service."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(scope="session", autouse=True)
def create_test_tables_session_scope():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session bound to an outer transaction that is rolled back after the test.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    del app.dependency_overrides[get_db]


@pytest.fixture(scope="function")
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="function")
def service(db: Session, clock: FakeClock) -> TaskService:
    return TaskService(
        SqlTaskStore(db),
        SqlCategoryStore(db),
        max_tasks_per_user=50,
        max_task_depth=5,
        clock=clock,
    )


@pytest.fixture(scope="function")
def category(db: Session):
    return SqlCategoryStore(db).create_category(USER_ID, {"name": "Work"})


@pytest.fixture(scope="function")
def other_category(db: Session):
    return SqlCategoryStore(db).create_category(OTHER_USER_ID, {"name": "Private"})


def _token_headers(user_id: int) -> dict[str, str]:
    token, _ = security.create_access_token(
        data={"sub": f"user{user_id}", "user_id": user_id},
        expires_delta=timedelta(minutes=app_settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def user_token_headers() -> dict[str, str]:
    return _token_headers(USER_ID)


@pytest.fixture(scope="function")
def other_user_token_headers() -> dict[str, str]:
    return _token_headers(OTHER_USER_ID)
