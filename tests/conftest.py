import os

# must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.db import get_db
from app.main import create_app
from app.models.base import Base

def _sqlite_session(database_url: str):
    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()

def _postgres_session(database_url: str):
    engine = create_engine(database_url, pool_pre_ping=True)

    connection = engine.connect()
    transaction = connection.begin()
    Base.metadata.create_all(connection)

    # commits inside tests only release savepoints
    TestingSessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
        autocommit=False,
        join_transaction_mode="create_savepoint",
    )
    session: Session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()
        engine.dispose()

@pytest.fixture()
def db_session() -> Session:
    database_url = os.environ["DATABASE_URL"]
    if database_url.startswith("sqlite"):
        yield from _sqlite_session(database_url)
    else:
        yield from _postgres_session(database_url)

@pytest.fixture()
def client(db_session: Session) -> TestClient:
    app = create_app()

    def _override_get_db():
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = _override_get_db
    return TestClient(app)
