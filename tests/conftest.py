import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Keep the import-time default app off the real database.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from blog_api import models  # noqa: E402
from blog_api.config import Settings  # noqa: E402
from blog_api.database import Base, get_db  # noqa: E402
from blog_api.main import create_app  # noqa: E402

# In-memory SQLite database shared across connections via StaticPool.
TEST_DATABASE_URL = "sqlite://"


engine_test = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine_test,
)


@pytest.fixture()
def db_session():
    """Provide a fresh test database session for each test.

    The schema is dropped and recreated for every test function,
    ensuring complete isolation between tests.
    """
    Base.metadata.drop_all(bind=engine_test)
    Base.metadata.create_all(bind=engine_test)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def app():
    """Application wired to the in-memory engine instead of the configured one."""
    test_app = create_app(
        settings=Settings(database_url=TEST_DATABASE_URL),
        engine=engine_test,
    )
    yield test_app
    test_app.dependency_overrides.clear()


@pytest.fixture()
def client(app, db_session):
    """TestClient whose requests all share the test session.

    We override the `get_db` dependency so every request inside a test
    sees the rows created by the factory fixtures below.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            # Session cleanup is handled by the db_session fixture.
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def user_factory(db_session):
    """Factory fixture that creates users directly in the test database."""

    def _create_user(name: str, email: str) -> models.User:
        user = models.User(name=name, email=email)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture()
def post_factory(db_session):
    def _create_post(user: models.User, title: str, body: str = "") -> models.Post:
        post = models.Post(user_id=user.id, title=title, body=body)
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _create_post


@pytest.fixture()
def tag_factory(db_session):
    def _create_tag(name: str) -> models.Tag:
        tag = models.Tag(name=name)
        db_session.add(tag)
        db_session.commit()
        db_session.refresh(tag)
        return tag

    return _create_tag
