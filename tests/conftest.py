from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from canteen import config, crud, schemas
from canteen.db import Base
from canteen.local_cache import LocalCache
from canteen.main import app, get_db
from canteen.session import SessionStore

PASSWORD = "secret123"
OWNER_EMAIL = "owner@campus.edu"


@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def owner_allow_list():
    previous = config.get_owner_emails()
    config.set_owner_emails([OWNER_EMAIL])
    yield
    config.set_owner_emails(previous)


@pytest.fixture(scope="function")
def client(db_session):
    # Override dependency to use the same session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make(email: str, name: str = None):
        return crud.create_user(db_session, schemas.UserCreate(email=email, password=PASSWORD, name=name))
    return _make


@pytest.fixture
def signed_in(db_session, make_user):
    """Return a SessionStore signed in as a fresh user with the given email."""
    def _sign_in(email: str = "alice@campus.edu", owner_emails=()):
        if not crud.get_user_by_email(db_session, email):
            make_user(email)
        store = SessionStore(db_session, owner_emails=list(owner_emails))
        store.sign_in(email, PASSWORD)
        return store
    return _sign_in


@pytest.fixture
def cache():
    return LocalCache({})


@pytest.fixture
def api_login(client):
    """Sign up (or log in) through the API and return bearer headers."""
    def _login(email: str, password: str = PASSWORD) -> dict:
        r = client.post("/api/auth/signup", json={"email": email, "password": password})
        if r.status_code == 401:
            r = client.post("/api/auth/login", json={"email": email, "password": password})
        assert r.status_code in (200, 201), r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}
    return _login
