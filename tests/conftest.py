import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tasktracker.cache import TaskCache, get_cache
from tasktracker.database import get_db, init_db
from tasktracker.mailer import get_mailer
from tasktracker.main import create_app
from tasktracker.models.user import User
from tasktracker.models.workspace import Workspace

from fakes import MemoryRedis, RecordingMailer

PASSWORD = "Passw0rd!"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def redis_client():
    return MemoryRedis()


@pytest.fixture
def cache(redis_client):
    return TaskCache(redis_client)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(session_factory, cache, mailer):
    application = create_app(rate_limit_enabled=False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_cache] = lambda: cache
    application.dependency_overrides[get_mailer] = lambda: mailer
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(client, session_factory):
    """Sign up through the API, mark verified in the DB and log in.

    Skips the OTP flow (and so the demo workspace); the flow itself is
    covered in test_auth.py.
    """
    def _make(name="Task User", email="taskuser@example.com", password=PASSWORD):
        r = client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
        assert r.status_code == 201, r.text
        with session_factory() as db:
            user = db.scalars(select(User).where(User.email == email)).one()
            user.is_verified = True
            db.commit()
        r = client.post("/api/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        body = r.json()
        return {
            "id": body["user"]["id"],
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def other_user(make_user):
    return make_user(name="Other User", email="other@example.com")


@pytest.fixture
def workspace(client, user):
    r = client.post("/api/workspaces", json={"name": "Work"}, headers=user["headers"])
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
def add_member(session_factory):
    def _add(workspace_id, user_id):
        with session_factory() as db:
            ws = db.get(Workspace, workspace_id)
            ws.members.append(db.get(User, user_id))
            db.commit()

    return _add
