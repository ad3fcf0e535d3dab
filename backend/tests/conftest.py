"""
Point the app at a throwaway SQLite file before anything imports
liftlog.settings, then create the schema once for the whole run.
"""
import os
import tempfile
import uuid

_tmpdir = tempfile.mkdtemp(prefix="liftlog-tests-")
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{_tmpdir}/liftlog.db"

import pytest
from fastapi.testclient import TestClient

from liftlog import models  # noqa: F401  # registers tables
from liftlog.db import Base, SessionLocal, engine
from liftlog.main import app
from liftlog.repositories.assignment_repo import AssignmentRepository
from liftlog.repositories.user_repo import UserRepository

Base.metadata.create_all(engine)

PWD = "StrongPassw0rd!"


def uniq_email():
    return f"u_{uuid.uuid4().hex[:10]}@example.com"


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(client):
    """Register + log in; returns (user_id, auth headers)."""
    def _make(role: str = "client"):
        email = uniq_email()
        r = client.post("/auth/register", json={"email": email, "name": "Lifter", "password": PWD})
        assert r.status_code == 201
        user_id = r.json()["id"]
        if role != "client":
            with SessionLocal() as s:
                UserRepository(s).set_role(user_id, role=role)
        token = client.post("/auth/login", json={"email": email, "password": PWD}).json()["access_token"]
        return user_id, {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def make_assignment():
    def _make(client_id: int, *, with_template: bool = True):
        with SessionLocal() as s:
            repo = AssignmentRepository(s)
            template_id = repo.create_template(name="Upper A").id if with_template else None
            return repo.create(client_id, template_id=template_id, name="Week 1").id
    return _make
