from liftlog.db import SessionLocal
from liftlog.repositories.user_repo import UserRepository
from liftlog.security import hash_password
import uuid, pytest

def test_user_repo_create_and_get():
    db = SessionLocal()
    repo = UserRepository(db)
    email = f"{uuid.uuid4().hex[:8]}@ex.com"
    u = repo.create(email=email, name="Repo", password_hash=hash_password("StrongPassw0rd!"))
    assert u.id and u.email == email
    assert repo.get(u.id).email == email
    assert repo.get_by_email(email.upper()).id == u.id
    db.close()

def test_user_repo_unique_email_violation():
    db = SessionLocal()
    repo = UserRepository(db)
    email = f"{uuid.uuid4().hex[:8]}@ex.com"
    repo.create(email=email, name="A", password_hash=hash_password("StrongPassw0rd!"))
    with pytest.raises(ValueError):
        repo.create(email=email, name="B", password_hash=hash_password("StrongPassw0rd!"))
    db.close()

def test_set_role():
    db = SessionLocal()
    repo = UserRepository(db)
    u = repo.create(email=f"{uuid.uuid4().hex[:8]}@ex.com", name="C", password_hash="")
    assert repo.set_role(u.id, role="coach").role == "coach"
    assert repo.set_role(999999, role="coach") is None
    db.close()
