# liftlog/repositories/user_repo.py
from __future__ import annotations
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from liftlog.models import User
from liftlog.repositories.base import BaseRepository

class UserRepository(BaseRepository[User]):
    model = User

    # READS
    def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        return self.db.execute(stmt).scalar_one_or_none()

    # WRITES
    def create(self, *, email: str, name: str, password_hash: str, role: str = "client") -> User:
        user = User(email=email, name=name, password_hash=password_hash, role=role)
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            return user
        except IntegrityError:
            self.db.rollback()
            # Re-raise a clean marker the router can map to 400
            raise ValueError("email_already_exists")

    def set_role(self, user_id: int, *, role: str) -> Optional[User]:
        """Use from an admin-only path; DB enum validates role values."""
        user = self.get(user_id)
        if not user:
            return None
        user.role = role
        self.db.commit()
        self.db.refresh(user)
        return user
