# liftlog/deps/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from liftlog.db import get_db
from liftlog.errors import Unauthorized
from liftlog.models import User, UserRole
from liftlog.repositories.user_repo import UserRepository
from liftlog.security import token_user_id

# Exposes Bearer auth in Swagger; login endpoint issues the token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    try:
        user = UserRepository(db).get(token_user_id(token))
        if user is None:
            raise Unauthorized("user no longer exists", error="Not authenticated")
    except Unauthorized as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.error,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

def require_role(*allowed: UserRole):
    """dependencies=[Depends(require_role(UserRole.coach, UserRole.admin))]"""
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if UserRole(current_user.role) not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return current_user
    return dependency
