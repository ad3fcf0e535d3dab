# liftlog/security.py
"""Password hashing and bearer tokens.

Tokens carry the user id as ``sub`` and the role the user had at login. The
role claim is informational; authorization always reloads the user row.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from passlib.context import CryptContext
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from liftlog.errors import Unauthorized
from liftlog.settings import get_settings

pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(p: str) -> str:
    return pwd_ctx.hash(p)

def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_ctx.verify(plain, hashed)

def issue_token(user_id: int, *, role: Optional[str] = None, expires_minutes: Optional[int] = None) -> str:
    s = get_settings()
    now = datetime.now(timezone.utc)
    ttl = s.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    claims: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp()),
    }
    if role is not None:
        claims["role"] = role
    return jwt.encode(claims, s.SECRET_KEY, algorithm=s.ALGORITHM)

def token_user_id(token: str) -> int:
    """Verified ``sub`` of a bearer token; raises Unauthorized otherwise."""
    s = get_settings()
    try:
        claims = jwt.decode(token, s.SECRET_KEY, algorithms=[s.ALGORITHM],
                            options={"require_exp": True, "require_sub": True})
        return int(claims["sub"])
    except ExpiredSignatureError:
        raise Unauthorized("access token has expired", error="Token expired")
    except (JWTError, KeyError, ValueError) as e:
        raise Unauthorized(str(e), error="Not authenticated")
