import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header, HTTPException
from jose import JWTError, jwt

from paylang.config import ADMIN_TOKEN_TTL_MINUTES, env, env_int

ALGORITHM = "HS256"


def _jwt_secret() -> str:
    secret = env("JWT_SECRET")
    if not secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is not configured")
    return secret


def check_admin_password(password: Optional[str]) -> bool:
    """Single shared-secret comparison against ADMIN_PASSWORD."""
    expected = env("ADMIN_PASSWORD")
    if not expected or not password:
        return False
    return secrets.compare_digest(str(password).encode("utf-8"), str(expected).encode("utf-8"))


def issue_admin_token(subject: str = "admin") -> str:
    ttl = env_int("ADMIN_TOKEN_TTL_MINUTES", ADMIN_TOKEN_TTL_MINUTES)
    now = datetime.now(timezone.utc)
    claims = {"sub": subject, "iat": now, "exp": now + timedelta(minutes=ttl)}
    return jwt.encode(claims, _jwt_secret(), algorithm=ALGORITHM)


def verify_token(authorization: str = Header(None)) -> dict:
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError(scheme)
        return jwt.decode(token, _jwt_secret(), algorithms=[ALGORITHM])
    except (AttributeError, ValueError, JWTError):
        raise HTTPException(status_code=401, detail="Invalid or missing token")
