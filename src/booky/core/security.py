from __future__ import annotations

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from booky.core.config import settings
from booky.core.models import utcnow

_ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(
    *,
    subject: str,
    expires_minutes: int | None = None,
    claims: dict[str, Any] | None = None,
) -> str:
    expire_minutes = expires_minutes or settings.access_token_exp_minutes
    payload: dict[str, Any] = dict(claims or {})
    payload["sub"] = subject
    payload["exp"] = utcnow() + timedelta(minutes=expire_minutes)
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> str | None:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) else None
