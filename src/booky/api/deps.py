from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from booky.core.config import settings
from booky.core.db import db_session
from booky.core.logging import set_user_context
from booky.core.security import decode_access_token
from booky.modules.identity.models import User, UserRole
from booky.modules.mail.client import EmailClient, build_email_client
from booky.modules.recommendations.manager import (
    RecommendationManager,
    build_recommendation_manager,
)

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(db_session),
) -> User:
    token = credentials.credentials if credentials else None
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    subject = decode_access_token(token)
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        user_id = uuid.UUID(subject)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from e

    user = session.scalar(select(User).where(User.id == user_id))
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user")
    set_user_context(str(user.id))
    return user


def require_role(*roles: UserRole):
    def _checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions"
            )
        return user

    return _checker


def get_email_client(request: Request) -> EmailClient:
    client = getattr(request.app.state, "email_client", None)
    if client is None:
        client = build_email_client(settings)
        request.app.state.email_client = client
    return client


def get_recommendation_manager(request: Request) -> RecommendationManager | None:
    # The manager (and its cache) lives for the lifetime of the process.
    if not hasattr(request.app.state, "recommendation_manager"):
        request.app.state.recommendation_manager = build_recommendation_manager(settings)
    return request.app.state.recommendation_manager
