from __future__ import annotations

from booky.core.config import settings
from booky.core.db import SessionLocal, create_schema
from booky.core.logging import get_logger, log_event
from booky.modules.identity.service import ensure_admin

logger = get_logger(__name__)


def bootstrap() -> None:
    if settings.environment == "dev" and str(settings.database_url).startswith("sqlite"):
        create_schema()

    if not settings.init_admin_email or not settings.init_admin_password:
        return

    # Support comma-separated list of admin emails
    admin_emails = [e.strip() for e in settings.init_admin_email.split(",") if e.strip()]
    if not admin_emails:
        return

    with SessionLocal() as session:
        for email in admin_emails:
            ensure_admin(session, email=email, password=settings.init_admin_password)
    log_event(logger, "bootstrap.admins.ensured", count=len(admin_emails))
