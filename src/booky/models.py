"""
Alembic model import hook.

Importing this module ensures all SQLAlchemy models are registered on Base.metadata.
"""

from __future__ import annotations

# Import User first - bookings reference it
from booky.modules.identity.models import User  # noqa: F401

from booky.modules.bookings.models import BookingQuery  # noqa: F401
from booky.modules.contracts.models import Contract  # noqa: F401
from booky.modules.emails.models import Email, MailInbox  # noqa: F401
from booky.modules.payments.models import PaymentLink  # noqa: F401
