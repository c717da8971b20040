"""initial booking schema

Revision ID: 3b7e1c2d9a10
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3b7e1c2d9a10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False)


def _booking_fk() -> sa.Column:
    return sa.Column(
        "booking_id",
        sa.Uuid(as_uuid=True),
        sa.ForeignKey("bookings_booking_query.id"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "identity_user",
        *_base_columns(),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("password_hash", sa.String(length=200), nullable=False),
        sa.Column("role", _enum("userrole", "BOOKER", "ADMIN"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_identity_user_email", "identity_user", ["email"], unique=True)
    op.create_index("ix_identity_user_role", "identity_user", ["role"])

    op.create_table(
        "bookings_booking_query",
        *_base_columns(),
        sa.Column("query_number", sa.String(length=20), nullable=False),
        sa.Column(
            "owner_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("identity_user.id"),
            nullable=True,
        ),
        sa.Column("venue_id", sa.String(length=100), nullable=False),
        sa.Column("venue_name", sa.String(length=200), nullable=False),
        sa.Column("contact_name", sa.String(length=200), nullable=True),
        sa.Column("contact_email", sa.String(length=320), nullable=True),
        sa.Column("event_type", sa.String(length=100), nullable=True),
        sa.Column("show_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("guest_count", sa.Integer(), nullable=True),
        sa.Column("budget", sa.Numeric(12, 2), nullable=True),
        sa.Column("current_offer", sa.Numeric(12, 2), nullable=True),
        sa.Column(
            "status",
            _enum(
                "bookingstatus",
                "NEW",
                "NEGOTIATING",
                "ACCEPTED",
                "CONTRACTED",
                "PAID",
                "COMPLETED",
                "DECLINED",
            ),
            nullable=False,
        ),
        sa.Column("negotiation_history", sa.JSON(), nullable=False),
        sa.Column("intro_email_sent", sa.Boolean(), nullable=False),
    )
    op.create_index(
        "ix_bookings_booking_query_query_number",
        "bookings_booking_query",
        ["query_number"],
        unique=True,
    )
    op.create_index("ix_bookings_booking_query_owner_id", "bookings_booking_query", ["owner_id"])
    op.create_index("ix_bookings_booking_query_venue_id", "bookings_booking_query", ["venue_id"])
    op.create_index("ix_bookings_booking_query_status", "bookings_booking_query", ["status"])

    op.create_table(
        "emails_mail_inbox",
        *_base_columns(),
        _booking_fk(),
        sa.Column("venue_id", sa.String(length=100), nullable=False),
        sa.Column("address_booking", sa.String(length=320), nullable=False),
        sa.Column("address_venue", sa.String(length=320), nullable=False),
        sa.Column("selected_from", sa.String(length=320), nullable=True),
        sa.Column("provider", sa.String(length=50), nullable=False),
        sa.UniqueConstraint("booking_id", "venue_id", name="uq_mail_inbox_booking_venue"),
    )
    op.create_index("ix_emails_mail_inbox_booking_id", "emails_mail_inbox", ["booking_id"])

    op.create_table(
        "emails_email",
        *_base_columns(),
        _booking_fk(),
        sa.Column(
            "type", _enum("emailtype", "OFFER", "CONFIRMATION", "INVOICE"), nullable=False
        ),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("recipients", sa.JSON(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("from_address", sa.String(length=320), nullable=False),
        sa.Column("provider_message_id", sa.String(length=200), nullable=True),
        sa.Column(
            "status", _enum("emailstatus", "QUEUED", "SENT", "FAILED"), nullable=False
        ),
    )
    op.create_index("ix_emails_email_booking_id", "emails_email", ["booking_id"])
    op.create_index(
        "ix_emails_email_provider_message_id", "emails_email", ["provider_message_id"]
    )
    op.create_index("ix_emails_email_status", "emails_email", ["status"])

    op.create_table(
        "contracts_contract",
        *_base_columns(),
        _booking_fk(),
        sa.Column("performance_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("additional_terms", sa.Text(), nullable=True),
        sa.Column(
            "status",
            _enum("contractstatus", "DRAFT", "SENT", "SIGNED", "CANCELED"),
            nullable=False,
        ),
        sa.Column("docusign_envelope_id", sa.String(length=200), nullable=True),
    )
    op.create_index("ix_contracts_contract_booking_id", "contracts_contract", ["booking_id"])
    op.create_index("ix_contracts_contract_status", "contracts_contract", ["status"])

    op.create_table(
        "payments_payment_link",
        *_base_columns(),
        _booking_fk(),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("url", sa.String(length=1000), nullable=True),
        sa.Column(
            "status",
            _enum("paymentstatus", "PENDING", "PAID", "FAILED", "EXPIRED", "CANCELED"),
            nullable=False,
        ),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_payments_payment_link_booking_id", "payments_payment_link", ["booking_id"]
    )
    op.create_index("ix_payments_payment_link_status", "payments_payment_link", ["status"])


def downgrade() -> None:
    op.drop_table("payments_payment_link")
    op.drop_table("contracts_contract")
    op.drop_table("emails_email")
    op.drop_table("emails_mail_inbox")
    op.drop_table("bookings_booking_query")
    op.drop_table("identity_user")
