"""ledger baseline: tenants, subscribers, bills, payments, counters and audit trail

Revision ID: 20261001_0001
Revises:
Create Date: 2026-10-01 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261001_0001"
down_revision = None
branch_labels = None
depends_on = None

tenant_role = sa.Enum("OWNER", "TENANT_ADMIN", "OPERATOR", name="tenantrole")
tenant_status = sa.Enum("ACTIVE", "BLOCKED", name="tenantstatus")
subscriber_status = sa.Enum("ACTIVE", "INACTIVE", name="subscriberstatus")
service_type = sa.Enum("SDV", "APSFL", "RAILWIRE", name="servicetype")
bill_status = sa.Enum("UNPAID", "PARTIAL", "PAID", name="billstatus")
payment_mode = sa.Enum("CASH", "UPI", "BANK_TRANSFER", "CHEQUE", "CARD", name="paymentmode")
delivery_status = sa.Enum("PENDING", "SENT", "FAILED", "NOT_ENABLED", name="deliverystatus")
audit_action = sa.Enum(
    "CREATE_SUBSCRIBER",
    "UPDATE_SUBSCRIBER",
    "DELETE_SUBSCRIBER",
    "GENERATE_BILL",
    "RECORD_PAYMENT",
    "UPDATE_PAYMENT_DELIVERY",
    "ORPHAN_SCOPE_FALLBACK",
    name="auditaction",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("role", tenant_role, nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("status", tenant_status, nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_id"], ["tenants.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "subscribers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("scope_id", sa.Integer(), nullable=False),
        sa.Column("subscriber_code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("area", sa.String(length=120), nullable=True),
        sa.Column("service_type", service_type, nullable=True),
        sa.Column("set_top_box_id", sa.String(length=120), nullable=True),
        sa.Column("package_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("previous_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", subscriber_status, nullable=False),
        sa.Column("whatsapp_enabled", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["scope_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["created_by"], ["tenants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("scope_id", "subscriber_code", name="uq_subscribers_scope_code"),
        sa.UniqueConstraint("scope_id", "phone_number", name="uq_subscribers_scope_phone"),
        sa.CheckConstraint("package_amount >= 0", name="ck_subscribers_package_amount_non_negative"),
    )
    op.create_index("ix_subscribers_scope_id", "subscribers", ["scope_id"])
    op.create_index("ix_subscribers_area", "subscribers", ["area"])
    op.create_index("idx_subscribers_scope_status", "subscribers", ["scope_id", "status"])

    op.create_table(
        "bills",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("scope_id", sa.Integer(), nullable=False),
        sa.Column("subscriber_id", sa.Integer(), nullable=False),
        sa.Column("month", sa.String(length=16), nullable=False),
        sa.Column("month_number", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("package_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("previous_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_payable", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("remaining_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", bill_status, nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("generated_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["scope_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["subscriber_id"], ["subscribers.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["generated_by"], ["tenants.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("subscriber_id", "month", "year", name="uq_bills_subscriber_period"),
        sa.CheckConstraint("paid_amount >= 0", name="ck_bills_paid_amount_non_negative"),
    )
    op.create_index("ix_bills_scope_id", "bills", ["scope_id"])
    op.create_index("ix_bills_subscriber_id", "bills", ["subscriber_id"])
    op.create_index("idx_bills_scope_status", "bills", ["scope_id", "status"])
    op.create_index("idx_bills_scope_period", "bills", ["scope_id", "year", "month_number"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("scope_id", sa.Integer(), nullable=False),
        sa.Column("receipt_id", sa.String(length=32), nullable=False),
        sa.Column("subscriber_id", sa.Integer(), nullable=False),
        sa.Column("bill_id", sa.Integer(), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("remaining_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_mode", payment_mode, nullable=False),
        sa.Column("transaction_ref", sa.String(length=120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("collected_by", sa.Integer(), nullable=False),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("receipt_sent", sa.Boolean(), nullable=False),
        sa.Column("whatsapp_status", delivery_status, nullable=False),
        sa.Column("whatsapp_message_id", sa.String(length=120), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["scope_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["subscriber_id"], ["subscribers.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["bill_id"], ["bills.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["collected_by"], ["tenants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("receipt_id", name="uq_payments_receipt_id"),
        sa.CheckConstraint("paid_amount > 0", name="ck_payments_paid_amount_positive"),
    )
    op.create_index("ix_payments_scope_id", "payments", ["scope_id"])
    op.create_index("ix_payments_receipt_id", "payments", ["receipt_id"])
    op.create_index("ix_payments_subscriber_id", "payments", ["subscriber_id"])
    op.create_index("ix_payments_bill_id", "payments", ["bill_id"])
    op.create_index("ix_payments_collected_by", "payments", ["collected_by"])
    op.create_index("idx_payments_scope_date", "payments", ["scope_id", "payment_date"])
    op.create_index("idx_payments_scope_mode", "payments", ["scope_id", "payment_mode"])

    op.create_table(
        "sequence_counters",
        sa.Column("key", sa.String(length=120), nullable=False),
        sa.Column("value", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("key"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("action", audit_action, nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_audit_logs_actor_created", "audit_logs", ["actor_id", "created_at"])
    op.create_index("idx_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("idx_audit_logs_entity", table_name="audit_logs")
    op.drop_index("idx_audit_logs_actor_created", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("sequence_counters")

    for index_name in (
        "idx_payments_scope_mode",
        "idx_payments_scope_date",
        "ix_payments_collected_by",
        "ix_payments_bill_id",
        "ix_payments_subscriber_id",
        "ix_payments_receipt_id",
        "ix_payments_scope_id",
    ):
        op.drop_index(index_name, table_name="payments")
    op.drop_table("payments")

    for index_name in ("idx_bills_scope_period", "idx_bills_scope_status", "ix_bills_subscriber_id", "ix_bills_scope_id"):
        op.drop_index(index_name, table_name="bills")
    op.drop_table("bills")

    for index_name in ("idx_subscribers_scope_status", "ix_subscribers_area", "ix_subscribers_scope_id"):
        op.drop_index(index_name, table_name="subscribers")
    op.drop_table("subscribers")
    op.drop_table("tenants")

    bind = op.get_bind()
    for enum_type in (
        audit_action,
        delivery_status,
        payment_mode,
        bill_status,
        service_type,
        subscriber_status,
        tenant_status,
        tenant_role,
    ):
        enum_type.drop(bind, checkfirst=True)
