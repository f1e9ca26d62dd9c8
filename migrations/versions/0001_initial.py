"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2025-02-03 10:12:41
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum("USER", "ADMIN", name="userrole")
transaction_type = sa.Enum("DEPOSIT", "WITHDRAWAL", "OTHER", name="transactiontype")
transaction_status = sa.Enum("PENDING", "COMPLETED", "FAILED", name="transactionstatus")
payment_type = sa.Enum("UPI", name="paymenttype")
trade_type = sa.Enum("LONG", "SHORT", name="tradetype")
trade_status = sa.Enum("OPEN", "CLOSED", name="tradestatus")
loan_status = sa.Enum("PENDING", "APPROVED", "REJECTED", name="loanstatus")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(120), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("aadhar_no", sa.String(20), nullable=True),
        sa.Column("pan", sa.String(20), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("nominee_name", sa.String(120), nullable=True),
        sa.Column("nominee_relation", sa.String(50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("bank_name", sa.String(120), nullable=True),
        sa.Column("account_number", sa.String(34), nullable=True),
        sa.Column("account_holder", sa.String(120), nullable=True),
        sa.Column("ifsc_code", sa.String(20), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("aadhar_no"),
        sa.UniqueConstraint("pan"),
        sa.UniqueConstraint("account_number"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_phone", "users", ["phone"], unique=True)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("transaction_id", sa.String(64), nullable=False),
        sa.Column("status", transaction_status, nullable=False),
        sa.Column("amount", sa.Numeric(20, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("payment_method", sa.String(20), nullable=True),
        sa.Column("meta_json", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_transactions_id", "transactions", ["id"])
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])
    op.create_index("ix_transactions_transaction_id", "transactions", ["transaction_id"], unique=True)
    op.create_index("ix_transaction_user_status", "transactions", ["user_id", "status"])

    op.create_table(
        "payment_info",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", payment_type, nullable=False),
        sa.Column("upi_id", sa.String(120), nullable=False),
        sa.Column("merchant_name", sa.String(120), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_payment_info_id", "payment_info", ["id"])
    op.create_index(
        "uq_payment_info_active_type",
        "payment_info",
        ["type"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active"),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("symbol", sa.String(20), nullable=False),
        sa.Column("quantity", sa.Numeric(20, 8), nullable=False),
        sa.Column("buy_price", sa.Numeric(20, 8), nullable=False),
        sa.Column("sell_price", sa.Numeric(20, 8), nullable=True),
        sa.Column("type", trade_type, nullable=False),
        sa.Column("status", trade_status, nullable=False),
        sa.Column("trade_amount", sa.Numeric(20, 8), nullable=False),
        sa.Column("trade_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("profit_loss", sa.Numeric(20, 8), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_orders_id", "orders", ["id"])
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_order_user_status", "orders", ["user_id", "status"])

    op.create_table(
        "loan_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(20, 2), nullable=False),
        sa.Column("status", loan_status, nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("ix_loan_requests_id", "loan_requests", ["id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("request_id", sa.String(64), nullable=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_audit_logs_id", "audit_logs", ["id"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_request_id", "audit_logs", ["request_id"])
    op.create_index("ix_audit_user_event", "audit_logs", ["user_id", "event_type"])


def downgrade():
    op.drop_table("audit_logs")
    op.drop_table("loan_requests")
    op.drop_table("orders")
    op.drop_table("payment_info")
    op.drop_table("transactions")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (loan_status, trade_status, trade_type, payment_type,
                      transaction_status, transaction_type, user_role):
        enum_type.drop(bind, checkfirst=True)
