from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    Date,
    DateTime,
    Text,
    Enum as SQLEnum,
    ForeignKey,
    Numeric,
    Index,
    text,
)
from sqlalchemy.orm import relationship

from astex.db.session import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class TransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    OTHER = "OTHER"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PaymentType(str, Enum):
    UPI = "UPI"


class TradeType(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class TradeStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class LoanStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# ============================================================
# USER MODEL
# ============================================================

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(120), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(120), nullable=False)
    phone = Column(String(20), unique=True, index=True, nullable=False)

    # KYC
    aadhar_no = Column(String(20), unique=True, nullable=True)
    pan = Column(String(20), unique=True, nullable=True)
    gender = Column(String(20), nullable=True)
    dob = Column(Date, nullable=True)
    nominee_name = Column(String(120), nullable=True)
    nominee_relation = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)

    # Bank details
    bank_name = Column(String(120), nullable=True)
    account_number = Column(String(34), unique=True, nullable=True)
    account_holder = Column(String(120), nullable=True)
    ifsc_code = Column(String(20), nullable=True)

    role = Column(SQLEnum(UserRole), default=UserRole.USER, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    transactions = relationship(
        "Transaction",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Transaction.timestamp.desc()",
    )
    orders = relationship(
        "Order",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Order.created_at.desc()",
    )
    loan_request = relationship(
        "LoanRequest",
        back_populates="user",
        cascade="all, delete-orphan",
        uselist=False,
    )


# ============================================================
# TRANSACTION MODEL
# ============================================================

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    user = relationship("User", back_populates="transactions")

    type = Column(SQLEnum(TransactionType), nullable=False)
    transaction_id = Column(String(64), unique=True, index=True, nullable=False)
    status = Column(SQLEnum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False)

    amount = Column(Numeric(20, 2), nullable=False)
    currency = Column(String(10), default="INR", nullable=False)
    description = Column(String(255), nullable=True)
    payment_method = Column(String(20), nullable=True)

    meta_json = Column(Text, nullable=True)  # provider snapshot, request origin

    timestamp = Column(DateTime(timezone=True), default=utcnow)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_transaction_user_status", "user_id", "status"),
    )


# ============================================================
# PAYMENT INFO MODEL
# ============================================================

class PaymentInfo(Base):
    __tablename__ = "payment_info"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(SQLEnum(PaymentType), default=PaymentType.UPI, nullable=False)
    upi_id = Column(String(120), nullable=False)
    merchant_name = Column(String(120), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # at most one active row per type
    __table_args__ = (
        Index(
            "uq_payment_info_active_type",
            "type",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )


# ============================================================
# ORDER MODEL
# ============================================================

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    user = relationship("User", back_populates="orders")

    symbol = Column(String(20), nullable=False)
    quantity = Column(Numeric(20, 8), nullable=False)
    buy_price = Column(Numeric(20, 8), nullable=False)
    sell_price = Column(Numeric(20, 8), nullable=True)

    type = Column(SQLEnum(TradeType), default=TradeType.LONG, nullable=False)
    status = Column(SQLEnum(TradeStatus), default=TradeStatus.OPEN, nullable=False)

    trade_amount = Column(Numeric(20, 8), default=Decimal("0"), nullable=False)
    trade_date = Column(DateTime(timezone=True), nullable=False)
    profit_loss = Column(Numeric(20, 8), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_order_user_status", "user_id", "status"),
    )


# ============================================================
# LOAN REQUEST
# ============================================================

class LoanRequest(Base):
    __tablename__ = "loan_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    user = relationship("User", back_populates="loan_request")

    amount = Column(Numeric(20, 2), nullable=False)
    status = Column(SQLEnum(LoanStatus), default=LoanStatus.PENDING, nullable=False)
    reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)


# ============================================================
# AUDIT LOG
# ============================================================

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True, nullable=True)
    request_id = Column(String(64), index=True, nullable=True)
    event_type = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)  # JSON payload
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_audit_user_event", "user_id", "event_type"),
    )
