"""
Deposit / Transaction Reconciliation
====================================
Deposits are recorded as PENDING transactions and later settled to a
terminal status (COMPLETED or FAILED) exactly once.

Two entry points create deposits:
- ``create_order`` mints a hosted payment order with the provider first and
  then records the pending transaction against the provider order id.
- ``create_deposit_request`` records a manual UPI transfer to the active
  payment target under a generated reference.
"""

import json
import uuid
from decimal import Decimal
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from astex.core.config import settings
from astex.core.errors import (
    ConflictError,
    NotFoundError,
    OrderCreationError,
    UnauthorizedError,
    ValidationError,
)
from astex.core.logging import request_logger
from astex.db.models import (
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    utcnow,
)
from astex.services.audit import log_audit
from astex.services.payment_info import PaymentInfoRegistry
from astex.services.payment_provider import RazorpayClient

TERMINAL_STATUSES = (TransactionStatus.COMPLETED, TransactionStatus.FAILED)


def minor_to_major(amount_minor_units: int) -> Decimal:
    return (Decimal(amount_minor_units) / Decimal(100)).quantize(Decimal("0.01"))


def generate_reference() -> str:
    return f"DEP{uuid.uuid4().hex[:16].upper()}"


class DepositService:
    def __init__(self, db: Session, provider: Optional[RazorpayClient] = None):
        self.db = db
        self.provider = provider

    def _require_user(self, user_id: Optional[int]) -> User:
        # tokens outlive deleted accounts
        user = self.db.get(User, user_id) if user_id is not None else None
        if not user:
            raise UnauthorizedError("Unauthorized")
        return user

    def create_order(
        self,
        user_id: Optional[int],
        amount_minor_units: int,
        description: str = "Deposit Transaction",
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> str:
        """Mint a provider order and record it as a pending deposit; returns the provider order id"""
        self._require_user(user_id)
        if isinstance(amount_minor_units, bool) or not isinstance(amount_minor_units, int) or amount_minor_units <= 0:
            raise ValidationError("Amount must be a positive whole number of paise")

        provider_order = None
        try:
            provider_order = self.provider.create_order(
                amount=amount_minor_units,
                currency=settings.PAYMENT_CURRENCY,
                notes={"userId": user_id, "description": description},
            )

            txn = Transaction(
                user_id=user_id,
                type=TransactionType.DEPOSIT,
                transaction_id=provider_order["id"],
                status=TransactionStatus.PENDING,
                amount=minor_to_major(amount_minor_units),
                currency=settings.PAYMENT_CURRENCY,
                description=description,
                meta_json=json.dumps({
                    "razorpayOrder": provider_order,
                    "userAgent": user_agent,
                    "ipAddress": ip_address or "unknown",
                }, default=str),
            )
            self.db.add(txn)
            log_audit(self.db, "deposit_order_created", {
                "transaction_id": provider_order["id"],
                "amount_minor_units": amount_minor_units,
            }, user_id=user_id)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            if provider_order:
                # TODO: move to an outbox so orphaned provider orders can be cancelled automatically
                logger.error(f"ORPHANED PAYMENT ORDER {provider_order.get('id')} for user {user_id}: {e}")
            logger.error(f"CREATE ORDER ERROR: {e}")
            raise OrderCreationError("Error creating order")

        request_logger().info(
            f"Deposit order {provider_order['id']}: user {user_id} {minor_to_major(amount_minor_units)} {settings.PAYMENT_CURRENCY}"
        )
        return provider_order["id"]

    def create_deposit_request(
        self,
        user_id: Optional[int],
        amount: Decimal,
        payment_method: str = "UPI",
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Transaction:
        """Record a manual UPI transfer to the active payment target"""
        self._require_user(user_id)
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValidationError("Amount must be positive")

        target = PaymentInfoRegistry(self.db).get_active()

        try:
            txn = Transaction(
                user_id=user_id,
                type=TransactionType.DEPOSIT,
                transaction_id=generate_reference(),
                status=TransactionStatus.PENDING,
                amount=amount.quantize(Decimal("0.01")),
                currency=settings.PAYMENT_CURRENCY,
                description="UPI Deposit",
                payment_method=payment_method,
                meta_json=json.dumps({
                    "upiId": target.upi_id,
                    "merchantName": target.merchant_name,
                    "userAgent": user_agent,
                    "ipAddress": ip_address or "unknown",
                }),
            )
            self.db.add(txn)
            log_audit(self.db, "deposit_requested", {
                "transaction_id": txn.transaction_id,
                "amount": str(txn.amount),
            }, user_id=user_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(txn)
        request_logger().info(f"Deposit request {txn.transaction_id}: user {user_id} {txn.amount}")
        return txn

    def settle(self, transaction_id: str, status: TransactionStatus) -> Transaction:
        """Move a pending transaction to its terminal status, once"""
        if status not in TERMINAL_STATUSES:
            raise ValidationError("Settlement status must be COMPLETED or FAILED")

        try:
            txn = (
                self.db.query(Transaction)
                .filter(Transaction.transaction_id == transaction_id)
                .with_for_update()
                .first()
            )
            if not txn:
                raise NotFoundError("Transaction not found")
            if txn.status != TransactionStatus.PENDING:
                raise ConflictError(f"Transaction already {txn.status.value}")

            txn.status = status
            txn.settled_at = utcnow()
            log_audit(self.db, "transaction_settled", {
                "transaction_id": transaction_id,
                "status": status.value,
            }, user_id=txn.user_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(txn)
        request_logger().info(f"Transaction {transaction_id} settled as {status.value}")
        return txn
