"""
Payment Info Registry
=====================
Manages the UPI collection targets shown to depositors.

Within a payment type at most one record is active. Every activation locks
the rows of the type, deactivates the others and only then activates the
target, all inside one database transaction. The partial unique index on
``payment_info(type) WHERE is_active`` turns a lost race into an error
instead of a second active row.
"""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from astex.core.errors import ConflictError, NotFoundError, ValidationError
from astex.core.logging import request_logger
from astex.db.models import PaymentInfo, PaymentType, utcnow
from astex.services.audit import log_audit


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class PaymentInfoRegistry:
    """Single-active UPI target registry"""

    def __init__(self, db: Session, payment_type: PaymentType = PaymentType.UPI):
        self.db = db
        self.payment_type = payment_type

    def list(self) -> List[PaymentInfo]:
        return (
            self.db.query(PaymentInfo)
            .order_by(PaymentInfo.updated_at.desc(), PaymentInfo.id.desc())
            .all()
        )

    def get_active(self) -> PaymentInfo:
        record = (
            self.db.query(PaymentInfo)
            .filter(PaymentInfo.type == self.payment_type, PaymentInfo.is_active.is_(True))
            .first()
        )
        if not record:
            raise NotFoundError("No active payment information")
        return record

    def _lock_type(self):
        # serializes concurrent activations of the same type
        self.db.query(PaymentInfo.id).filter(
            PaymentInfo.type == self.payment_type
        ).with_for_update().all()

    def _deactivate_others(self, keep_id: Optional[int] = None) -> int:
        query = self.db.query(PaymentInfo).filter(
            PaymentInfo.type == self.payment_type,
            PaymentInfo.is_active.is_(True),
        )
        if keep_id is not None:
            query = query.filter(PaymentInfo.id != keep_id)
        return query.update({PaymentInfo.is_active: False}, synchronize_session="fetch")

    def create(self, upi_id: Optional[str], merchant_name: Optional[str]) -> PaymentInfo:
        if _blank(upi_id) or _blank(merchant_name):
            raise ValidationError("UPI ID and Merchant Name are required")

        try:
            self._lock_type()
            deactivated = self._deactivate_others()

            record = PaymentInfo(
                type=self.payment_type,
                upi_id=upi_id.strip(),
                merchant_name=merchant_name.strip(),
                is_active=True,
            )
            self.db.add(record)
            self.db.flush()

            log_audit(self.db, "payment_info_created", {
                "payment_info_id": record.id,
                "upi_id": record.upi_id,
                "deactivated": deactivated,
            })
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Another payment target was activated concurrently, retry")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(record)
        request_logger().info(f"Payment info #{record.id} created and activated ({deactivated} deactivated)")
        return record

    def update(
        self,
        payment_info_id: Optional[int],
        upi_id: Optional[str] = None,
        merchant_name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaymentInfo:
        if payment_info_id is None:
            raise ValidationError("Payment info ID is required")

        try:
            self._lock_type()
            record = self.db.get(PaymentInfo, payment_info_id)
            if not record:
                raise NotFoundError("Payment information not found")

            activating = is_active if is_active is not None else record.is_active
            deactivated = 0
            if activating:
                deactivated = self._deactivate_others(keep_id=record.id)

            if not _blank(upi_id):
                record.upi_id = upi_id.strip()
            if not _blank(merchant_name):
                record.merchant_name = merchant_name.strip()
            record.is_active = activating
            # touch even when no column changed
            record.updated_at = utcnow()
            self.db.flush()

            log_audit(self.db, "payment_info_updated", {
                "payment_info_id": record.id,
                "is_active": record.is_active,
                "deactivated": deactivated,
            })
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Another payment target was activated concurrently, retry")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(record)
        request_logger().info(f"Payment info #{record.id} updated (active={record.is_active})")
        return record
