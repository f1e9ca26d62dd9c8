from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.orm import Session

from astex.core.dependencies import require_admin
from astex.db.session import get_db
from astex.schemas import (
    OrderRequest,
    PaymentInfoCreateRequest,
    PaymentInfoUpdateRequest,
    SettleTransactionRequest,
    UserUpdateRequest,
)
from astex.serializers import (
    order_to_dict,
    payment_info_to_dict,
    transaction_to_dict,
    user_detail_to_dict,
    user_to_dict,
)
from astex.services.deposits import DepositService
from astex.services.mailer import Mailer, get_mailer
from astex.services.orders import CREATE, EDIT, OrderService
from astex.services.payment_info import PaymentInfoRegistry
from astex.services.users import UserService

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


# ============================================================================
# PAYMENT INFO
# ============================================================================

@router.get("/payment-info")
def list_payment_info(db: Session = Depends(get_db)):
    records = PaymentInfoRegistry(db).list()
    return {"success": True, "paymentInfoList": [payment_info_to_dict(r) for r in records]}


@router.post("/payment-info")
def create_payment_info(payload: PaymentInfoCreateRequest, db: Session = Depends(get_db)):
    record = PaymentInfoRegistry(db).create(payload.upi_id, payload.merchant_name)
    return {
        "success": True,
        "paymentInfo": payment_info_to_dict(record),
        "message": "UPI payment information created successfully",
    }


@router.put("/payment-info")
def update_payment_info(payload: PaymentInfoUpdateRequest, db: Session = Depends(get_db)):
    record = PaymentInfoRegistry(db).update(
        payload.id,
        upi_id=payload.upi_id,
        merchant_name=payload.merchant_name,
        is_active=payload.is_active,
    )
    return {
        "success": True,
        "paymentInfo": payment_info_to_dict(record),
        "message": "Payment information updated successfully",
    }


# ============================================================================
# USERS
# ============================================================================

@router.get("/users/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = UserService(db).get(user_id)
    return user_detail_to_dict(user)


@router.patch("/users/{user_id}")
def verify_user(
    user_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    user, changed = UserService(db).verify(user_id)
    if changed:
        background_tasks.add_task(mailer.send_verification_email, user.email)
    return {"success": True}


@router.put("/users/{user_id}")
def update_user(user_id: int, payload: UserUpdateRequest, db: Session = Depends(get_db)):
    user = UserService(db).update(user_id, payload)
    return {"success": True, "user": user_to_dict(user)}


@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    try:
        UserService(db).delete(user_id)
    except Exception as e:
        logger.error(f"DELETE USER ERROR: user={user_id}, error={e}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to delete user"})
    return {"success": True}


# ============================================================================
# ORDERS
# ============================================================================

@router.post("/orders")
def create_order_record(payload: OrderRequest, db: Session = Depends(get_db)):
    order = OrderService(db).save(payload, mode=CREATE)
    return {"success": True, "order": order_to_dict(order)}


@router.put("/orders/{order_id}")
def update_order_record(order_id: int, payload: OrderRequest, db: Session = Depends(get_db)):
    order = OrderService(db).save(payload, mode=EDIT, order_id=order_id)
    return {"success": True, "order": order_to_dict(order)}


@router.delete("/orders/{order_id}")
def delete_order_record(order_id: int, db: Session = Depends(get_db)):
    OrderService(db).delete(order_id)
    return {"success": True}


# ============================================================================
# TRANSACTIONS
# ============================================================================

@router.post("/transactions/{transaction_id}/settle")
def settle_transaction(
    transaction_id: str,
    payload: SettleTransactionRequest,
    db: Session = Depends(get_db),
):
    txn = DepositService(db).settle(transaction_id, payload.status)
    return {"success": True, "transaction": transaction_to_dict(txn)}
