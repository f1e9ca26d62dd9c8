from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from astex.core.config import settings
from astex.core.dependencies import get_current_user
from astex.db.models import User
from astex.db.session import get_db
from astex.schemas import CreateOrderRequest, DepositRequest
from astex.serializers import payment_info_to_dict
from astex.services.deposits import DepositService
from astex.services.payment_info import PaymentInfoRegistry
from astex.services.payment_provider import RazorpayClient, get_payment_provider
from astex.services.upi import build_upi_link, generate_qr_png

router = APIRouter(tags=["Deposits"])


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


@router.post("/create-order")
def create_order(
    payload: CreateOrderRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: RazorpayClient = Depends(get_payment_provider),
):
    order_id = DepositService(db, provider).create_order(
        current_user.id,
        payload.amount,
        description=payload.description,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
    )
    return {"success": True, "orderId": order_id}


@router.post("/create-deposit")
def create_deposit(
    payload: DepositRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = DepositService(db).create_deposit_request(
        current_user.id,
        payload.amount,
        payment_method=payload.payment_method,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
    )
    return {
        "success": True,
        "transactionId": txn.transaction_id,
        "status": txn.status.value,
        "amount": float(txn.amount),
    }


@router.get("/payment-info/active")
def get_active_payment_info(
    amount: Optional[Decimal] = Query(default=None, gt=0),
    db: Session = Depends(get_db),
):
    target = PaymentInfoRegistry(db).get_active()
    response = {"success": True, "paymentInfo": payment_info_to_dict(target)}

    if amount is not None:
        link = build_upi_link(target.upi_id, target.merchant_name, amount, settings.PAYMENT_CURRENCY)
        response["upiLink"] = link
        response["qrCode"] = f"data:image/png;base64,{generate_qr_png(link)}"
    return response
