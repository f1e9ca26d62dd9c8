"""Record → JSON dicts (camelCase wire names)"""

import json
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from astex.db.models import LoanRequest, Order, PaymentInfo, Transaction, User


def _num(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _enum(value) -> Optional[str]:
    return value.value if value is not None else None


def payment_info_to_dict(record: PaymentInfo) -> Dict[str, Any]:
    return {
        "id": record.id,
        "type": _enum(record.type),
        "upiId": record.upi_id,
        "merchantName": record.merchant_name,
        "isActive": record.is_active,
        "createdAt": _iso(record.created_at),
        "updatedAt": _iso(record.updated_at),
    }


def transaction_to_dict(txn: Transaction) -> Dict[str, Any]:
    return {
        "id": txn.id,
        "userId": txn.user_id,
        "type": _enum(txn.type),
        "transactionId": txn.transaction_id,
        "status": _enum(txn.status),
        "amount": _num(txn.amount),
        "currency": txn.currency,
        "description": txn.description,
        "paymentMethod": txn.payment_method,
        "metadata": json.loads(txn.meta_json) if txn.meta_json else None,
        "timestamp": _iso(txn.timestamp),
        "settledAt": _iso(txn.settled_at),
    }


def order_to_dict(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "userId": order.user_id,
        "symbol": order.symbol,
        "quantity": _num(order.quantity),
        "buyPrice": _num(order.buy_price),
        "sellPrice": _num(order.sell_price),
        "type": _enum(order.type),
        "status": _enum(order.status),
        "tradeAmount": _num(order.trade_amount),
        "tradeDate": _iso(order.trade_date),
        "profitLoss": _num(order.profit_loss),
        "createdAt": _iso(order.created_at),
        "updatedAt": _iso(order.updated_at),
    }


def loan_request_to_dict(loan: Optional[LoanRequest]) -> Optional[Dict[str, Any]]:
    if loan is None:
        return None
    return {
        "id": loan.id,
        "userId": loan.user_id,
        "amount": _num(loan.amount),
        "status": _enum(loan.status),
        "reason": loan.reason,
        "createdAt": _iso(loan.created_at),
    }


def user_to_dict(user: User) -> Dict[str, Any]:
    # password_hash never leaves the service
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "phone": user.phone,
        "aadharNo": user.aadhar_no,
        "pan": user.pan,
        "gender": user.gender,
        "dob": _iso(user.dob),
        "nomineeName": user.nominee_name,
        "nomineeRelation": user.nominee_relation,
        "bankName": user.bank_name,
        "accountNumber": user.account_number,
        "accountHolder": user.account_holder,
        "ifscCode": user.ifsc_code,
        "address": user.address,
        "role": _enum(user.role),
        "isVerified": user.is_verified,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def user_detail_to_dict(user: User) -> Dict[str, Any]:
    data = user_to_dict(user)
    data["transactions"] = [transaction_to_dict(t) for t in user.transactions]
    data["orders"] = [order_to_dict(o) for o in user.orders]
    data["loanRequest"] = loan_request_to_dict(user.loan_request)
    return data
