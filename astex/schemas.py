"""
Request schemas.

Every JSON body is parsed into one of these closed shapes before it reaches a
service: unknown fields are rejected and wire names are camelCase.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from astex.db.models import TradeType, TradeStatus, TransactionStatus


class StrictModel(BaseModel):
    class Config:
        extra = "forbid"
        populate_by_name = True


# ============================================================
# USERS
# ============================================================

class SignUpRequest(StrictModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=120)
    phone: str = Field(..., min_length=1, max_length=20)

    aadhar_no: Optional[str] = Field(default=None, alias="aadharNo", max_length=20)
    pan: Optional[str] = Field(default=None, max_length=20)
    gender: Optional[str] = None
    dob: Optional[str] = None
    nominee_name: Optional[str] = Field(default=None, alias="nomineeName")
    nominee_relation: Optional[str] = Field(default=None, alias="nomineeRelation")
    bank_name: Optional[str] = Field(default=None, alias="bankName")
    account_number: Optional[str] = Field(default=None, alias="accountNumber", max_length=34)
    account_holder: Optional[str] = Field(default=None, alias="accountHolder")
    ifsc_code: Optional[str] = Field(default=None, alias="ifscCode")
    address: Optional[str] = None


class LoginRequest(StrictModel):
    email: EmailStr
    password: str


class UserUpdateRequest(StrictModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=1, max_length=128)
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    phone: Optional[str] = Field(default=None, min_length=1, max_length=20)

    aadhar_no: Optional[str] = Field(default=None, alias="aadharNo", max_length=20)
    pan: Optional[str] = Field(default=None, max_length=20)
    gender: Optional[str] = None
    dob: Optional[str] = None
    nominee_name: Optional[str] = Field(default=None, alias="nomineeName")
    nominee_relation: Optional[str] = Field(default=None, alias="nomineeRelation")
    bank_name: Optional[str] = Field(default=None, alias="bankName")
    account_number: Optional[str] = Field(default=None, alias="accountNumber", max_length=34)
    account_holder: Optional[str] = Field(default=None, alias="accountHolder")
    ifsc_code: Optional[str] = Field(default=None, alias="ifscCode")
    address: Optional[str] = None


# ============================================================
# PAYMENT INFO
# ============================================================

class PaymentInfoCreateRequest(StrictModel):
    upi_id: Optional[str] = Field(default=None, alias="upiId")
    merchant_name: Optional[str] = Field(default=None, alias="merchantName")


class PaymentInfoUpdateRequest(StrictModel):
    id: Optional[int] = None
    upi_id: Optional[str] = Field(default=None, alias="upiId")
    merchant_name: Optional[str] = Field(default=None, alias="merchantName")
    is_active: Optional[bool] = Field(default=None, alias="isActive")


# ============================================================
# DEPOSITS
# ============================================================

class CreateOrderRequest(StrictModel):
    amount: int  # minor units (paise)
    description: str = Field(default="Deposit Transaction", max_length=255)


class DepositRequest(StrictModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: str = Field(default="UPI", alias="paymentMethod", pattern="^UPI$")


class SettleTransactionRequest(StrictModel):
    status: TransactionStatus


# ============================================================
# ORDERS
# ============================================================

class OrderRequest(StrictModel):
    id: Optional[int] = None
    user_id: int = Field(..., alias="userId")
    symbol: str = Field(..., min_length=1, max_length=20)
    quantity: Decimal = Field(..., ge=0)
    buy_price: Decimal = Field(..., alias="buyPrice", ge=0)
    sell_price: Optional[Decimal] = Field(default=None, alias="sellPrice", ge=0)
    type: TradeType = TradeType.LONG
    status: TradeStatus = TradeStatus.OPEN
    trade_amount: Decimal = Field(default=Decimal("0"), alias="tradeAmount")
    trade_date: Optional[str] = Field(default=None, alias="tradeDate")
    # derived server-side, accepted so edit forms can echo the record back
    profit_loss: Optional[Decimal] = Field(default=None, alias="profitLoss")
