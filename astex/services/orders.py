"""
Order records
=============
Trade records edited from the admin dashboard.

profit_loss is always derived, never taken from the caller:
- sell price present: (sell_price - buy_price) * quantity
- sell price absent (position still open): None
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from astex.core.dates import coerce_datetime
from astex.core.errors import NotFoundError, ValidationError
from astex.core.logging import request_logger
from astex.db.models import Order, TradeStatus, TradeType, User
from astex.schemas import OrderRequest

CREATE = "create"
EDIT = "edit"


def compute_profit_loss(
    buy_price: Decimal,
    sell_price: Optional[Decimal],
    quantity: Decimal,
) -> Optional[Decimal]:
    if sell_price is None:
        return None
    return (Decimal(str(sell_price)) - Decimal(str(buy_price or 0))) * Decimal(str(quantity or 0))


class OrderService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def save(self, data: OrderRequest, mode: str = EDIT, order_id: Optional[int] = None) -> Order:
        """Insert (create) or update (edit) an order with derived profit/loss"""
        if mode not in (CREATE, EDIT):
            raise ValidationError(f"Unknown save mode: {mode}")

        try:
            if not self.db.get(User, data.user_id):
                raise NotFoundError("User not found")

            if mode == CREATE:
                order = Order(user_id=data.user_id)
                self.db.add(order)
            else:
                target_id = order_id if order_id is not None else data.id
                if target_id is None:
                    raise ValidationError("Order ID is required")
                order = self.get(target_id)

            order.user_id = data.user_id
            order.symbol = data.symbol.strip()
            order.quantity = data.quantity
            order.buy_price = data.buy_price
            order.sell_price = data.sell_price
            order.type = TradeType(data.type)
            order.status = TradeStatus(data.status)
            order.trade_amount = data.trade_amount
            order.trade_date = coerce_datetime(data.trade_date)
            order.profit_loss = compute_profit_loss(data.buy_price, data.sell_price, data.quantity)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        request_logger().info(
            f"Order #{order.id} {mode}: {order.symbol} qty={order.quantity} pnl={order.profit_loss}"
        )
        return order

    def delete(self, order_id: int) -> None:
        try:
            order = self.get(order_id)
            self.db.delete(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        request_logger().info(f"Order #{order_id} deleted")
