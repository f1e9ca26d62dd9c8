from astex.services.deposits import DepositService
from astex.services.orders import OrderService, compute_profit_loss
from astex.services.payment_info import PaymentInfoRegistry
from astex.services.users import UserService

__all__ = [
    "DepositService",
    "OrderService",
    "compute_profit_loss",
    "PaymentInfoRegistry",
    "UserService",
]
