"""
Error taxonomy shared by services and routers.

Services raise these; the exception handlers registered in ``astex.main``
turn them into the JSON error envelope.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Admin access required"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict"


class OrderCreationError(AppError):
    status_code = 500
    default_message = "Error creating order"


class PaymentProviderError(AppError):
    status_code = 502
    default_message = "Payment provider error"
