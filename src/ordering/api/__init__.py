from ordering.api.errors import register_error_handlers
from ordering.api.routes import maintenance_router, order_router, payment_router, stock_router

__all__ = [
    "maintenance_router",
    "order_router",
    "payment_router",
    "register_error_handlers",
    "stock_router",
]
