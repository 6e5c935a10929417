from .exceptions import (
    CheckoutError,
    CheckoutValidationError,
    InsufficientStockError,
    InvalidStatusTransitionError,
    NotFoundError,
    TransientStoreError,
)
from .placement import OrderPlacementService
from .status import change_order_status

__all__ = [
    "CheckoutError",
    "CheckoutValidationError",
    "InsufficientStockError",
    "InvalidStatusTransitionError",
    "NotFoundError",
    "TransientStoreError",
    "OrderPlacementService",
    "change_order_status",
]
