"""
Checkout and order lifecycle exceptions
"""

class CheckoutError(Exception):
    """Base class for order placement and order update failures"""
    pass

class CheckoutValidationError(CheckoutError):
    """Missing or malformed input; nothing was written"""
    pass

class NotFoundError(CheckoutError):
    """A referenced customer, address, product or order does not exist"""
    pass

class InsufficientStockError(CheckoutError):
    """A product has fewer units in stock than the order asks for"""

    def __init__(self, product_id, requested, available):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )

class InvalidStatusTransitionError(CheckoutError):
    """The order cannot move from its current status to the requested one"""
    pass

class TransientStoreError(CheckoutError):
    """Database unavailable, timed out or conflicted; the request may be retried"""
    pass
