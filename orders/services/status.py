import logging

from django.db import DEFAULT_DB_ALIAS, InterfaceError, OperationalError, transaction

from ..models import Order
from .exceptions import (
    CheckoutValidationError,
    InvalidStatusTransitionError,
    NotFoundError,
    TransientStoreError,
)

logger = logging.getLogger(__name__)


def change_order_status(order_id, new_status, using=DEFAULT_DB_ALIAS):
    """Move an order to `new_status` if the transition table allows it"""
    valid_statuses = dict(Order.STATUS_CHOICES)
    if new_status not in valid_statuses:
        raise CheckoutValidationError(
            f"Unknown status '{new_status}'. Valid: {', '.join(valid_statuses)}"
        )

    try:
        with transaction.atomic(using=using):
            order = (
                Order.objects.using(using)
                .select_for_update()
                .filter(pk=order_id)
                .first()
            )
            if order is None:
                raise NotFoundError(f"Order {order_id} not found")

            previous_status = order.status
            if order.is_final:
                raise InvalidStatusTransitionError(
                    f"Order {order_id} is already '{previous_status}' and cannot change"
                )
            if not order.can_transition_to(new_status):
                raise InvalidStatusTransitionError(
                    f"Order {order_id} cannot go from '{previous_status}' to '{new_status}'"
                )

            order.status = new_status
            order.save(update_fields=["status", "updated_at"])
    except (OperationalError, InterfaceError) as e:
        logger.error(f"Status update for order {order_id} failed: {e}")
        raise TransientStoreError("The order could not be updated, please retry") from e

    logger.info(f"Order {order_id} moved from {previous_status} to {new_status}")
    return order
