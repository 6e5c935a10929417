"""
Order placement

Creates an order with its line items and moves each product's ordered
quantity from stock to sold. All of it happens in one database
transaction: either the order, every line item and every counter update
commit together, or nothing is written.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import (
    DEFAULT_DB_ALIAS,
    InterfaceError,
    OperationalError,
    connections,
    transaction,
)
from django.db.models import F
from django.utils import timezone

from accounts.models import Address
from marketplace.models import MAX_UNITS, Product
from ..models import Order, OrderItem
from .exceptions import (
    CheckoutError,
    CheckoutValidationError,
    InsufficientStockError,
    NotFoundError,
    TransientStoreError,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# BigAutoField upper bound
MAX_ID = 9223372036854775807
MAX_QUANTITY = MAX_UNITS

# Largest values the order total / unit price columns can hold
MAX_TOTAL = Decimal("9999999999.99")
MAX_PRICE = Decimal("99999999.99")


def _clean_id(value, field):
    if isinstance(value, bool):
        raise CheckoutValidationError(f"{field} must be a positive integer")
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise CheckoutValidationError(f"{field} must be a positive integer")
    if value <= 0 or value > MAX_ID:
        raise CheckoutValidationError(f"{field} must be a positive integer")
    return value


def _clean_money(value, field, maximum):
    if value is None or isinstance(value, bool):
        raise CheckoutValidationError(f"{field} is required")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise CheckoutValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise CheckoutValidationError(f"{field} must be a number")
    if amount < 0:
        raise CheckoutValidationError(f"{field} must not be negative")
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if amount > maximum:
        raise CheckoutValidationError(f"{field} must not exceed {maximum}")
    return amount


def _clean_quantity(value, field):
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise CheckoutValidationError(f"{field} must be a positive integer")
    try:
        quantity = int(value)
    except ValueError:
        raise CheckoutValidationError(f"{field} must be a positive integer")
    if quantity <= 0:
        raise CheckoutValidationError(f"{field} must be greater than 0")
    if quantity > MAX_QUANTITY:
        raise CheckoutValidationError(f"{field} must not exceed {MAX_QUANTITY}")
    return quantity


def _clean_text(value, field, max_length):
    if not isinstance(value, str) or not value.strip():
        raise CheckoutValidationError(f"{field} is required")
    value = value.strip()
    if len(value) > max_length:
        raise CheckoutValidationError(f"{field} must be at most {max_length} characters")
    return value


class OrderPlacementService:
    """
    Places orders against one database connection alias.

    The alias is fixed at construction so callers (and tests) decide which
    database the transaction runs on. `timeout_ms` bounds how long a
    placement may wait on locks or statements; it is applied on PostgreSQL
    and ignored elsewhere.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS, timeout_ms=None):
        self.using = using
        if timeout_ms is None:
            timeout_ms = settings.ORDER_PLACEMENT_TIMEOUT_MS
        self.timeout_ms = timeout_ms

    def place_order(self, *, customer_id, total, payment_method, address_id, items):
        """
        Create an order in status "to-ship" and decrement stock for each line.

        `items` is a list of dicts with product_id, name, price, quantity
        and image. Lines keep the caller's order, and a product listed
        twice is decremented once per line. `total` is stored as given.

        Raises CheckoutValidationError, NotFoundError, InsufficientStockError
        or TransientStoreError; on any of them no row has been written.
        """
        customer_id = _clean_id(customer_id, "customerId")
        address_id = _clean_id(address_id, "addressId")
        total = _clean_money(total, "total", MAX_TOTAL)
        payment_method = _clean_text(payment_method, "paymentMethod", 50)
        lines = self._clean_items(items)

        try:
            with transaction.atomic(using=self.using):
                self._bound_transaction()
                order = self._write_order(
                    customer_id, total, payment_method, address_id, lines
                )
        except CheckoutError as e:
            logger.warning(f"Checkout rejected for customer {customer_id}: {e}")
            raise
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Checkout storage failure for customer {customer_id}: {e}")
            raise TransientStoreError("The order could not be stored, please retry") from e

        logger.info(
            f"Order {order.id} placed by customer {customer_id}: "
            f"{len(lines)} line(s), total {total}"
        )
        return order

    def _clean_items(self, items):
        if not isinstance(items, (list, tuple)) or not items:
            raise CheckoutValidationError("An order needs at least one item")

        lines = []
        for index, item in enumerate(items):
            field = f"items[{index}]"
            if not isinstance(item, dict):
                raise CheckoutValidationError(f"{field} must be an object")
            lines.append({
                "product_id": _clean_id(item.get("product_id"), f"{field}.id"),
                "name": _clean_text(item.get("name"), f"{field}.name", 200),
                "price": _clean_money(item.get("price"), f"{field}.price", MAX_PRICE),
                "quantity": _clean_quantity(item.get("quantity"), f"{field}.quantity"),
                "image": _clean_text(item.get("image"), f"{field}.image", 500),
            })
        return lines

    def _bound_transaction(self):
        connection = connections[self.using]
        if connection.vendor != "postgresql" or not self.timeout_ms:
            return
        timeout = f"{int(self.timeout_ms)}ms"
        with connection.cursor() as cursor:
            # is_local=true: both reset when this transaction ends
            cursor.execute("SELECT set_config('statement_timeout', %s, true)", [timeout])
            cursor.execute("SELECT set_config('lock_timeout', %s, true)", [timeout])

    def _write_order(self, customer_id, total, payment_method, address_id, lines):
        using = self.using
        Member = get_user_model()

        if not Member.objects.using(using).filter(pk=customer_id).exists():
            raise NotFoundError(f"Customer {customer_id} not found")
        if not Address.objects.using(using).filter(pk=address_id, user_id=customer_id).exists():
            raise NotFoundError(f"Address {address_id} not found for customer {customer_id}")

        # Lock every product row in id order so concurrent checkouts
        # touching the same products cannot deadlock each other
        product_ids = sorted({line["product_id"] for line in lines})
        locked = (
            Product.objects.using(using)
            .select_for_update()
            .filter(pk__in=product_ids)
            .order_by("pk")
            .only("pk")
        )
        found = {product.pk for product in locked}
        missing = [product_id for product_id in product_ids if product_id not in found]
        if missing:
            raise NotFoundError(
                f"Product(s) not found: {', '.join(str(product_id) for product_id in missing)}"
            )

        order = Order.objects.using(using).create(
            customer_id=customer_id,
            total=total,
            payment_method=payment_method,
            address_id=address_id,
            status=Order.STATUS_TO_SHIP,
        )
        OrderItem.objects.using(using).bulk_create([
            OrderItem(
                order=order,
                product_id=line["product_id"],
                name=line["name"],
                price=line["price"],
                quantity=line["quantity"],
                image=line["image"],
            )
            for line in lines
        ])

        for line in lines:
            self._move_stock_to_sold(line["product_id"], line["quantity"])

        return Order.objects.using(using).prefetch_related("items").get(pk=order.pk)

    def _move_stock_to_sold(self, product_id, quantity):
        """Conditional decrement; the row must still hold enough stock"""
        rows_updated = Product.objects.using(self.using).filter(
            pk=product_id, stock__gte=quantity
        ).update(
            stock=F("stock") - quantity,
            sold=F("sold") + quantity,
            updated_at=timezone.now(),
        )
        if rows_updated == 0:
            available = (
                Product.objects.using(self.using)
                .filter(pk=product_id)
                .values_list("stock", flat=True)
                .first()
            )
            raise InsufficientStockError(product_id, quantity, available or 0)
        logger.debug(f"Moved {quantity} unit(s) of product {product_id} from stock to sold")
