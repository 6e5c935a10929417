import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q


class Order(models.Model):
    """Checkout order; line items are snapshots taken at order time"""

    STATUS_TO_PAY = "to-pay"
    STATUS_TO_SHIP = "to-ship"
    STATUS_SHIPPING = "shipping"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_TO_PAY, "To pay"),
        (STATUS_TO_SHIP, "To ship"),
        (STATUS_SHIPPING, "Shipping"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # completed and cancelled are terminal
    ALLOWED_TRANSITIONS = {
        STATUS_TO_PAY: {STATUS_TO_SHIP, STATUS_CANCELLED},
        STATUS_TO_SHIP: {STATUS_SHIPPING, STATUS_CANCELLED},
        STATUS_SHIPPING: {STATUS_COMPLETED, STATUS_CANCELLED},
        STATUS_COMPLETED: set(),
        STATUS_CANCELLED: set(),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        verbose_name="Customer",
    )
    total = models.DecimalField("Order total", max_digits=12, decimal_places=2)
    payment_method = models.CharField("Payment method", max_length=50)
    address = models.ForeignKey(
        "accounts.Address",
        on_delete=models.PROTECT,
        related_name="orders",
        verbose_name="Shipping address",
    )
    status = models.CharField(
        "Order status", max_length=20, choices=STATUS_CHOICES, default=STATUS_TO_SHIP
    )
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        constraints = [
            models.CheckConstraint(
                condition=Q(total__gte=0), name="order_total_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.id} - {self.get_status_display()} - R${self.total}"

    def can_transition_to(self, new_status):
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())

    @property
    def is_final(self):
        return not self.ALLOWED_TRANSITIONS.get(self.status)


class OrderItem(models.Model):
    """Order line; name, image and price are frozen copies of the product"""

    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="items", verbose_name="Order"
    )
    # The product can be deleted later; the line keeps its id
    product = models.ForeignKey(
        "marketplace.Product",
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="order_items",
        verbose_name="Product",
    )
    name = models.CharField("Product name at order time", max_length=200)
    image = models.URLField("Product image at order time", max_length=500, blank=True)
    price = models.DecimalField("Unit price at order time", max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField("Quantity")

    class Meta:
        db_table = "order_items"
        ordering = ["id"]
        verbose_name = "Order item"
        verbose_name_plural = "Order items"
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0), name="order_item_quantity_positive"
            ),
        ]

    def __str__(self):
        return f"{self.name} x{self.quantity}"
