from django.conf import settings
from django.db import models
from django.db.models import Q


class CartItem(models.Model):
    """A product waiting in a member's cart, with the price seen when added"""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cart_items",
        verbose_name="Member",
    )
    product = models.ForeignKey(
        "marketplace.Product",
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="cart_items",
        verbose_name="Product",
    )
    name = models.CharField(max_length=200, verbose_name="Product name")
    price = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Unit price")
    quantity = models.PositiveIntegerField(default=1, verbose_name="Quantity")
    image = models.URLField(max_length=500, verbose_name="Product image")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Added at")

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at", "id"]
        verbose_name = "Cart item"
        verbose_name_plural = "Cart items"
        constraints = [
            models.UniqueConstraint(fields=["user", "product"], name="unique_cart_line_per_product"),
            models.CheckConstraint(condition=Q(quantity__gt=0), name="cart_item_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.name} x{self.quantity}"
