from django.conf import settings
from django.db import models
from django.db.models import Q

from shops.models import Shop

# Upper bound of the PositiveIntegerField unit counters (stock, sold, quantities)
MAX_UNITS = 2147483647


def default_product_image():
    return settings.PRODUCT_PLACEHOLDER_IMAGE


class Product(models.Model):
    name = models.CharField(max_length=200, verbose_name="Product name")
    description = models.TextField(blank=True, verbose_name="Description")
    price = models.DecimalField(
        max_digits=10, decimal_places=2, default=0, verbose_name="Price"
    )
    stock = models.PositiveIntegerField(default=0, verbose_name="Units in stock")
    sold = models.PositiveIntegerField(default=0, verbose_name="Units sold")
    category = models.CharField(max_length=100, blank=True, verbose_name="Category")
    image = models.URLField(
        max_length=500,
        default=default_product_image,
        verbose_name="Primary image",
    )
    images = models.JSONField(default=list, blank=True, verbose_name="Images")
    variations = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Variations",
        help_text="Free-form variation descriptors, e.g. sizes or colours",
    )
    shop = models.ForeignKey(
        Shop, on_delete=models.CASCADE, related_name="products", verbose_name="Shop"
    )
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created at")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Updated at")

    class Meta:
        verbose_name = "Product"
        verbose_name_plural = "Products"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(price__gte=0), name="product_price_non_negative"
            ),
        ]

    def __str__(self):
        return self.name


class Favorite(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="favorites",
        verbose_name="Member",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="favorited_by",
        verbose_name="Product",
    )
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created at")

    class Meta:
        verbose_name = "Favorite"
        verbose_name_plural = "Favorites"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "product"], name="unique_favorite_per_user"
            ),
        ]

    def __str__(self):
        return f"{self.user} -> {self.product}"
