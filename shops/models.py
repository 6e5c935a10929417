from django.conf import settings
from django.db import models


class Shop(models.Model):
    PLACEHOLDER_IMAGE = "https://placehold.co/400"

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="shop",
        verbose_name="Owner",
    )
    name = models.CharField(max_length=100, verbose_name="Shop name")
    description = models.TextField(blank=True, verbose_name="Description")
    image = models.URLField(
        max_length=500, default=PLACEHOLDER_IMAGE, verbose_name="Shop image"
    )
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created at")

    class Meta:
        verbose_name = "Shop"
        verbose_name_plural = "Shops"
        ordering = ["-created_at"]

    def __str__(self):
        return self.name
