import django.db.models.deletion
import marketplace.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("shops", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, verbose_name="Product name")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=10, verbose_name="Price")),
                ("stock", models.PositiveIntegerField(default=0, verbose_name="Units in stock")),
                ("sold", models.PositiveIntegerField(default=0, verbose_name="Units sold")),
                ("category", models.CharField(blank=True, max_length=100, verbose_name="Category")),
                (
                    "image",
                    models.URLField(
                        default=marketplace.models.default_product_image,
                        max_length=500,
                        verbose_name="Primary image",
                    ),
                ),
                ("images", models.JSONField(blank=True, default=list, verbose_name="Images")),
                (
                    "variations",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Free-form variation descriptors, e.g. sizes or colours",
                        verbose_name="Variations",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                (
                    "shop",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="products",
                        to="shops.shop",
                        verbose_name="Shop",
                    ),
                ),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("price__gte", 0)), name="product_price_non_negative"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Favorite",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="favorited_by",
                        to="marketplace.product",
                        verbose_name="Product",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="favorites",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Member",
                    ),
                ),
            ],
            options={
                "verbose_name": "Favorite",
                "verbose_name_plural": "Favorites",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "product"), name="unique_favorite_per_user"),
                ],
            },
        ),
    ]
