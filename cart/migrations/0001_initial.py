import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("marketplace", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CartItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, verbose_name="Product name")),
                ("price", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="Unit price")),
                ("quantity", models.PositiveIntegerField(default=1, verbose_name="Quantity")),
                ("image", models.URLField(max_length=500, verbose_name="Product image")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Added at")),
                (
                    "product",
                    models.ForeignKey(
                        db_constraint=False,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="cart_items",
                        to="marketplace.product",
                        verbose_name="Product",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cart_items",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Member",
                    ),
                ),
            ],
            options={
                "verbose_name": "Cart item",
                "verbose_name_plural": "Cart items",
                "db_table": "cart_items",
                "ordering": ["created_at", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "product"), name="unique_cart_line_per_product"),
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="cart_item_quantity_positive"),
                ],
            },
        ),
    ]
