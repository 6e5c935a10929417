import django.db.models.deletion
from django.db import migrations, models

import payments.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentIntent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="Amount")),
                ("currency", models.CharField(max_length=3, verbose_name="Currency")),
                ("provider_intent_id", models.CharField(max_length=100, unique=True, verbose_name="Processor intent id")),
                ("client_secret", models.CharField(blank=True, max_length=255, verbose_name="Client secret")),
                ("status", models.CharField(max_length=50, verbose_name="Processor status")),
                (
                    "provider_raw_data",
                    models.JSONField(default=payments.models.default_provider_raw_data, verbose_name="Raw processor response"),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payment_intents",
                        to="orders.order",
                        verbose_name="Order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment intent",
                "verbose_name_plural": "Payment intents",
                "db_table": "payment_intents",
                "ordering": ["-created_at"],
            },
        ),
    ]
