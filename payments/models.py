from django.db import models


def default_provider_raw_data():
    return {}


class PaymentIntent(models.Model):
    """A processor payment intent opened for an order (or a bare amount)"""

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_intents",
        verbose_name="Order",
    )
    amount = models.DecimalField("Amount", max_digits=12, decimal_places=2)
    currency = models.CharField("Currency", max_length=3)
    provider_intent_id = models.CharField("Processor intent id", max_length=100, unique=True)
    client_secret = models.CharField("Client secret", max_length=255, blank=True)
    status = models.CharField("Processor status", max_length=50)
    provider_raw_data = models.JSONField(
        "Raw processor response", default=default_provider_raw_data
    )
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        db_table = "payment_intents"
        ordering = ["-created_at"]
        verbose_name = "Payment intent"
        verbose_name_plural = "Payment intents"

    def __str__(self):
        return f"{self.provider_intent_id} - {self.status} - {self.amount} {self.currency.upper()}"
