from django.contrib import admin
from .models import PaymentIntent


@admin.register(PaymentIntent)
class PaymentIntentAdmin(admin.ModelAdmin):
    list_display = ["provider_intent_id", "order", "amount", "currency", "status", "created_at"]
    list_filter = ["status", "currency", "created_at"]
    search_fields = ["provider_intent_id", "order__id"]
    readonly_fields = ["provider_intent_id", "client_secret", "provider_raw_data", "created_at", "updated_at"]

    fieldsets = (
        ("Intent", {
            "fields": ("order", "amount", "currency", "status")
        }),
        ("Processor", {
            "fields": ("provider_intent_id", "client_secret", "provider_raw_data"),
            "classes": ("collapse",)
        }),
        ("System", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",)
        }),
    )
