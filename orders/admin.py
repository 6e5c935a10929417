from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ["product_id", "name", "price", "quantity", "image"]
    fields = ["product_id", "name", "price", "quantity", "image"]
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["id", "customer", "total", "payment_method", "status", "created_at"]
    list_filter = ["status", "payment_method", "created_at"]
    search_fields = ["id", "customer__email", "customer__name"]
    readonly_fields = ["id", "customer", "address", "total", "payment_method", "created_at", "updated_at"]
    inlines = [OrderItemInline]

    fieldsets = (
        ("Order", {
            "fields": ("id", "customer", "status", "total", "payment_method")
        }),
        ("Shipping", {
            "fields": ("address",)
        }),
        ("System", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",)
        }),
    )


@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = ["order", "product_id", "name", "quantity", "price"]
    search_fields = ["order__id", "name"]
    readonly_fields = ["order", "product_id", "name", "price", "quantity", "image"]
    exclude = ["product"]
