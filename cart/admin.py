from django.contrib import admin
from .models import CartItem


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ["user", "product_id", "name", "quantity", "price", "created_at"]
    search_fields = ["user__email", "name"]
    exclude = ["product"]
    readonly_fields = ["product_id", "created_at"]
