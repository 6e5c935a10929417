from django.contrib import admin
from .models import Favorite, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "shop", "price", "stock", "sold", "category", "created_at"]
    list_filter = ["category", "created_at", "shop"]
    search_fields = ["name", "shop__name", "category"]
    list_editable = ["stock"]
    readonly_fields = ["sold", "created_at", "updated_at"]


@admin.register(Favorite)
class FavoriteAdmin(admin.ModelAdmin):
    list_display = ["user", "product", "created_at"]
    search_fields = ["user__email", "product__name"]
