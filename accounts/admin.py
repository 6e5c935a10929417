from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import Address, Member


class AddressInline(admin.TabularInline):
    model = Address
    extra = 0
    readonly_fields = ["created_at"]


@admin.register(Member)
class MemberAdmin(UserAdmin):
    list_display = ["email", "name", "role", "phone", "is_active", "date_joined"]
    list_filter = ["role", "is_active", "date_joined"]
    search_fields = ["email", "name", "cpf", "phone"]
    ordering = ["-date_joined"]
    inlines = [AddressInline]

    fieldsets = UserAdmin.fieldsets + (
        ("Marketplace profile", {
            "fields": ("name", "cpf", "phone", "birthdate", "role", "login_failed_count")
        }),
    )


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ["user", "street", "number", "city", "state", "is_primary"]
    list_filter = ["state", "is_primary"]
    search_fields = ["user__email", "street", "city", "zip_code"]
