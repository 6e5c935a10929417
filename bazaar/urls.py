from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include


def health(request):
    return JsonResponse({"status": "ok", "message": "Bazaar backend is up"})


urlpatterns = [
    path("", health, name="health"),
    path("admin/", admin.site.urls),
    path("", include("accounts.urls")),
    path("", include("shops.urls")),
    path("", include("marketplace.urls")),
    path("", include("cart.urls")),
    path("", include("orders.urls")),
    path("payments/", include("payments.urls")),
]

# JSON error handlers
handler400 = "bazaar.error_views.custom_400_view"
handler403 = "bazaar.error_views.custom_403_view"
handler404 = "bazaar.error_views.custom_404_view"
handler500 = "bazaar.error_views.custom_500_view"
