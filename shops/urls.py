from django.urls import path
from . import views

app_name = "shops"

urlpatterns = [
    path("shops/<int:shop_id>", views.ShopDetailAPIView.as_view(), name="shop-detail"),
    path("shops/<int:shop_id>/analytics", views.ShopAnalyticsAPIView.as_view(), name="shop-analytics"),
    path("shops/<int:shop_id>/analytics/export", views.ShopAnalyticsExportAPIView.as_view(), name="shop-analytics-export"),
]
