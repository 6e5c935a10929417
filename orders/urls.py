from django.urls import path
from . import views

app_name = "orders"

urlpatterns = [
    path("orders", views.OrderListCreateAPIView.as_view(), name="order-list"),
    path("orders/customer/<int:customer_id>", views.CustomerOrderListAPIView.as_view(), name="customer-orders"),
    path("orders/<uuid:order_id>", views.OrderDetailAPIView.as_view(), name="order-detail"),
    path("orders/<uuid:order_id>/status", views.OrderStatusAPIView.as_view(), name="order-status"),
]
