from django.urls import path
from . import views

app_name = "cart"

urlpatterns = [
    path("cart", views.CartItemCreateAPIView.as_view(), name="cart-add"),
    # GET takes a member id, PUT/DELETE a cart item id
    path("cart/<int:pk>", views.CartAPIView.as_view(), name="cart-detail"),
    path("cart/user/<int:user_id>", views.ClearCartAPIView.as_view(), name="cart-clear"),
]
