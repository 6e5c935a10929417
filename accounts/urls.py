from django.urls import path
from . import views

app_name = "accounts"

urlpatterns = [
    path("auth/register", views.RegisterAPIView.as_view(), name="register"),
    path("auth/login", views.LoginAPIView.as_view(), name="login"),
    path("users/<int:user_id>/addresses", views.UserAddressListAPIView.as_view(), name="user-addresses"),
    path("addresses", views.AddressCreateAPIView.as_view(), name="address-create"),
    path("addresses/<int:address_id>", views.AddressDetailAPIView.as_view(), name="address-detail"),
]
