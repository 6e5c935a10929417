from django.urls import path
from . import views

app_name = "marketplace"

urlpatterns = [
    path("products", views.ProductListCreateAPIView.as_view(), name="product-list"),
    path("products/<int:product_id>", views.ProductDetailAPIView.as_view(), name="product-detail"),
    path("shops/<int:shop_id>/products", views.ShopProductListAPIView.as_view(), name="shop-products"),
    path("favorites/toggle", views.FavoriteToggleAPIView.as_view(), name="favorite-toggle"),
    path("favorites/user/<int:user_id>", views.UserFavoriteIdsAPIView.as_view(), name="favorite-ids"),
    path("favorites/details/<int:user_id>", views.UserFavoriteDetailsAPIView.as_view(), name="favorite-details"),
]
