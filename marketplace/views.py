import json
import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from shops.models import Shop
from .models import Favorite, Product
from .serializers import ProductSerializer, ProductWriteSerializer
from .uploads import store_product_images

Member = get_user_model()

logger = logging.getLogger(__name__)


def _parse_price(value):
    """Unparseable prices fall back to 0, as the storefront expects"""
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("0")


def _parse_stock(value):
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def _absolute_media_url(request, url):
    # Local file storage hands back relative URLs
    if url.startswith("/"):
        return request.build_absolute_uri(url)
    return url


class ProductListCreateAPIView(APIView):
    """
    GET /products?search= - catalog, newest first
    POST /products - multipart product creation with image upload
    """
    def get(self, request):
        products = Product.objects.all()
        search = request.query_params.get("search", "").strip()
        if search:
            products = products.filter(name__icontains=search)
        products = products.order_by("-created_at")
        return Response(ProductSerializer(products, many=True).data)

    def post(self, request):
        logger.info("New product submission received")
        files = request.FILES.getlist("files")
        if not files:
            logger.warning("No image was uploaded, using the placeholder")

        variations = request.data.get("variations") or []
        if isinstance(variations, str):
            try:
                variations = json.loads(variations)
            except ValueError:
                return Response(
                    {"error": "Variations must be valid JSON"},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        serializer = ProductWriteSerializer(data={
            "name": request.data.get("name"),
            "description": request.data.get("description") or "",
            "price": _parse_price(request.data.get("price")),
            "stock": _parse_stock(request.data.get("stock")),
            "category": request.data.get("category") or "",
            "variations": variations,
            "shopId": request.data.get("shopId"),
        })
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid product data", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            image_urls = store_product_images(files)
        except ValidationError as e:
            return Response(
                {"error": "Invalid image", "details": e.messages},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except Exception:
            logger.exception("Product image upload failed")
            return Response(
                {"error": "Internal server error"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        image_urls = [_absolute_media_url(request, url) for url in image_urls]
        product = serializer.save(
            image=image_urls[0] if image_urls else settings.PRODUCT_PLACEHOLDER_IMAGE,
            images=image_urls,
        )
        logger.info(f"Product {product.id} created for shop {product.shop_id}")
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


class ProductDetailAPIView(APIView):
    """
    GET/PATCH/DELETE /products/:id
    """
    def get(self, request, product_id):
        product = get_object_or_404(Product, pk=product_id)
        return Response(ProductSerializer(product).data)

    def patch(self, request, product_id):
        product = get_object_or_404(Product, pk=product_id)
        serializer = ProductWriteSerializer(product, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid product data", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        product = serializer.save()
        return Response(ProductSerializer(product).data)

    def delete(self, request, product_id):
        product = get_object_or_404(Product, pk=product_id)
        # Orders keep their own snapshot of the product
        product.delete()
        logger.info(f"Product {product_id} deleted")
        return Response(status=status.HTTP_204_NO_CONTENT)


class ShopProductListAPIView(APIView):
    """
    GET /shops/:shopId/products
    """
    def get(self, request, shop_id):
        shop = get_object_or_404(Shop, pk=shop_id)
        products = Product.objects.filter(shop=shop).order_by("-created_at")
        return Response(ProductSerializer(products, many=True).data)


class FavoriteToggleAPIView(APIView):
    """
    POST /favorites/toggle - add or remove a product from a member's favorites
    """
    def post(self, request):
        user_id = request.data.get("userId")
        product_id = request.data.get("productId")
        if not user_id or not product_id:
            return Response(
                {"error": "userId and productId are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            user = get_object_or_404(Member, pk=user_id)
            product = get_object_or_404(Product, pk=product_id)
        except (TypeError, ValueError):
            return Response(
                {"error": "userId and productId must be numeric"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            with transaction.atomic():
                existing = (
                    Favorite.objects.select_for_update()
                    .filter(user=user, product=product)
                    .first()
                )
                if existing:
                    existing.delete()
                    return Response({"favorited": False})

                Favorite.objects.create(user=user, product=product)
        except IntegrityError:
            # A concurrent toggle created it first
            logger.warning(f"Concurrent favorite toggle for user {user.id}, product {product.id}")
        return Response({"favorited": True})


class UserFavoriteIdsAPIView(APIView):
    """
    GET /favorites/user/:userId - ids only, for the heart icons
    """
    def get(self, request, user_id):
        product_ids = Favorite.objects.filter(user_id=user_id).values_list(
            "product_id", flat=True
        )
        return Response(list(product_ids))


class UserFavoriteDetailsAPIView(APIView):
    """
    GET /favorites/details/:userId - the favorited products themselves
    """
    def get(self, request, user_id):
        favorites = Favorite.objects.filter(user_id=user_id).select_related("product")
        products = [favorite.product for favorite in favorites]
        return Response(ProductSerializer(products, many=True).data)
