import logging

from django.db import IntegrityError, transaction
from django.db.models import F
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from marketplace.models import MAX_UNITS
from .models import CartItem
from .serializers import CartItemSerializer, CartItemWriteSerializer, CartQuantitySerializer

logger = logging.getLogger(__name__)


class CartQuantityLimitError(Exception):
    pass


def _merge_into_cart(data):
    """Add to the existing line for this product, or open a new one"""
    with transaction.atomic():
        existing = (
            CartItem.objects.select_for_update()
            .filter(user=data["userId"], product=data["productId"])
            .first()
        )
        if existing:
            if existing.quantity + data["quantity"] > MAX_UNITS:
                raise CartQuantityLimitError(f"Quantity must not exceed {MAX_UNITS}")
            CartItem.objects.filter(pk=existing.pk).update(
                quantity=F("quantity") + data["quantity"]
            )
            existing.refresh_from_db()
            return existing, False

        item = CartItem.objects.create(
            user=data["userId"],
            product=data["productId"],
            name=data["name"],
            price=data["price"],
            quantity=data["quantity"],
            image=data["image"],
        )
        return item, True


class CartItemCreateAPIView(APIView):
    """
    POST /cart - add a product; repeated adds raise the quantity
    """
    def post(self, request):
        serializer = CartItemWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid cart data", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            try:
                item, created = _merge_into_cart(serializer.validated_data)
            except IntegrityError:
                # Another request opened the line first; add onto it
                logger.warning("Concurrent cart insert, merging into the existing line")
                item, created = _merge_into_cart(serializer.validated_data)
        except CartQuantityLimitError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            CartItemSerializer(item).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class CartAPIView(APIView):
    """
    GET /cart/:userId - a member's cart
    PUT /cart/:id {quantity} - set the quantity of one line
    DELETE /cart/:id - remove one line
    """
    def get(self, request, pk):
        items = CartItem.objects.filter(user_id=pk)
        return Response(CartItemSerializer(items, many=True).data)

    def put(self, request, pk):
        item = get_object_or_404(CartItem, pk=pk)
        serializer = CartQuantitySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid quantity", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        item.quantity = serializer.validated_data["quantity"]
        item.save(update_fields=["quantity"])
        return Response(CartItemSerializer(item).data)

    def delete(self, request, pk):
        item = get_object_or_404(CartItem, pk=pk)
        item.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class ClearCartAPIView(APIView):
    """
    DELETE /cart/user/:userId - empty the cart after checkout
    """
    def delete(self, request, user_id):
        deleted, _ = CartItem.objects.filter(user_id=user_id).delete()
        logger.info(f"Cleared {deleted} cart line(s) for member {user_id}")
        return Response(status=status.HTTP_204_NO_CONTENT)
