import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Order
from .serializers import OrderSerializer, OrderStatusSerializer, PlaceOrderSerializer
from .services import (
    CheckoutValidationError,
    InsufficientStockError,
    InvalidStatusTransitionError,
    NotFoundError,
    OrderPlacementService,
    TransientStoreError,
    change_order_status,
)

logger = logging.getLogger(__name__)


def _error(message, http_status, **extra):
    return Response({"error": message, **extra}, status=http_status)


class OrderListCreateAPIView(APIView):
    """
    GET /orders - every order, newest first
    POST /orders - checkout: create the order and move stock to sold
    """
    placement_service_class = OrderPlacementService

    def get(self, request):
        orders = Order.objects.prefetch_related("items").order_by("-created_at")
        return Response(OrderSerializer(orders, many=True).data)

    def post(self, request):
        serializer = PlaceOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return _error(
                "Invalid order data",
                status.HTTP_400_BAD_REQUEST,
                details=serializer.errors,
            )

        try:
            order = self.placement_service_class().place_order(
                **serializer.to_service_kwargs()
            )
        except CheckoutValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)
        except NotFoundError as e:
            return _error(str(e), status.HTTP_404_NOT_FOUND)
        except InsufficientStockError as e:
            return _error(
                str(e),
                status.HTTP_409_CONFLICT,
                productId=e.product_id,
                requested=e.requested,
                available=e.available,
            )
        except TransientStoreError as e:
            return _error(str(e), status.HTTP_503_SERVICE_UNAVAILABLE)
        except Exception:
            logger.exception("Unexpected checkout failure")
            return _error("Could not place the order", status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class CustomerOrderListAPIView(APIView):
    """
    GET /orders/customer/:customerId
    """
    def get(self, request, customer_id):
        orders = (
            Order.objects.filter(customer_id=customer_id)
            .prefetch_related("items")
            .order_by("-created_at")
        )
        return Response(OrderSerializer(orders, many=True).data)


class OrderDetailAPIView(APIView):
    def get(self, request, order_id):
        order = get_object_or_404(Order.objects.prefetch_related("items"), pk=order_id)
        return Response(OrderSerializer(order).data)


class OrderStatusAPIView(APIView):
    """
    PATCH /orders/:id/status {"status": "..."}
    """
    def patch(self, request, order_id):
        serializer = OrderStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return _error(
                "Invalid status data",
                status.HTTP_400_BAD_REQUEST,
                details=serializer.errors,
            )

        try:
            order = change_order_status(order_id, serializer.validated_data["status"])
        except CheckoutValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)
        except NotFoundError as e:
            return _error(str(e), status.HTTP_404_NOT_FOUND)
        except InvalidStatusTransitionError as e:
            return _error(str(e), status.HTTP_409_CONFLICT)
        except TransientStoreError as e:
            return _error(str(e), status.HTTP_503_SERVICE_UNAVAILABLE)

        order = Order.objects.prefetch_related("items").get(pk=order.pk)
        return Response(OrderSerializer(order).data)
