import logging
import uuid

from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.models import Order
from .gateway import PaymentGateway, PaymentGatewayError, PaymentGatewayNotConfigured
from .models import PaymentIntent

logger = logging.getLogger(__name__)


class PaymentIntentRequestSerializer(serializers.Serializer):
    orderId = serializers.UUIDField(required=False, allow_null=True)
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    currency = serializers.RegexField(r"^[A-Za-z]{3}$", required=False)

    def validate(self, attrs):
        if not attrs.get("orderId") and attrs.get("amount") is None:
            raise serializers.ValidationError("Either orderId or amount is required")
        return attrs


class PaymentIntentCreateAPIView(APIView):
    """
    POST /payments/intents {orderId?, amount?, currency?}

    With an order the amount is the order total; otherwise the given amount
    is charged. Clients may send an Idempotency-Key header to make retries
    safe.
    """
    gateway_class = PaymentGateway

    def post(self, request):
        serializer = PaymentIntentRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid payment data", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        data = serializer.validated_data

        order = None
        if data.get("orderId"):
            order = get_object_or_404(Order, pk=data["orderId"])
            amount = order.total
        else:
            amount = data["amount"]

        if amount <= 0:
            return Response(
                {"error": "Amount must be greater than 0"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        currency = (data.get("currency") or settings.PAYMENT_CURRENCY).lower()
        idempotency_key = request.headers.get("Idempotency-Key") or uuid.uuid4().hex
        metadata = {"order_id": order.id} if order else {}

        try:
            result = self.gateway_class().create_payment_intent(
                amount, currency, idempotency_key, metadata=metadata
            )
        except PaymentGatewayNotConfigured as e:
            return Response({"error": str(e)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        except PaymentGatewayError as e:
            return Response({"error": str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        intent, _ = PaymentIntent.objects.update_or_create(
            provider_intent_id=result["id"],
            defaults={
                "order": order,
                "amount": amount,
                "currency": currency,
                "client_secret": result.get("client_secret") or "",
                "status": result.get("status") or "",
                "provider_raw_data": result,
            },
        )
        logger.info(f"Payment intent {intent.provider_intent_id} stored for order {order.id if order else '-'}")

        return Response(
            {
                "id": intent.provider_intent_id,
                "clientSecret": intent.client_secret,
                "status": intent.status,
                "amount": intent.amount,
                "currency": intent.currency,
            },
            status=status.HTTP_201_CREATED,
        )
