from decimal import Decimal
from unittest import mock

import requests
from django.contrib.auth import get_user_model
from django.test import Client, TestCase, override_settings
from django.urls import reverse

from accounts.models import Address
from orders.models import Order
from .gateway import PaymentGateway, PaymentGatewayError, to_minor_units
from .models import PaymentIntent

Member = get_user_model()


def processor_response(status_code=200, payload=None):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = payload if payload is not None else {}
    return response


INTENT = {
    "id": "pi_123",
    "client_secret": "pi_123_secret_abc",
    "status": "requires_payment_method",
    "amount": 5980,
    "currency": "brl",
}


class PaymentGatewayTestCase(TestCase):
    def test_to_minor_units(self):
        """Amounts convert to cents with half-up rounding"""
        self.assertEqual(to_minor_units(Decimal("10.50")), 1050)
        self.assertEqual(to_minor_units(Decimal("0.015")), 2)

    def test_unconfigured_gateway_refuses(self):
        """A gateway without a secret key refuses to call out"""
        gateway = PaymentGateway(secret_key="")
        with self.assertRaises(PaymentGatewayError):
            gateway.create_payment_intent(Decimal("10"), "brl", "key-1")

    @mock.patch("payments.gateway.requests.post")
    def test_request_is_form_encoded_with_idempotency_key(self, mock_post):
        """The intent request is form-encoded with auth and idempotency headers"""
        mock_post.return_value = processor_response(200, INTENT)
        gateway = PaymentGateway(api_url="https://processor.test/", secret_key="sk_test", timeout=3)

        result = gateway.create_payment_intent(Decimal("59.80"), "BRL", "key-1", metadata={"order_id": "abc"})

        self.assertEqual(result["id"], "pi_123")
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://processor.test/v1/payment_intents")
        self.assertEqual(kwargs["data"]["amount"], 5980)
        self.assertEqual(kwargs["data"]["currency"], "brl")
        self.assertEqual(kwargs["data"]["metadata[order_id]"], "abc")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer sk_test")
        self.assertEqual(kwargs["headers"]["Idempotency-Key"], "key-1")
        self.assertEqual(kwargs["timeout"], 3)

    @mock.patch("payments.gateway.requests.post")
    def test_processor_error_message_is_kept(self, mock_post):
        """The processor's error message is kept on the exception"""
        mock_post.return_value = processor_response(
            402, {"error": {"type": "card_error", "message": "Your card was declined."}}
        )
        gateway = PaymentGateway(secret_key="sk_test")

        with self.assertRaises(PaymentGatewayError) as ctx:
            gateway.create_payment_intent(Decimal("10"), "brl", "key-1")
        self.assertEqual(str(ctx.exception), "Your card was declined.")
        self.assertEqual(ctx.exception.status_code, 402)

    @mock.patch("payments.gateway.requests.post")
    def test_reply_without_intent_id_is_rejected(self, mock_post):
        """A success reply without an intent id is a gateway error"""
        mock_post.return_value = processor_response(200, {"status": "requires_payment_method"})
        gateway = PaymentGateway(secret_key="sk_test")

        with self.assertRaises(PaymentGatewayError) as ctx:
            gateway.create_payment_intent(Decimal("10"), "brl", "key-1")
        self.assertEqual(str(ctx.exception), "Invalid response from payment processor")
        self.assertEqual(ctx.exception.status_code, 200)

    @mock.patch("payments.gateway.requests.post", side_effect=requests.Timeout("slow"))
    def test_timeout_becomes_gateway_error(self, mock_post):
        """Network timeouts become gateway errors"""
        gateway = PaymentGateway(secret_key="sk_test")
        with self.assertRaises(PaymentGatewayError):
            gateway.create_payment_intent(Decimal("10"), "brl", "key-1")


@override_settings(PAYMENT_SECRET_KEY="sk_test", PAYMENT_CURRENCY="brl")
class PaymentIntentAPITestCase(TestCase):
    def setUp(self):
        self.client = Client()
        self.url = reverse("payments:intent-create")
        buyer = Member.objects.create_user(
            username="buyer@example.com", email="buyer@example.com", password="testpass123"
        )
        address = Address.objects.create(
            user=buyer, zip_code="01310-100", street="Avenida Paulista",
            number="1000", city="São Paulo", state="SP",
        )
        self.order = Order.objects.create(
            customer=buyer, address=address, total=Decimal("59.80"), payment_method="card"
        )

    @mock.patch("payments.gateway.requests.post")
    def test_intent_for_order_uses_order_total(self, mock_post):
        """An intent for an order charges the order total"""
        mock_post.return_value = processor_response(200, INTENT)

        response = self.client.post(
            self.url, {"orderId": str(self.order.id), "amount": 1}, content_type="application/json"
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["id"], "pi_123")
        self.assertEqual(data["clientSecret"], "pi_123_secret_abc")
        self.assertEqual(data["amount"], 59.8)
        self.assertEqual(mock_post.call_args.kwargs["data"]["amount"], 5980)

        intent = PaymentIntent.objects.get(provider_intent_id="pi_123")
        self.assertEqual(intent.order, self.order)
        self.assertEqual(intent.provider_raw_data["status"], "requires_payment_method")

    @mock.patch("payments.gateway.requests.post")
    def test_client_idempotency_key_is_forwarded(self, mock_post):
        """The caller's Idempotency-Key is forwarded"""
        mock_post.return_value = processor_response(200, INTENT)
        self.client.post(
            self.url, {"amount": 10}, content_type="application/json",
            headers={"Idempotency-Key": "checkout-42"},
        )
        self.assertEqual(mock_post.call_args.kwargs["headers"]["Idempotency-Key"], "checkout-42")

    def test_amount_or_order_is_required(self):
        """An intent needs an amount or an order"""
        response = self.client.post(self.url, {}, content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_zero_amount_is_rejected(self):
        """A zero amount returns 400"""
        response = self.client.post(self.url, {"amount": 0}, content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_unknown_order_returns_404(self):
        """An unknown order returns 404"""
        response = self.client.post(
            self.url, {"orderId": "00000000-0000-0000-0000-000000000000"},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 404)

    @mock.patch("payments.gateway.requests.post")
    def test_processor_error_returns_502(self, mock_post):
        """A processor refusal returns 502 and stores nothing"""
        mock_post.return_value = processor_response(400, {"error": {"message": "Invalid currency"}})
        response = self.client.post(self.url, {"amount": 10}, content_type="application/json")
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"], "Invalid currency")
        self.assertFalse(PaymentIntent.objects.exists())

    @mock.patch("payments.gateway.requests.post")
    def test_reply_without_intent_id_returns_502(self, mock_post):
        """A reply without an intent id returns 502 and stores nothing"""
        mock_post.return_value = processor_response(200, {"client_secret": "secret"})
        response = self.client.post(self.url, {"amount": 10}, content_type="application/json")
        self.assertEqual(response.status_code, 502)
        self.assertFalse(PaymentIntent.objects.exists())

    @override_settings(PAYMENT_SECRET_KEY="")
    def test_missing_configuration_returns_503(self):
        """A missing secret key returns 503"""
        response = self.client.post(self.url, {"amount": 10}, content_type="application/json")
        self.assertEqual(response.status_code, 503)
