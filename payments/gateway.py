"""
Client for the card processor's payment-intent API
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """The processor refused the request or could not be reached"""

    def __init__(self, message, status_code=None, payload=None):
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(message)


class PaymentGatewayNotConfigured(PaymentGatewayError):
    """No secret key is set for the processor"""
    pass


def to_minor_units(amount):
    """R$ 10.50 -> 1050"""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway:
    def __init__(self, api_url=None, secret_key=None, timeout=None):
        self.api_url = (api_url or settings.PAYMENT_API_URL).rstrip("/")
        self.secret_key = secret_key if secret_key is not None else settings.PAYMENT_SECRET_KEY
        self.timeout = timeout or settings.PAYMENT_TIMEOUT_SECONDS

    @property
    def configured(self):
        return bool(self.secret_key)

    def create_payment_intent(self, amount, currency, idempotency_key, metadata=None):
        """
        Open a payment intent for `amount` (a Decimal in major units).

        The idempotency key makes a retried request return the intent the
        processor already created instead of charging twice.
        """
        if not self.configured:
            raise PaymentGatewayNotConfigured("Payment processor is not configured")

        data = {
            "amount": to_minor_units(amount),
            "currency": currency.lower(),
            "automatic_payment_methods[enabled]": "true",
        }
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = str(value)

        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Idempotency-Key": idempotency_key,
        }

        try:
            response = requests.post(
                f"{self.api_url}/v1/payment_intents",
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Payment processor unreachable: {e}")
            raise PaymentGatewayError("Payment processor is unreachable") from e

        try:
            result = response.json()
        except ValueError:
            logger.error(f"Payment processor sent a non-JSON response (HTTP {response.status_code})")
            raise PaymentGatewayError(
                "Invalid response from payment processor", status_code=response.status_code
            )

        if not response.ok:
            error = result.get("error") or {}
            message = error.get("message") or f"Payment processor error (HTTP {response.status_code})"
            logger.warning(
                f"Payment intent refused: status={response.status_code}, "
                f"type={error.get('type')}, message={message}"
            )
            raise PaymentGatewayError(message, status_code=response.status_code, payload=result)

        if not isinstance(result, dict) or not result.get("id"):
            logger.error(f"Payment processor reply has no intent id (HTTP {response.status_code})")
            raise PaymentGatewayError(
                "Invalid response from payment processor",
                status_code=response.status_code,
                payload=result if isinstance(result, dict) else None,
            )

        logger.info(f"Payment intent {result.get('id')} created for {data['amount']} {data['currency']}")
        return result
