"""Stripe Payment Processor

PaymentProcessor over the Stripe REST API using httpx. Stripe takes
form-encoded bodies and integer amounts in the currency's minor unit.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
import httpx
from src.app.services.payment_processor import (
    ChargeResult,
    ChargeStatus,
    PaymentProcessor,
    PaymentProcessorError,
    PaymentProcessorTimeout,
    RefundResult,
)

logger = logging.getLogger(__name__)

STRIPE_API_BASE = "https://api.stripe.com/v1"

# PaymentIntent states after a confirm attempt; a declined confirm leaves
# the intent waiting for a new payment method
INTENT_STATUS_MAP = {
    "succeeded": ChargeStatus.SUCCEEDED,
    "processing": ChargeStatus.PROCESSING,
    "requires_action": ChargeStatus.REQUIRES_ACTION,
    "requires_confirmation": ChargeStatus.PROCESSING,
    "requires_capture": ChargeStatus.PROCESSING,
    "requires_payment_method": ChargeStatus.FAILED,
    "canceled": ChargeStatus.CANCELED,
}

REFUND_STATUS_MAP = {
    "succeeded": ChargeStatus.SUCCEEDED,
    "pending": ChargeStatus.PROCESSING,
    "requires_action": ChargeStatus.REQUIRES_ACTION,
    "failed": ChargeStatus.FAILED,
    "canceled": ChargeStatus.CANCELED,
}


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _flatten_metadata(data: Dict[str, Any], metadata: Optional[Dict[str, str]]) -> None:
    for key, value in (metadata or {}).items():
        if value is not None:
            data[f"metadata[{key}]"] = str(value)


class StripePaymentProcessor(PaymentProcessor):
    """
    Stripe implementation of PaymentProcessor

    Features:
    - Charges are PaymentIntents confirmed immediately with the given instrument
    - Idempotency-Key header on every create, so retries never double charge
    - Timeouts and Stripe 5xx answers raise PaymentProcessorTimeout (outcome unknown)
    - 4xx answers (declines, bad tokens) raise PaymentProcessorError
    """

    name = "stripe"

    def __init__(
        self,
        secret_key: str,
        api_base: str = STRIPE_API_BASE,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            secret_key: Stripe secret API key
            api_base: API root, overridable for stripe-mock
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not secret_key:
            logger.warning("STRIPE_SECRET_KEY not configured. Stripe calls will be rejected.")
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        try:
            async with httpx.AsyncClient(
                base_url=self.api_base, timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.request(method, path, data=data, params=params, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"Stripe {method} {path} timed out: {e}")
            raise PaymentProcessorTimeout(f"Stripe {method} {path} timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Stripe {method} {path} failed: {e}")
            raise PaymentProcessorError(f"Stripe request failed: {e}") from e

        if response.status_code >= 500:
            logger.error(f"Stripe {method} {path} answered {response.status_code}")
            raise PaymentProcessorTimeout(f"Stripe answered {response.status_code}")

        if response.status_code >= 400:
            error = {}
            try:
                error = response.json().get("error", {})
            except ValueError:
                pass
            message = error.get("message") or f"Stripe answered {response.status_code}"
            code = error.get("decline_code") or error.get("code")
            logger.warning(f"Stripe {method} {path} rejected: {message} ({code})")
            raise PaymentProcessorError(message, code=code)

        return response.json()

    @staticmethod
    def _to_charge(intent: Dict[str, Any]) -> ChargeResult:
        charge_ref = intent.get("latest_charge")
        if isinstance(charge_ref, dict):
            charge_ref = charge_ref.get("id")

        card_last4 = None
        card_brand = None
        payment_method = intent.get("payment_method")
        if isinstance(payment_method, dict) and payment_method.get("card"):
            card_last4 = payment_method["card"].get("last4")
            card_brand = payment_method["card"].get("brand")

        return ChargeResult(
            id=intent["id"],
            status=INTENT_STATUS_MAP.get(intent.get("status"), ChargeStatus.PROCESSING),
            charge_ref=charge_ref,
            card_last4=card_last4,
            card_brand=card_brand,
        )

    async def create_customer(
        self, email: Optional[str], name: str, metadata: Optional[Dict[str, str]] = None
    ) -> str:
        data: Dict[str, Any] = {"name": name}
        if email:
            data["email"] = email
        _flatten_metadata(data, metadata)

        customer = await self._request("POST", "/customers", data=data)
        logger.info(f"Stripe customer created: {customer['id']}")
        return customer["id"]

    async def attach_instrument(self, customer_id: str, instrument_ref: str) -> None:
        await self._request(
            "POST", f"/payment_methods/{instrument_ref}/attach", data={"customer": customer_id}
        )
        logger.info(f"Payment method {instrument_ref} attached to {customer_id}")

    async def create_charge(
        self,
        amount: Decimal,
        currency: str,
        instrument_ref: str,
        customer_id: str,
        metadata: Optional[Dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> ChargeResult:
        data: Dict[str, Any] = {
            "amount": to_minor_units(amount),
            "currency": currency.lower(),
            "customer": customer_id,
            "payment_method": instrument_ref,
            "confirm": "true",
            "automatic_payment_methods[enabled]": "true",
            "automatic_payment_methods[allow_redirects]": "never",
            "expand[]": ["payment_method"],
        }
        _flatten_metadata(data, metadata)

        intent = await self._request("POST", "/payment_intents", data=data, idempotency_key=idempotency_key)
        charge = self._to_charge(intent)
        logger.info(f"Payment intent created: {charge.id} for amount {amount} ({charge.status})")
        return charge

    async def retrieve_charge(self, charge_id: str) -> ChargeResult:
        intent = await self._request(
            "GET", f"/payment_intents/{charge_id}", params={"expand[]": "payment_method"}
        )
        return self._to_charge(intent)

    async def find_charge_by_reference(self, reference: str) -> Optional[ChargeResult]:
        result = await self._request(
            "GET",
            "/payment_intents/search",
            params={"query": f"metadata['payment_id']:'{reference}'", "limit": 1},
        )
        matches = result.get("data") or []
        if not matches:
            return None
        return self._to_charge(matches[0])

    async def create_refund(
        self,
        charge_ref: str,
        amount: Decimal,
        reason: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> RefundResult:
        target = "payment_intent" if charge_ref.startswith("pi_") else "charge"
        data: Dict[str, Any] = {
            target: charge_ref,
            "amount": to_minor_units(amount),
            "reason": "requested_by_customer",
        }
        metadata = dict(metadata or {})
        if reason:
            metadata["reason"] = reason
        _flatten_metadata(data, metadata)

        idempotency_key = metadata.get("refund_id")
        refund = await self._request("POST", "/refunds", data=data, idempotency_key=idempotency_key)
        logger.info(f"Refund created: {refund['id']} for amount {amount}")
        return RefundResult(
            id=refund["id"],
            status=REFUND_STATUS_MAP.get(refund.get("status"), ChargeStatus.PROCESSING),
        )

    async def retrieve_refund(self, refund_id: str) -> RefundResult:
        refund = await self._request("GET", f"/refunds/{refund_id}")
        return RefundResult(
            id=refund["id"],
            status=REFUND_STATUS_MAP.get(refund.get("status"), ChargeStatus.PROCESSING),
        )

    async def find_refund_by_reference(self, charge_ref: str, reference: str) -> Optional[RefundResult]:
        target = "payment_intent" if charge_ref.startswith("pi_") else "charge"
        result = await self._request("GET", "/refunds", params={target: charge_ref, "limit": 100})
        for refund in result.get("data") or []:
            if (refund.get("metadata") or {}).get("refund_id") == reference:
                return RefundResult(
                    id=refund["id"],
                    status=REFUND_STATUS_MAP.get(refund.get("status"), ChargeStatus.PROCESSING),
                )
        return None
