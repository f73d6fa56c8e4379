"""
Stripe payment gateway.

Thin wrapper around the Stripe SDK used by the booking flows: card holds
(manual-capture PaymentIntents), saved cards (SetupIntents), captures,
refunds and webhook verification. Every SDK error is logged here and
re-raised as :class:`PaymentGatewayError`, so callers only deal with one
exception type. Results are returned as small dataclasses rather than SDK
objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from functools import wraps
from typing import Any, Callable

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)

ZERO_DECIMAL_CURRENCIES = frozenset(
    {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga", "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}
)


class PaymentGatewayError(Exception):
    """Raised when the payment processor rejects or fails a request."""

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.code = code


@dataclass
class IntentResult:
    id: str
    status: str
    amount: int = 0
    amount_capturable: int = 0
    amount_received: int = 0
    currency: str = "eur"
    client_secret: str | None = None
    customer: str | None = None
    payment_method: str | None = None
    latest_charge: str | None = None
    metadata: dict = field(default_factory=dict)


@dataclass
class SetupIntentResult:
    id: str
    status: str
    client_secret: str | None = None
    customer: str | None = None
    payment_method: str | None = None
    metadata: dict = field(default_factory=dict)


@dataclass
class RefundResult:
    id: str
    status: str
    amount: int


def field_of(obj: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from an SDK object, a dict or a webhook payload."""
    if obj is None:
        return default
    try:
        value = obj[name]
    except (KeyError, TypeError, AttributeError):
        value = getattr(obj, name, default)
    return default if value is None else value


def _id_of(value: Any) -> str | None:
    """Expanded objects carry an ``id``; collapsed ones are plain strings."""
    if value is None or isinstance(value, str):
        return value
    return field_of(value, "id")


def metadata_of(obj: Any) -> dict:
    metadata = field_of(obj, "metadata")
    if not metadata:
        return {}
    return {key: metadata[key] for key in metadata.keys()}


def _as_intent(obj: Any) -> IntentResult:
    return IntentResult(
        id=field_of(obj, "id"),
        status=field_of(obj, "status", ""),
        amount=field_of(obj, "amount", 0),
        amount_capturable=field_of(obj, "amount_capturable", 0),
        amount_received=field_of(obj, "amount_received", 0),
        currency=field_of(obj, "currency", "eur"),
        client_secret=field_of(obj, "client_secret"),
        customer=_id_of(field_of(obj, "customer")),
        payment_method=_id_of(field_of(obj, "payment_method")),
        latest_charge=_id_of(field_of(obj, "latest_charge")),
        metadata=metadata_of(obj),
    )


def _as_setup_intent(obj: Any) -> SetupIntentResult:
    return SetupIntentResult(
        id=field_of(obj, "id"),
        status=field_of(obj, "status", ""),
        client_secret=field_of(obj, "client_secret"),
        customer=_id_of(field_of(obj, "customer")),
        payment_method=_id_of(field_of(obj, "payment_method")),
        metadata=metadata_of(obj),
    )


def _configure() -> None:
    stripe.api_key = settings.STRIPE_SECRET_KEY


def _gateway_call(func: Callable) -> Callable:
    @wraps(func)
    def wrapper(*args, **kwargs):
        _configure()
        try:
            return func(*args, **kwargs)
        except stripe.StripeError as exc:
            message = getattr(exc, "user_message", None) or str(exc)
            logger.error(f"Stripe call {func.__name__} failed: {message}", exc_info=True)
            raise PaymentGatewayError(message, code=getattr(exc, "code", None)) from exc

    return wrapper


# ============================================================================
# AMOUNTS
# ============================================================================

def to_stripe_amount(amount: Decimal | int | float, currency: str | None = None) -> int:
    """Euros to the smallest currency unit (cents, or units for zero-decimal currencies)."""
    currency = (currency or settings.STRIPE_CURRENCY).lower()
    value = Decimal(str(amount))
    if currency not in ZERO_DECIMAL_CURRENCIES:
        value *= 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(amount: int, currency: str | None = None) -> str:
    """``4250`` -> ``42,50 €``"""
    currency = (currency or settings.STRIPE_CURRENCY).lower()
    if currency in ZERO_DECIMAL_CURRENCIES:
        return f"{amount} {currency.upper()}"
    value = Decimal(amount) / 100
    symbol = "€" if currency == "eur" else currency.upper()
    return f"{value:.2f}".replace(".", ",") + f" {symbol}"


# ============================================================================
# CUSTOMERS
# ============================================================================

@_gateway_call
def get_or_create_customer(email: str, *, name: str = "", phone: str = "", metadata: dict | None = None) -> str:
    existing = stripe.Customer.list(email=email, limit=1)
    data = field_of(existing, "data", [])
    if data:
        return field_of(data[0], "id")

    params: dict[str, Any] = {"email": email, "metadata": metadata or {}}
    if name:
        params["name"] = name
    if phone:
        params["phone"] = phone
    customer = stripe.Customer.create(**params)
    logger.info(f"Stripe customer created for {email}")
    return field_of(customer, "id")


# ============================================================================
# PAYMENT INTENTS
# ============================================================================

@_gateway_call
def create_payment_intent(
    amount: int,
    *,
    currency: str | None = None,
    customer_id: str | None = None,
    payment_method: str | None = None,
    confirm: bool = False,
    off_session: bool = False,
    capture_method: str = "manual",
    metadata: dict | None = None,
    description: str = "",
    idempotency_key: str | None = None,
) -> IntentResult:
    """Create a card-only PaymentIntent. ``capture_method='manual'`` places a hold."""

    params: dict[str, Any] = {
        "amount": amount,
        "currency": (currency or settings.STRIPE_CURRENCY).lower(),
        "capture_method": capture_method,
        "payment_method_types": ["card"],
        "metadata": {key: str(value) for key, value in (metadata or {}).items()},
    }
    if description:
        params["description"] = description
    if customer_id:
        params["customer"] = customer_id
    if payment_method:
        params["payment_method"] = payment_method
    if confirm:
        params["confirm"] = True
    if off_session:
        params["off_session"] = True
    if idempotency_key:
        params["idempotency_key"] = idempotency_key

    intent = stripe.PaymentIntent.create(**params)
    logger.info(f"PaymentIntent {field_of(intent, 'id')} created ({amount} {params['currency']}, {capture_method})")
    return _as_intent(intent)


@_gateway_call
def retrieve_payment_intent(intent_id: str) -> IntentResult:
    return _as_intent(stripe.PaymentIntent.retrieve(intent_id))


@_gateway_call
def cancel_payment_intent(intent_id: str) -> IntentResult:
    intent = stripe.PaymentIntent.cancel(intent_id)
    logger.info(f"PaymentIntent {intent_id} cancelled, hold released")
    return _as_intent(intent)


@_gateway_call
def capture_payment_intent(intent_id: str, amount_to_capture: int | None = None) -> IntentResult:
    """Capture an authorised hold, fully or partially."""
    params: dict[str, Any] = {}
    if amount_to_capture is not None:
        params["amount_to_capture"] = amount_to_capture
    intent = stripe.PaymentIntent.capture(intent_id, **params)
    logger.info(f"PaymentIntent {intent_id} captured ({amount_to_capture or 'full amount'})")
    return _as_intent(intent)


# ============================================================================
# SETUP INTENTS
# ============================================================================

@_gateway_call
def create_setup_intent(customer_id: str, *, metadata: dict | None = None) -> SetupIntentResult:
    intent = stripe.SetupIntent.create(
        customer=customer_id,
        payment_method_types=["card"],
        usage="off_session",
        metadata={key: str(value) for key, value in (metadata or {}).items()},
    )
    logger.info(f"SetupIntent {field_of(intent, 'id')} created for customer {customer_id}")
    return _as_setup_intent(intent)


@_gateway_call
def retrieve_setup_intent(setup_intent_id: str) -> SetupIntentResult:
    return _as_setup_intent(stripe.SetupIntent.retrieve(setup_intent_id))


@_gateway_call
def cancel_setup_intent(setup_intent_id: str) -> SetupIntentResult:
    intent = stripe.SetupIntent.cancel(setup_intent_id)
    logger.info(f"SetupIntent {setup_intent_id} cancelled")
    return _as_setup_intent(intent)


# ============================================================================
# REFUNDS & CHARGES
# ============================================================================

@_gateway_call
def create_refund(
    payment_intent_id: str,
    *,
    amount: int | None = None,
    reason: str = "requested_by_customer",
    metadata: dict | None = None,
) -> RefundResult:
    params: dict[str, Any] = {"payment_intent": payment_intent_id, "reason": reason}
    if amount is not None:
        params["amount"] = amount
    if metadata:
        params["metadata"] = {key: str(value) for key, value in metadata.items()}
    refund = stripe.Refund.create(**params)
    logger.info(f"Refund {field_of(refund, 'id')} created for {payment_intent_id} ({amount or 'full'})")
    return RefundResult(
        id=field_of(refund, "id"),
        status=field_of(refund, "status", ""),
        amount=field_of(refund, "amount", amount or 0),
    )


@_gateway_call
def retrieve_card_details(charge_id: str) -> dict:
    """Brand, last digits, expiry and receipt URL of a charge."""
    charge = stripe.Charge.retrieve(charge_id)
    card = field_of(field_of(charge, "payment_method_details"), "card")
    details = {"receipt_url": field_of(charge, "receipt_url", "")}
    if card:
        details.update(
            {
                "card_brand": field_of(card, "brand", ""),
                "card_last4": field_of(card, "last4", ""),
                "card_exp_month": field_of(card, "exp_month"),
                "card_exp_year": field_of(card, "exp_year"),
            }
        )
    return details


# ============================================================================
# WEBHOOKS
# ============================================================================

def construct_webhook_event(payload: bytes, signature: str):
    """Verify the signature header and parse the event.

    Raises:
        PaymentGatewayError: invalid payload or signature
    """
    try:
        return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except ValueError as exc:
        raise PaymentGatewayError("Invalid payload", code="invalid_payload") from exc
    except stripe.SignatureVerificationError as exc:
        raise PaymentGatewayError("Invalid signature", code="invalid_signature") from exc


def payment_intent_from_event(obj: Any) -> IntentResult:
    """``data.object`` of a ``payment_intent.*`` event."""
    return _as_intent(obj)


def setup_intent_from_event(obj: Any) -> SetupIntentResult:
    """``data.object`` of a ``setup_intent.*`` event."""
    return _as_setup_intent(obj)
