"""
Payment processor gateways.

A gateway answers one question: did the processor settle the transaction
identified by ``reference``, and for how much. Its answer is authoritative.
A processor that explicitly declines or does not know the reference yields a
``Verification`` whose ``succeeded`` is False. Transport problems and
processor-side errors raise ``UpstreamFailure`` and are never retried here.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

import httpx
import stripe

from paylang.config import PAYSTACK_BASE_URL, env
from paylang.errors import UpstreamFailure
from paylang.observability import get_logger

logger = get_logger(__name__)

UPSTREAM_MESSAGE = "Payment processor is unavailable, please retry"


@dataclass
class Verification:
    reference: str
    status: str
    amount: int = 0                 # minor units
    currency: str = "USD"
    customer: dict = field(default_factory=dict)
    paid_at: Optional[datetime] = None
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def customer_name(self) -> Optional[str]:
        parts = [self.customer.get("first_name"), self.customer.get("last_name")]
        name = " ".join(p for p in parts if p)
        return name or None

    def as_details(self) -> dict:
        return {
            "reference": self.reference,
            "status": self.status,
            "amount": self.amount,
            "currency": self.currency,
            "customer": dict(self.customer),
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
        }


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a processor timestamp into naive UTC."""
    if not value:
        return None
    if isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class PaystackGateway:
    """Verifies transactions against Paystack's ``/transaction/verify`` endpoint."""

    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None,
                 client: Optional[httpx.Client] = None, timeout: float = 20.0):
        self.secret_key = secret_key or env("PAYSTACK_SECRET_KEY", "")
        self.base_url = (base_url or env("PAYSTACK_BASE_URL", PAYSTACK_BASE_URL)).rstrip("/")
        self.client = client
        self.timeout = timeout

    def _get(self, url: str) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        if self.client is not None:
            return self.client.get(url, headers=headers)
        with httpx.Client(timeout=self.timeout) as client:
            return client.get(url, headers=headers)

    def verify(self, reference: str) -> Verification:
        if not reference or not reference.strip():
            return Verification(reference=reference or "", status="invalid",
                                message="Transaction reference is missing")

        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"
        try:
            resp = self._get(url)
        except httpx.HTTPError as exc:
            logger.error("processor_unreachable", processor="paystack", reference=reference, error=str(exc))
            raise UpstreamFailure(UPSTREAM_MESSAGE) from exc

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code in (400, 404) and isinstance(body, dict) and body.get("status") is False:
            # Unknown or malformed reference, answered by the processor itself
            return Verification(reference=reference, status="not_found", message=body.get("message"))

        if not resp.is_success or not isinstance(body, dict):
            logger.error("processor_error", processor="paystack", reference=reference,
                         status_code=resp.status_code)
            raise UpstreamFailure(UPSTREAM_MESSAGE)

        data = body.get("data") or {}
        customer = data.get("customer") or {}
        return Verification(
            reference=data.get("reference") or reference,
            status=data.get("status") or "unknown",
            amount=int(data.get("amount") or 0),
            currency=(data.get("currency") or "USD").upper(),
            customer={
                "email": customer.get("email"),
                "first_name": customer.get("first_name"),
                "last_name": customer.get("last_name"),
            },
            paid_at=parse_timestamp(data.get("paid_at") or data.get("paidAt")),
            message=data.get("gateway_response") or body.get("message"),
        )


class StripeGateway:
    """Verifies a Stripe PaymentIntent id used as the transaction reference."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or env("STRIPE_SECRET_KEY")

    def verify(self, reference: str) -> Verification:
        if not reference or not reference.strip():
            return Verification(reference=reference or "", status="invalid",
                                message="Transaction reference is missing")
        try:
            intent = stripe.PaymentIntent.retrieve(reference, expand=["latest_charge"], api_key=self.api_key)
        except stripe.InvalidRequestError as exc:
            return Verification(reference=reference, status="not_found",
                                message=getattr(exc, "user_message", None) or str(exc))
        except stripe.StripeError as exc:
            logger.error("processor_error", processor="stripe", reference=reference, error=str(exc))
            raise UpstreamFailure(UPSTREAM_MESSAGE) from exc

        charge = getattr(intent, "latest_charge", None)
        if isinstance(charge, str):
            charge = None
        billing = getattr(charge, "billing_details", None) if charge is not None else None
        full_name = (getattr(billing, "name", None) or "").strip() if billing is not None else ""
        first_name, _, last_name = full_name.partition(" ")
        email = getattr(intent, "receipt_email", None) or (getattr(billing, "email", None) if billing else None)

        status = getattr(intent, "status", None)
        return Verification(
            reference=intent.id,
            status="success" if status == "succeeded" else (status or "unknown"),
            amount=int(getattr(intent, "amount_received", None) or getattr(intent, "amount", 0) or 0),
            currency=(getattr(intent, "currency", None) or "usd").upper(),
            customer={"email": email, "first_name": first_name or None, "last_name": last_name or None},
            paid_at=parse_timestamp(getattr(charge, "created", None) or getattr(intent, "created", None)),
        )


def get_gateway():
    processor = str(env("PAYMENT_PROCESSOR", "paystack")).lower()
    if processor == "paystack":
        return PaystackGateway()
    if processor == "stripe":
        return StripeGateway()
    raise RuntimeError(f"Unsupported PAYMENT_PROCESSOR: {processor}")
