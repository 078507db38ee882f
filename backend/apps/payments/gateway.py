"""
Stripe payment gateway client.

Talks to the Stripe REST API with `requests`. Without STRIPE_SECRET_KEY
the client runs in simulated mode: intents and refunds get local ids and
always succeed, which keeps development and tests offline.
"""
import hashlib
import hmac
import logging
import time
import uuid
from decimal import Decimal
from typing import Optional, Dict, Any

import requests
from django.conf import settings

from .exceptions import PaymentError

logger = logging.getLogger(__name__)


class StripeGateway:
    """
    Minimal Stripe client for payment intents, refunds and webhook signatures.
    """

    DEFAULT_API_URL = 'https://api.stripe.com/v1'
    SIGNATURE_TOLERANCE_SECONDS = 300

    def __init__(self, secret_key: Optional[str] = None, api_url: Optional[str] = None):
        self.secret_key = secret_key if secret_key is not None else getattr(settings, 'STRIPE_SECRET_KEY', '')
        self.api_url = (api_url or getattr(settings, 'STRIPE_API_URL', '') or self.DEFAULT_API_URL).rstrip('/')

    @property
    def simulated(self) -> bool:
        return not self.secret_key

    @property
    def name(self) -> str:
        return 'simulated' if self.simulated else 'stripe'

    @staticmethod
    def to_minor_units(amount) -> int:
        """Convert an amount to cents."""
        return int((Decimal(amount) * 100).quantize(Decimal('1')))

    def _request(self, method: str, path: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.api_url}/{path}"
        try:
            response = requests.request(
                method,
                url,
                data=data,
                auth=(self.secret_key, ''),
                timeout=30
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            error_detail = f"Stripe request failed: {method} {path}: {e}"
            if getattr(e, 'response', None) is not None:
                try:
                    error_detail += f" | API Response: {e.response.json()}"
                except ValueError:
                    error_detail += f" | API Response: {e.response.text}"
            logger.exception(error_detail)
            raise PaymentError('Payment gateway error. Please try again.')

    def create_payment_intent(self, amount, currency: str, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        """
        Create a payment intent.

        Returns:
            Dict with payment_intent_id, client_secret and status
        """
        if self.simulated:
            intent_id = f"pi_sim_{uuid.uuid4().hex[:24]}"
            logger.info(f"Simulated payment intent created: {intent_id} for {amount} {currency}")
            return {
                'payment_intent_id': intent_id,
                'client_secret': f"{intent_id}_secret_{uuid.uuid4().hex[:16]}",
                'status': 'requires_payment_method',
            }

        data = {
            'amount': self.to_minor_units(amount),
            'currency': currency.lower(),
            'automatic_payment_methods[enabled]': 'true',
        }
        for key, value in (metadata or {}).items():
            data[f'metadata[{key}]'] = str(value)

        intent = self._request('POST', 'payment_intents', data)
        logger.info(f"Stripe payment intent created: {intent['id']} for {amount} {currency}")
        return {
            'payment_intent_id': intent['id'],
            'client_secret': intent.get('client_secret', ''),
            'status': intent.get('status', ''),
        }

    def retrieve_payment_intent_status(self, payment_intent_id: str) -> str:
        """Current status of a payment intent ('succeeded', 'canceled'...)."""
        if self.simulated:
            return 'succeeded'
        intent = self._request('GET', f'payment_intents/{payment_intent_id}')
        return intent.get('status', '')

    def cancel_payment_intent(self, payment_intent_id: str) -> None:
        if self.simulated or not payment_intent_id:
            return
        self._request('POST', f'payment_intents/{payment_intent_id}/cancel')
        logger.info(f"Stripe payment intent cancelled: {payment_intent_id}")

    def refund(self, payment_intent_id: str, amount) -> str:
        """Refund part or all of a payment intent. Returns the refund id."""
        if self.simulated:
            refund_id = f"re_sim_{uuid.uuid4().hex[:24]}"
            logger.info(f"Simulated refund {refund_id}: {amount} on {payment_intent_id}")
            return refund_id

        refund = self._request('POST', 'refunds', {
            'payment_intent': payment_intent_id,
            'amount': self.to_minor_units(amount),
        })
        logger.info(f"Stripe refund {refund['id']}: {amount} on {payment_intent_id}")
        return refund['id']

    def verify_webhook_signature(self, payload: bytes, signature_header: str, now: Optional[int] = None) -> bool:
        """
        Verify a Stripe-Signature header ("t=<timestamp>,v1=<hex>").
        The signed content is "<timestamp>.<raw body>".
        """
        webhook_secret = getattr(settings, 'STRIPE_WEBHOOK_SECRET', '')
        if not webhook_secret:
            logger.warning("STRIPE_WEBHOOK_SECRET not configured - skipping signature verification")
            return True

        timestamp = None
        signatures = []
        for item in (signature_header or '').split(','):
            key, _, value = item.strip().partition('=')
            if key == 't':
                timestamp = value
            elif key == 'v1':
                signatures.append(value)

        if not timestamp or not signatures:
            logger.error("Webhook signature header is missing timestamp or v1 signature")
            return False

        try:
            timestamp_value = int(timestamp)
        except ValueError:
            logger.error(f"Webhook signature timestamp is not a number: {timestamp}")
            return False

        now = now if now is not None else int(time.time())
        if abs(now - timestamp_value) > self.SIGNATURE_TOLERANCE_SECONDS:
            logger.error(f"Webhook signature timestamp outside tolerance: {timestamp}")
            return False

        signed_payload = f"{timestamp}.".encode('utf-8') + payload
        expected_signature = hmac.new(
            webhook_secret.encode('utf-8'),
            signed_payload,
            hashlib.sha256
        ).hexdigest()

        is_valid = any(hmac.compare_digest(expected_signature, sig) for sig in signatures)
        if not is_valid:
            logger.error(f"Webhook signature verification FAILED (payload length: {len(payload)} bytes)")
        return is_valid


def sign_webhook_payload(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header value for a payload."""
    timestamp = timestamp if timestamp is not None else int(time.time())
    signature = hmac.new(
        secret.encode('utf-8'),
        f"{timestamp}.".encode('utf-8') + payload,
        hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"
