"""
Studio Split - Payments Service
Stripe Checkout sessions, webhooks and refunds for split bookings
"""
import logging
import stripe
from typing import Optional

from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# Configure Stripe
if settings.stripe_secret_key:
    stripe.api_key = settings.stripe_secret_key


class PaymentsService:
    """Payment service for Stripe."""

    def create_split_booking_checkout(
        self,
        booking_id: str,
        client_uid: str,
        amount_cents: int,
        is_client_a: bool,
        success_url: str,
        cancel_url: str,
        session_title: str = "Split Studio Session",
        currency: Optional[str] = None,
        metadata: Optional[dict] = None
    ) -> dict:
        """
        Create a Stripe Checkout session for one client's share.

        Args:
            booking_id: Split booking ID for metadata
            client_uid: Paying client
            amount_cents: Share in integer cents
            is_client_a: Whether the payer is client A
            success_url: Redirect URL after successful payment
            cancel_url: Redirect URL if payment is cancelled
            session_title: Product name shown on the checkout page
            currency: ISO currency code, defaults to settings
            metadata: Extra metadata merged into the session metadata

        Returns:
            Dict with session_id and url
        """
        if not settings.stripe_secret_key:
            raise ValueError("Stripe secret key not configured")

        session_metadata = {
            "booking_id": booking_id,
            "client_uid": client_uid,
            "client_role": "clientA" if is_client_a else "clientB",
            **(metadata or {}),
        }

        session = stripe.checkout.Session.create(
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": (currency or settings.default_currency).lower(),
                    "product_data": {
                        "name": session_title,
                        "description": "Your share of a split studio session"
                    },
                    "unit_amount": amount_cents,
                },
                "quantity": 1
            }],
            success_url=success_url,
            cancel_url=cancel_url,
            client_reference_id=client_uid,
            metadata=session_metadata
        )

        logger.info(f"Created checkout session {session.id} for booking {booking_id} ({session_metadata['client_role']})")

        return {
            "session_id": session.id,
            "url": session.url,
            "provider": "stripe"
        }

    def verify_stripe_webhook(self, payload: bytes, signature: str) -> dict:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw request body
            signature: Stripe-Signature header

        Returns:
            Parsed event object
        """
        if not settings.stripe_webhook_secret:
            raise ValueError("Stripe webhook secret not configured")

        try:
            return stripe.Webhook.construct_event(
                payload,
                signature,
                settings.stripe_webhook_secret
            )
        except stripe.SignatureVerificationError as e:
            raise ValueError(f"Invalid signature: {e}")

    def refund_checkout_session(
        self,
        session_id: str,
        amount_cents: Optional[int] = None,
        reason: Optional[str] = None
    ) -> dict:
        """
        Refund the payment collected by a Checkout session.

        Args:
            session_id: Stripe Checkout session ID
            amount_cents: Partial refund amount, full refund when omitted
            reason: Free-text reason stored in refund metadata

        Returns:
            Dict with refund_id, status and amount_cents
        """
        if not settings.stripe_secret_key:
            raise ValueError("Stripe secret key not configured")

        session = stripe.checkout.Session.retrieve(session_id)
        payment_intent = session.get("payment_intent")
        if not payment_intent:
            raise ValueError(f"Checkout session {session_id} has no payment to refund")

        params = {
            "payment_intent": payment_intent,
            "metadata": {"session_id": session_id, "reason": reason or ""},
        }
        if amount_cents is not None:
            params["amount"] = amount_cents

        # At most one refund per checkout session
        refund = stripe.Refund.create(idempotency_key=f"refund-{session_id}", **params)
        logger.info(f"Refunded session {session_id}: {refund.id} ({refund.status})")

        return {
            "refund_id": refund.id,
            "status": refund.status,
            "amount_cents": refund.amount
        }


# Shared instance, injected through app.deps.services.get_payments_service
payments_service = PaymentsService()
