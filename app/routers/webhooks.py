"""
Studio Split - Webhooks Router
Stripe webhook endpoint for split booking payments
"""
import logging
from fastapi import APIRouter, Request, HTTPException, status, Depends

from app.deps.services import get_payments_service, get_split_booking_service
from app.services.payments import PaymentsService
from app.services.split_bookings import SplitBookingService

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = logging.getLogger(__name__)


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    payments: PaymentsService = Depends(get_payments_service),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    Handle Stripe webhook events (checkout completion).
    """
    payload = await request.body()
    signature = request.headers.get("Stripe-Signature")

    if not signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe signature"
        )

    try:
        event = payments.verify_stripe_webhook(payload, signature)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid webhook: {str(e)}"
        )

    if event["type"] == "checkout.session.completed":
        session = event["data"]["object"]
        metadata = session.get("metadata") or {}
        booking_id = metadata.get("booking_id")

        if booking_id and session.get("payment_status", "paid") == "paid":
            service.mark_client_paid(
                booking_id,
                session_id=session["id"],
                client_uid=metadata.get("client_uid")
            )
        else:
            logger.info(f"Ignoring checkout session {session.get('id')} without a paid split booking")

    return {"received": True}
