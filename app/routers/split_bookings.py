"""
Studio Split - Split Bookings Router
API endpoints for split studio bookings and their payments
"""
import logging
import stripe
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from app.config import get_settings
from app.deps.auth import get_current_user, get_active_user
from app.deps.services import get_split_booking_service
from app.models.models import AppUser, SplitBooking
from app.schemas.split_booking import (
    SplitBookingCreate, SplitBookingResponse, RespondRequest,
    TalentResponseRequest, CancelRequest, SplitPaymentSummary,
    ClientPaymentStatusResponse, CheckoutResponse
)
from app.services.split_bookings import SplitBookingService, is_user_in_split_booking
from app.services.split_payments import (
    calculate_platform_fee,
    calculate_split_payments,
    client_needs_payment,
    format_currency,
    get_client_payment_status,
    is_split_booking_fully_paid,
)

router = APIRouter(prefix="/split-bookings", tags=["split-bookings"])
settings = get_settings()
logger = logging.getLogger(__name__)


def load_booking_for_user(
    booking_id: str,
    user: AppUser,
    service: SplitBookingService
) -> SplitBooking:
    """Fetch a booking the user takes part in, or raise 404/403."""
    booking = service.get_split_booking_by_id(booking_id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Split booking not found"
        )

    if not is_user_in_split_booking(booking, user.id) and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have access to this booking"
        )
    return booking


def bad_request(error: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def forbidden(error: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))


def payment_failed(error: stripe.StripeError) -> HTTPException:
    logger.error(f"Stripe error: {error}")
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Payment provider error, please try again"
    )


@router.post("", response_model=SplitBookingResponse, status_code=status.HTTP_201_CREATED)
async def create_split_booking(
    body: SplitBookingCreate,
    current_user: AppUser = Depends(get_active_user),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    Request a studio session split between two clients.

    The caller must be one of the two clients; the other client is invited
    and must confirm before either can pay.
    """
    try:
        return service.create_split_booking(body, created_by=current_user.id)
    except ValueError as e:
        raise bad_request(e)


@router.get("", response_model=List[SplitBookingResponse])
async def list_split_bookings(
    current_user: AppUser = Depends(get_current_user),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    List every split booking the current user is a client or talent on.
    """
    return service.get_split_bookings_for_user(current_user.id)


@router.get("/upcoming", response_model=List[SplitBookingResponse])
async def list_upcoming_split_bookings(
    current_user: AppUser = Depends(get_current_user),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    Split bookings scheduled in the next 30 days.
    """
    return service.get_upcoming_split_bookings(current_user.id)


@router.get("/{booking_id}", response_model=SplitBookingResponse)
async def get_split_booking(
    booking_id: str,
    current_user: AppUser = Depends(get_current_user),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    Get a specific split booking by ID.
    """
    return load_booking_for_user(booking_id, current_user, service)


@router.get("/{booking_id}/payment", response_model=SplitPaymentSummary)
async def get_payment_summary(
    booking_id: str,
    current_user: AppUser = Depends(get_current_user),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    Payment breakdown for the calling client.
    """
    booking = load_booking_for_user(booking_id, current_user, service)

    my_payment = get_client_payment_status(booking, current_user.id)
    if my_payment is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the paying clients can view payment details"
        )

    amounts = calculate_split_payments(booking)
    currency = settings.default_currency

    return SplitPaymentSummary(
        booking_id=booking.id,
        total_cost_cents=amounts["total_cost_cents"],
        client_a_share_cents=amounts["client_a_share_cents"],
        client_b_share_cents=amounts["client_b_share_cents"],
        total_cost_display=format_currency(booking.total_cost, currency),
        client_a_share_display=format_currency(booking.client_a_share, currency),
        client_b_share_display=format_currency(booking.client_b_share, currency),
        platform_fee=calculate_platform_fee(booking.total_cost, settings.platform_fee_percentage),
        fully_paid=is_split_booking_fully_paid(booking),
        needs_payment=client_needs_payment(booking, current_user.id),
        my_payment=ClientPaymentStatusResponse(**my_payment),
    )


@router.post("/{booking_id}/respond", response_model=SplitBookingResponse)
async def respond_to_split_booking(
    booking_id: str,
    body: RespondRequest,
    current_user: AppUser = Depends(get_active_user),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    Co-client accepts or declines the split booking.
    """
    booking = load_booking_for_user(booking_id, current_user, service)
    try:
        return service.respond_to_split_booking(booking, current_user.id, body.accept)
    except PermissionError as e:
        raise forbidden(e)
    except ValueError as e:
        raise bad_request(e)


@router.post("/{booking_id}/talent-response", response_model=SplitBookingResponse)
async def respond_to_talent_request(
    booking_id: str,
    body: TalentResponseRequest,
    current_user: AppUser = Depends(get_active_user),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    Requested artist, producer or engineer accepts or declines.
    """
    booking = load_booking_for_user(booking_id, current_user, service)
    try:
        return service.respond_to_talent_request(booking, current_user.id, body.role, body.accept)
    except PermissionError as e:
        raise forbidden(e)
    except ValueError as e:
        raise bad_request(e)


@router.post("/{booking_id}/checkout", response_model=CheckoutResponse)
async def start_checkout(
    booking_id: str,
    current_user: AppUser = Depends(get_active_user),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    Start a Stripe Checkout session for the caller's share.

    **Requires**: booking confirmed and the caller's share still pending.
    """
    booking = load_booking_for_user(booking_id, current_user, service)
    try:
        session = service.start_client_checkout(booking, current_user.id)
    except PermissionError as e:
        raise forbidden(e)
    except ValueError as e:
        raise bad_request(e)
    except stripe.StripeError as e:
        raise payment_failed(e)

    return CheckoutResponse(
        booking_id=booking.id,
        session_id=session["session_id"],
        checkout_url=session["url"],
        amount_cents=session["amount_cents"],
    )


@router.post("/{booking_id}/cancel", response_model=SplitBookingResponse)
async def cancel_split_booking(
    booking_id: str,
    body: CancelRequest,
    current_user: AppUser = Depends(get_current_user),
    service: SplitBookingService = Depends(get_split_booking_service)
):
    """
    Cancel a pending or confirmed split booking; paid shares are refunded.
    """
    booking = load_booking_for_user(booking_id, current_user, service)
    try:
        return service.cancel_split_booking(booking, current_user.id, reason=body.reason)
    except PermissionError as e:
        raise forbidden(e)
    except ValueError as e:
        raise bad_request(e)
    except stripe.StripeError as e:
        raise payment_failed(e)
