"""
Studio Split - Split Booking Service
Creating, querying, confirming, paying for and cancelling split bookings
"""
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.models import SplitBooking, Studio
from app.schemas.split_booking import SplitBookingCreate
from app.services.notify import NotificationService, TALENT_ROLES
from app.services.payments import PaymentsService
from app.services.refund_calculator import calculate_refund
from app.services.split_payments import (
    calculate_payment_shares,
    calculate_split_payments,
    client_needs_payment,
    client_role,
    create_payment_urls,
    is_split_booking_fully_paid,
    to_cents,
    to_decimal,
)

logger = logging.getLogger(__name__)

UPCOMING_WINDOW = timedelta(days=30)


def to_naive_utc(value: datetime) -> datetime:
    """Store timestamps as naive UTC, like the rest of the schema."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def is_user_in_split_booking(booking: SplitBooking, uid: str) -> bool:
    """Check if a uid is either client or one of the requested talent."""
    if uid in (booking.client_a_uid, booking.client_b_uid):
        return True
    requested = booking.requested_talent or {}
    return uid in [value for value in requested.values() if value]


class SplitBookingService:
    """Split booking workflow over one database session."""

    def __init__(
        self,
        db: Session,
        payments: PaymentsService,
        notifications: NotificationService
    ):
        self.db = db
        self.payments = payments
        self.notifications = notifications

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_split_booking(self, data: SplitBookingCreate, created_by: str) -> SplitBooking:
        """
        Create a split studio booking with two clients and optional talent requests.

        Raises:
            ValueError: If the request breaks a booking rule
        """
        if not data.studio_id or not data.client_a_uid or not data.client_b_uid:
            raise ValueError("Studio ID and both client UIDs are required")

        if data.client_a_uid == data.client_b_uid:
            raise ValueError("Cannot create split booking with the same user twice")

        if created_by not in (data.client_a_uid, data.client_b_uid):
            raise ValueError("Only one of the two clients can request a split booking")

        if data.split_ratio <= 0 or data.split_ratio >= 1:
            raise ValueError("Split ratio must be between 0 and 1")

        if data.total_cost <= 0:
            raise ValueError("Total cost must be greater than 0")

        client_a_share, client_b_share = calculate_payment_shares(data.total_cost, data.split_ratio)

        studio = self.db.get(Studio, data.studio_id)

        requested_talent = None
        talent_status = None
        if data.requested_talent:
            requested_talent = data.requested_talent.model_dump()
            talent_status = {
                role: "pending"
                for role in TALENT_ROLES
                if requested_talent.get(f"{role}_id")
            }

        booking = SplitBooking(
            studio_id=data.studio_id,
            created_by=created_by,
            client_a_uid=data.client_a_uid,
            client_b_uid=data.client_b_uid,
            split_ratio=to_decimal(data.split_ratio),
            scheduled_at=to_naive_utc(data.scheduled_at),
            duration_minutes=data.duration_minutes,
            total_cost=to_decimal(data.total_cost),
            client_a_share=client_a_share,
            client_b_share=client_b_share,
            session_title=data.session_title or "Split Studio Session",
            session_description=data.session_description,
            requested_talent=requested_talent,
            talent_status=talent_status or None,
            status="pending",
            client_a_payment_status="pending",
            client_b_payment_status="pending",
            studio_name=studio.name if studio else "Unknown Studio",
            studio_location=(studio.location if studio else None) or "Unknown Location",
        )
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Split booking created: {booking.id}")

        self.notifications.notify_split_booking_created(self.db, booking, created_by)
        return booking

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_split_booking_by_id(self, booking_id: str) -> Optional[SplitBooking]:
        if not booking_id:
            raise ValueError("Booking ID is required")
        return self.db.get(SplitBooking, booking_id)

    def get_split_bookings_for_user(self, uid: str) -> List[SplitBooking]:
        """All bookings where the user is a client or requested talent, newest session first."""
        if not uid:
            raise ValueError("User UID is required")

        clients = self.db.query(SplitBooking).filter(
            or_(SplitBooking.client_a_uid == uid, SplitBooking.client_b_uid == uid)
        ).all()

        # JSON talent fields are matched in Python to stay portable across backends
        with_talent = self.db.query(SplitBooking).filter(
            SplitBooking.requested_talent.isnot(None)
        ).all()

        bookings = {booking.id: booking for booking in clients}
        for booking in with_talent:
            if is_user_in_split_booking(booking, uid):
                bookings[booking.id] = booking

        return sorted(bookings.values(), key=lambda b: b.scheduled_at, reverse=True)

    def get_pending_split_bookings(self) -> List[SplitBooking]:
        return self.db.query(SplitBooking).filter(
            SplitBooking.status == "pending"
        ).order_by(SplitBooking.scheduled_at.asc()).all()

    def get_split_bookings_for_studio(self, studio_id: str) -> List[SplitBooking]:
        if not studio_id:
            raise ValueError("Studio ID is required")
        return self.db.query(SplitBooking).filter(
            SplitBooking.studio_id == studio_id
        ).order_by(SplitBooking.scheduled_at.desc()).all()

    def get_upcoming_split_bookings(self, uid: str, now: Optional[datetime] = None) -> List[SplitBooking]:
        """Bookings in the next 30 days, soonest first."""
        now = now or datetime.utcnow()
        horizon = now + UPCOMING_WINDOW
        upcoming = [
            booking for booking in self.get_split_bookings_for_user(uid)
            if now <= booking.scheduled_at <= horizon
        ]
        return sorted(upcoming, key=lambda b: b.scheduled_at)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def respond_to_split_booking(self, booking: SplitBooking, uid: str, accept: bool) -> SplitBooking:
        """
        Co-client accepts (-> confirmed) or declines (-> cancelled) a pending booking.
        """
        if client_role(booking, uid) is None or uid == booking.created_by:
            raise PermissionError("Only the invited co-client can respond to this booking")

        if booking.status != "pending":
            raise ValueError(f"Cannot respond to a booking that is {booking.status}")

        booking.status = "confirmed" if accept else "cancelled"
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Split booking {booking.id} {booking.status} by {uid}")

        if accept:
            title = "Split Session Confirmed"
            message = f"Your split session at {booking.studio_name} is confirmed. You can now pay your share."
        else:
            title = "Split Session Declined"
            message = f"The split session at {booking.studio_name} was declined."
        self.notifications.notify_booking_parties(
            self.db, booking, "split_booking_response", title, message, sender_id=uid, exclude=uid
        )
        return booking

    def respond_to_talent_request(
        self,
        booking: SplitBooking,
        uid: str,
        role: str,
        accept: bool
    ) -> SplitBooking:
        """Requested talent accepts or declines their role."""
        requested = booking.requested_talent or {}
        if requested.get(f"{role}_id") != uid:
            raise PermissionError(f"You were not requested as {role} for this booking")

        if booking.status == "cancelled":
            raise ValueError("Booking has been cancelled")

        # Reassign so SQLAlchemy sees the JSON change
        talent_status = dict(booking.talent_status or {})
        talent_status[role] = "accepted" if accept else "declined"
        booking.talent_status = talent_status
        self.db.commit()
        self.db.refresh(booking)

        verb = "accepted" if accept else "declined"
        self.notifications.notify_booking_parties(
            self.db,
            booking,
            "talent_response",
            f"Talent {verb.capitalize()}",
            f"The requested {role} {verb} your studio session at {booking.studio_name}.",
            sender_id=uid
        )
        return booking

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def start_client_checkout(
        self,
        booking: SplitBooking,
        uid: str,
        base_url: Optional[str] = None
    ) -> dict:
        """
        Open a Stripe Checkout session for the caller's share.

        Returns:
            Dict with session_id, url and amount_cents
        """
        role = client_role(booking, uid)
        if role is None:
            raise PermissionError("You are not a client on this booking")

        if not client_needs_payment(booking, uid):
            raise ValueError("No payment is due for this client")

        amounts = calculate_split_payments(booking)
        amount_cents = amounts["client_a_share_cents" if role == "clientA" else "client_b_share_cents"]
        urls = create_payment_urls(booking.id, base_url)

        session = self.payments.create_split_booking_checkout(
            booking_id=booking.id,
            client_uid=uid,
            amount_cents=amount_cents,
            is_client_a=role == "clientA",
            success_url=urls["success_url"],
            cancel_url=urls["cancel_url"],
            session_title=booking.session_title or "Split Studio Session",
        )

        session_ids = dict(booking.stripe_session_ids or {})
        session_ids[role] = session["session_id"]
        booking.stripe_session_ids = session_ids
        self.db.commit()

        return {
            "session_id": session["session_id"],
            "url": session["url"],
            "amount_cents": amount_cents,
        }

    def mark_client_paid(self, booking_id: str, session_id: str, client_uid: Optional[str] = None) -> Optional[SplitBooking]:
        """
        Record a completed checkout. Idempotent for repeated webhook deliveries.

        A payment landing on a cancelled booking is refunded in full.

        Returns:
            The booking, or None if the session does not belong to it
        """
        booking = self.db.get(SplitBooking, booking_id)
        if booking is None:
            logger.warning(f"Payment for unknown split booking {booking_id}")
            return None

        session_ids = booking.stripe_session_ids or {}
        role = next((key for key, value in session_ids.items() if value == session_id), None)
        if role is None and client_uid:
            role = client_role(booking, client_uid)
        if role is None:
            logger.warning(f"Session {session_id} does not match split booking {booking_id}")
            return None

        status_field = "client_a_payment_status" if role == "clientA" else "client_b_payment_status"
        if getattr(booking, status_field) in ("paid", "refunded"):
            return booking

        if booking.status == "cancelled":
            logger.warning(f"Payment for cancelled split booking {booking_id} ({role}), refunding in full")
            self.payments.refund_checkout_session(
                session_id,
                reason="Split booking was cancelled before payment completed"
            )
            setattr(booking, status_field, "refunded")
            self.db.commit()
            self.db.refresh(booking)
            return booking

        setattr(booking, status_field, "paid")
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Split booking {booking_id}: {role} paid")

        if is_split_booking_fully_paid(booking):
            self.notifications.notify_booking_parties(
                self.db,
                booking,
                "split_booking_paid",
                "Session Fully Paid",
                f"Both shares for your session at {booking.studio_name} have been paid."
            )
        return booking

    def cancel_split_booking(
        self,
        booking: SplitBooking,
        uid: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> SplitBooking:
        """
        Cancel a booking and refund every client who already paid.

        Refund amounts follow the standard cancellation policy.
        """
        if client_role(booking, uid) is None:
            raise PermissionError("Only a client on this booking can cancel it")

        if booking.status not in ("pending", "confirmed"):
            raise ValueError(f"Cannot cancel a booking that is {booking.status}")

        now = now or datetime.utcnow()
        session_ids = booking.stripe_session_ids or {}

        for role, status_field, share in (
            ("clientA", "client_a_payment_status", booking.client_a_share),
            ("clientB", "client_b_payment_status", booking.client_b_share),
        ):
            if getattr(booking, status_field) != "paid":
                continue

            refund = calculate_refund(share, booking.scheduled_at, cancelled_at=now)
            session_id = session_ids.get(role)
            if refund.refund_amount <= Decimal("0") or not session_id:
                logger.info(f"No refund due to {role} on {booking.id}: {refund.reason}")
                continue

            self.payments.refund_checkout_session(
                session_id,
                amount_cents=to_cents(refund.refund_amount),
                reason=reason or refund.reason
            )
            # Persist each refund before the next provider call
            setattr(booking, status_field, "refunded")
            self.db.commit()

        booking.status = "cancelled"
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Split booking {booking.id} cancelled by {uid}")

        self.notifications.notify_booking_parties(
            self.db,
            booking,
            "split_booking_cancelled",
            "Split Session Cancelled",
            f"The split session at {booking.studio_name} was cancelled." + (f" Reason: {reason}" if reason else ""),
            sender_id=uid,
            exclude=uid
        )
        return booking
