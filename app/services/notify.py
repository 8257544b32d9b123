"""
Studio Split - Notification Service
In-app notifications with optional email delivery

Notifications are fire-and-forget: every public method logs failures and
returns instead of raising, so the operation that triggered them stands.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.models import AppUser, Notification, SplitBooking
from app.services.mail import MailService, mail_service
from app.services.split_payments import format_currency

settings = get_settings()
logger = logging.getLogger(__name__)

TALENT_ROLES = ("artist", "producer", "engineer")


class NotificationService:
    """Writes notification rows and mirrors them by email when SMTP is set up."""

    def __init__(self, mailer: Optional[MailService] = None):
        self.mailer = mailer or mail_service

    def send(self, db: Session, notifications: Iterable[Notification]) -> List[Notification]:
        """
        Persist a batch of notifications.

        Returns:
            The saved notifications, or an empty list if the write failed
        """
        notifications = list(notifications)
        if not notifications:
            return []

        try:
            db.add_all(notifications)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error saving {len(notifications)} notifications: {e}")
            return []

        if self.mailer.enabled:
            self._email(db, notifications)

        logger.info(f"Sent {len(notifications)} notifications")
        return notifications

    def _email(self, db: Session, notifications: List[Notification]) -> None:
        for notification in notifications:
            try:
                user = db.get(AppUser, notification.user_id)
                if user is None:
                    continue
                link = None
                if notification.booking_id:
                    link = f"{settings.frontend_url}/dashboard/bookings/split/{notification.booking_id}"
                self.mailer.send_notification_email(
                    to_email=user.email,
                    title=notification.title,
                    message=notification.message or "",
                    link=link
                )
            except SQLAlchemyError as e:
                logger.warning(f"Could not email notification {notification.id}: {e}")

    def notify_split_booking_created(
        self,
        db: Session,
        booking: SplitBooking,
        created_by: str
    ) -> List[Notification]:
        """Invite the co-client and every requested talent."""
        try:
            creator = db.get(AppUser, created_by)
        except SQLAlchemyError as e:
            logger.error(f"Error loading booking creator {created_by}: {e}")
            creator = None
        creator_name = (creator.name if creator else None) or "Unknown User"

        if booking.client_a_uid == created_by:
            co_client_uid, co_client_share = booking.client_b_uid, booking.client_b_share
        else:
            co_client_uid, co_client_share = booking.client_a_uid, booking.client_a_share

        scheduled_at = booking.scheduled_at.isoformat() if booking.scheduled_at else None
        notifications = [
            Notification(
                user_id=co_client_uid,
                type="split_booking_invite",
                booking_id=booking.id,
                sender_id=created_by,
                title="Studio Session Collaboration Invite",
                message=(
                    f"{creator_name} invited you to split a studio session at {booking.studio_name}. "
                    f"Your share: {format_currency(co_client_share, settings.default_currency)}"
                ),
                data={
                    "studio_name": booking.studio_name,
                    "scheduled_at": scheduled_at,
                    "split_ratio": str(booking.split_ratio),
                },
            )
        ]

        requested = booking.requested_talent or {}
        for role in TALENT_ROLES:
            talent_uid = requested.get(f"{role}_id")
            if not talent_uid:
                continue
            notifications.append(
                Notification(
                    user_id=talent_uid,
                    type="talent_request",
                    booking_id=booking.id,
                    sender_id=created_by,
                    title=f"Studio Session {role.capitalize()} Request",
                    message=f"{creator_name} requested you as {role} for a studio session at {booking.studio_name}",
                    data={
                        "studio_name": booking.studio_name,
                        "scheduled_at": scheduled_at,
                        "talent_role": role,
                    },
                )
            )

        return self.send(db, notifications)

    def notify_booking_parties(
        self,
        db: Session,
        booking: SplitBooking,
        notification_type: str,
        title: str,
        message: str,
        sender_id: Optional[str] = None,
        exclude: Optional[str] = None
    ) -> List[Notification]:
        """Send the same notice to both clients of a split booking."""
        recipients = [
            uid for uid in (booking.client_a_uid, booking.client_b_uid)
            if uid and uid != exclude
        ]
        return self.send(db, [
            Notification(
                user_id=uid,
                type=notification_type,
                booking_id=booking.id,
                sender_id=sender_id,
                title=title,
                message=message,
            )
            for uid in recipients
        ])

    def notify_account_frozen(self, db: Session, user_id: str, reason: str) -> List[Notification]:
        """Tell a user their account was frozen."""
        return self.send(db, [
            Notification(
                user_id=user_id,
                type="account_frozen",
                title="Your account has been frozen",
                message=f"{reason}. Our team will review your account shortly.",
            )
        ])


# Shared instance, injected through app.deps.services.get_notification_service
notification_service = NotificationService()
