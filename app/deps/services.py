"""
Studio Split - Service Dependencies
Per-request service construction, overridable in tests
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.services.abuse_detection import AbuseScanner, AbuseThresholds
from app.services.notify import NotificationService, notification_service
from app.services.payments import PaymentsService, payments_service
from app.services.split_bookings import SplitBookingService


def get_payments_service() -> PaymentsService:
    return payments_service


def get_notification_service() -> NotificationService:
    return notification_service


def get_split_booking_service(
    db: Session = Depends(get_db),
    payments: PaymentsService = Depends(get_payments_service),
    notifications: NotificationService = Depends(get_notification_service)
) -> SplitBookingService:
    return SplitBookingService(db, payments, notifications)


def get_abuse_scanner(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service)
) -> AbuseScanner:
    return AbuseScanner(
        db,
        thresholds=AbuseThresholds.from_settings(get_settings()),
        notifications=notifications
    )
