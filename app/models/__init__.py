# Models package
from app.models.models import (
    AppUser,
    Studio,
    SplitBooking,
    Booking,
    Review,
    AbuseFlagRecord,
    Notification,
    AuditLog,
)
