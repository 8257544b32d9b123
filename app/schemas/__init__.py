# Schemas package
from app.schemas.user import UserResponse, UserUpdate
from app.schemas.auth import UserRegister, UserLogin, Token, AuthResponse
from app.schemas.split_booking import (
    SplitBookingCreate,
    SplitBookingResponse,
    SplitBookingStatus,
    PaymentStatus,
    RequestedTalent,
    SplitPaymentSummary,
    CheckoutResponse,
)
from app.schemas.abuse import (
    AbuseFlag,
    AbuseFlagType,
    Severity,
    ScanRequest,
    ScanResult,
    AbuseFlagRecordResponse,
    ResolveRequest,
)
