"""
Studio Split - Split Booking Schemas
Pydantic schemas for split booking request/response validation
"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, Dict, Literal
from datetime import datetime
from decimal import Decimal


class SplitBookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


TalentRole = Literal["artist", "producer", "engineer"]


class RequestedTalent(BaseModel):
    """Optional extra participants invited to the session."""
    artist_id: Optional[str] = None
    producer_id: Optional[str] = None
    engineer_id: Optional[str] = None


class SplitBookingCreate(BaseModel):
    """Schema for requesting a split booking."""
    studio_id: str
    client_a_uid: str
    client_b_uid: str
    split_ratio: Decimal = Field(..., description="Client A's fraction of the total, between 0 and 1")
    scheduled_at: datetime
    duration_minutes: int = Field(..., gt=0)
    total_cost: Decimal
    session_title: Optional[str] = None
    session_description: Optional[str] = None
    requested_talent: Optional[RequestedTalent] = None


class SplitBookingResponse(BaseModel):
    """Schema for split booking response."""
    id: str
    studio_id: str
    created_by: str
    client_a_uid: str
    client_b_uid: str
    split_ratio: Decimal
    scheduled_at: datetime
    duration_minutes: int
    total_cost: Decimal
    client_a_share: Decimal
    client_b_share: Decimal
    session_title: Optional[str] = None
    session_description: Optional[str] = None
    requested_talent: Optional[Dict[str, Optional[str]]] = None
    talent_status: Optional[Dict[str, str]] = None
    status: SplitBookingStatus
    client_a_payment_status: PaymentStatus
    client_b_payment_status: PaymentStatus
    stripe_session_ids: Optional[Dict[str, str]] = None
    studio_name: Optional[str] = None
    studio_location: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RespondRequest(BaseModel):
    """Co-client accepts or declines a split booking."""
    accept: bool


class TalentResponseRequest(BaseModel):
    """Requested talent accepts or declines."""
    role: TalentRole
    accept: bool


class CancelRequest(BaseModel):
    """Cancellation of a split booking."""
    reason: Optional[str] = None


class ClientPaymentStatusResponse(BaseModel):
    """One client's payment view."""
    status: PaymentStatus
    amount: Decimal
    stripe_session_id: Optional[str] = None


class SplitPaymentSummary(BaseModel):
    """Payment breakdown of a split booking for the calling client."""
    booking_id: str
    total_cost_cents: int
    client_a_share_cents: int
    client_b_share_cents: int
    total_cost_display: str
    client_a_share_display: str
    client_b_share_display: str
    platform_fee: Decimal
    fully_paid: bool
    needs_payment: bool
    my_payment: ClientPaymentStatusResponse


class CheckoutResponse(BaseModel):
    """Schema for checkout session response."""
    booking_id: str
    session_id: str
    checkout_url: str
    amount_cents: int
