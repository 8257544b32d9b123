"""
Studio Split - Refund Calculator
Time-based cancellation refunds by creator tier
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from app.services.split_payments import Amount, CENT, to_decimal


class RefundRule(BaseModel):
    """Refund percentage granted when cancelling at least N hours ahead."""
    hours_before_booking: float = Field(ge=0)
    refund_percentage: int = Field(ge=0, le=100)
    description: str


class CancellationPolicy(BaseModel):
    """Ordered set of refund rules."""
    id: str
    name: str
    description: str
    rules: List[RefundRule]


class RefundCalculation(BaseModel):
    """Result of a refund calculation."""
    refund_amount: Decimal
    platform_fee: Decimal
    processing_fee: Decimal
    refund_percentage: int
    hours_until_booking: float
    applied_rule: str
    can_cancel: bool
    reason: str


CreatorTier = Literal["standard", "verified", "signature"]

DEFAULT_POLICIES: Dict[str, CancellationPolicy] = {
    "standard": CancellationPolicy(
        id="standard",
        name="Standard Policy",
        description="Basic cancellation policy for standard tier creators",
        rules=[
            RefundRule(hours_before_booking=48, refund_percentage=100,
                       description="Full refund if cancelled 48+ hours before booking"),
            RefundRule(hours_before_booking=24, refund_percentage=50,
                       description="50% refund if cancelled 24-48 hours before booking"),
            RefundRule(hours_before_booking=0, refund_percentage=0,
                       description="No refund if cancelled less than 24 hours before booking"),
        ],
    ),
    "verified": CancellationPolicy(
        id="verified",
        name="Verified Creator Policy",
        description="Enhanced cancellation policy for verified creators",
        rules=[
            RefundRule(hours_before_booking=72, refund_percentage=100,
                       description="Full refund if cancelled 72+ hours before booking"),
            RefundRule(hours_before_booking=48, refund_percentage=75,
                       description="75% refund if cancelled 48-72 hours before booking"),
            RefundRule(hours_before_booking=24, refund_percentage=25,
                       description="25% refund if cancelled 24-48 hours before booking"),
            RefundRule(hours_before_booking=0, refund_percentage=0,
                       description="No refund if cancelled less than 24 hours before booking"),
        ],
    ),
    "signature": CancellationPolicy(
        id="signature",
        name="Signature Creator Policy",
        description="Premium cancellation policy for signature creators",
        rules=[
            RefundRule(hours_before_booking=168, refund_percentage=100,
                       description="Full refund if cancelled 7+ days before booking"),
            RefundRule(hours_before_booking=72, refund_percentage=75,
                       description="75% refund if cancelled 3-7 days before booking"),
            RefundRule(hours_before_booking=48, refund_percentage=50,
                       description="50% refund if cancelled 2-3 days before booking"),
            RefundRule(hours_before_booking=24, refund_percentage=10,
                       description="10% refund if cancelled 1-2 days before booking"),
            RefundRule(hours_before_booking=0, refund_percentage=0,
                       description="No refund if cancelled less than 24 hours before booking"),
        ],
    ),
}

PROCESSING_FEE_RATE = Decimal("0.029")
PROCESSING_FEE_FIXED = Decimal("0.30")
PROCESSING_FEE_CAP = Decimal("0.1")  # of the refund
PLATFORM_FEE_RATE = Decimal("0.20")


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def get_cancellation_policy(tier: Optional[str] = "standard") -> CancellationPolicy:
    """Get the cancellation policy for a creator tier, falling back to standard."""
    return DEFAULT_POLICIES.get(tier or "standard", DEFAULT_POLICIES["standard"])


def calculate_refund(
    amount: Amount,
    scheduled_at: datetime,
    cancelled_at: Optional[datetime] = None,
    creator_tier: Optional[str] = "standard",
    policy: Optional[CancellationPolicy] = None
) -> RefundCalculation:
    """
    Calculate how much of a booking payment is refunded on cancellation.

    Args:
        amount: Amount the client paid
        scheduled_at: Session start (naive UTC)
        cancelled_at: Cancellation time, defaults to now
        creator_tier: Tier used to pick a default policy
        policy: Explicit policy overriding the tier

    Returns:
        RefundCalculation
    """
    amount = to_decimal(amount)
    if amount < 0:
        raise ValueError("Amount must not be negative")

    cancelled_at = cancelled_at or datetime.utcnow()
    hours_until_booking = (scheduled_at - cancelled_at).total_seconds() / 3600

    policy = policy or get_cancellation_policy(creator_tier)
    rules = sorted(policy.rules, key=lambda rule: rule.hours_before_booking, reverse=True)

    # Most restrictive rule when nothing matches (booking already started)
    applied = next(
        (rule for rule in rules if hours_until_booking >= rule.hours_before_booking),
        rules[-1]
    )

    refund_percentage = applied.refund_percentage
    base_refund = amount * refund_percentage / 100

    processing_fee = Decimal("0")
    if refund_percentage > 0:
        processing_fee = min(
            amount * PROCESSING_FEE_RATE + PROCESSING_FEE_FIXED,
            base_refund * PROCESSING_FEE_CAP
        )

    platform_fee = amount * PLATFORM_FEE_RATE if refund_percentage < 100 else Decimal("0")
    refund_amount = max(Decimal("0"), base_refund - processing_fee)

    can_cancel = hours_until_booking >= 0
    if not can_cancel:
        reason = "Cannot cancel bookings that have already occurred"
    elif refund_percentage == 0:
        reason = "Cancellation too close to booking time - no refund available"
    else:
        reason = f"{refund_percentage}% refund applied based on {policy.name}"

    return RefundCalculation(
        refund_amount=_round(refund_amount),
        platform_fee=_round(platform_fee),
        processing_fee=_round(processing_fee),
        refund_percentage=refund_percentage,
        hours_until_booking=max(0.0, hours_until_booking),
        applied_rule=applied.description,
        can_cancel=can_cancel,
        reason=reason,
    )


def can_cancel_booking(scheduled_at: datetime, cancelled_at: Optional[datetime] = None) -> bool:
    """A booking can be cancelled until it starts."""
    cancelled_at = cancelled_at or datetime.utcnow()
    return scheduled_at >= cancelled_at


def get_policy_summary(tier: Optional[str] = "standard") -> str:
    """Human-readable bullet list of a tier's refund rules."""
    policy = get_cancellation_policy(tier)
    lines = []
    for index, rule in enumerate(policy.rules):
        if rule.hours_before_booking == 0:
            previous = policy.rules[index - 1].hours_before_booking if index > 0 else 24
            lines.append(f"• Less than {previous:g} hours: {rule.refund_percentage}% refund")
        else:
            lines.append(f"• {rule.hours_before_booking:g}+ hours before: {rule.refund_percentage}% refund")
    return "\n".join(lines)
