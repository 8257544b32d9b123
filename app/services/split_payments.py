"""
Studio Split - Split Payment Ledger
Money-splitting arithmetic and payment-state queries for split bookings

All functions are pure: they read attributes off a split booking (ORM row or
schema object) and never touch the database or Stripe.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from app.config import get_settings

settings = get_settings()

Amount = Union[Decimal, float, int, str]

CENT = Decimal("0.01")

# Display symbols and minor-unit digits for common ISO codes
CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "CA$",
    "AUD": "A$",
    "NZD": "NZ$",
    "MXN": "MX$",
    "BRL": "R$",
    "INR": "₹",
    "NGN": "₦",
    "KRW": "₩",
    "CNY": "CN¥",
    "ILS": "₪",
}

ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW", "VND", "CLP", "ISK", "HUF"}


def to_decimal(value: Amount) -> Decimal:
    """Convert a money value to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_cents(value: Amount) -> int:
    """Dollars to integer cents, half-up."""
    return int((to_decimal(value) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_payment_shares(total_cost: Amount, split_ratio: Amount) -> tuple[Decimal, Decimal]:
    """
    Divide a total between client A (``split_ratio``) and client B (the rest).

    Client B's share is derived by subtraction so the two shares always add
    up to the total.
    """
    total = to_decimal(total_cost)
    client_a_share = (total * to_decimal(split_ratio)).quantize(CENT, rounding=ROUND_HALF_UP)
    return client_a_share, total - client_a_share


def calculate_split_payments(booking) -> dict:
    """
    Calculate the amount each client is charged, in integer cents.

    The shares are rounded independently, then any difference against the
    rounded total is absorbed: a shortfall is added to client A, an excess is
    taken off client B. The cent amounts always satisfy
    ``client_a_share_cents + client_b_share_cents == total_cost_cents``.

    Args:
        booking: Split booking with total_cost, client_a_share, client_b_share

    Returns:
        Dict with cent amounts and the original dollar amounts
    """
    total_cost_cents = to_cents(booking.total_cost)
    client_a_share_cents = to_cents(booking.client_a_share)
    client_b_share_cents = to_cents(booking.client_b_share)

    difference = total_cost_cents - (client_a_share_cents + client_b_share_cents)
    if difference > 0:
        client_a_share_cents += difference
    elif difference < 0:
        client_b_share_cents += difference

    return {
        "total_cost_cents": total_cost_cents,
        "client_a_share_cents": client_a_share_cents,
        "client_b_share_cents": client_b_share_cents,
        "total_cost_dollars": booking.total_cost,
        "client_a_share_dollars": booking.client_a_share,
        "client_b_share_dollars": booking.client_b_share,
    }


def create_payment_urls(booking_id: str, base_url: Optional[str] = None) -> dict:
    """Build the checkout redirect URLs for a split booking."""
    base_url = (base_url or settings.frontend_url).rstrip("/")
    booking_url = f"{base_url}/dashboard/bookings/split/{booking_id}"

    return {
        "success_url": f"{booking_url}?payment=success",
        "cancel_url": f"{booking_url}?payment=cancelled",
        "return_url": booking_url,
    }


def is_split_booking_fully_paid(booking) -> bool:
    """Check if both clients have paid."""
    return (
        booking.client_a_payment_status == "paid"
        and booking.client_b_payment_status == "paid"
    )


def client_role(booking, client_uid: str) -> Optional[str]:
    """Return 'clientA', 'clientB' or None for a uid."""
    if booking.client_a_uid == client_uid:
        return "clientA"
    if booking.client_b_uid == client_uid:
        return "clientB"
    return None


def client_needs_payment(booking, client_uid: str) -> bool:
    """
    Check if a client still has to pay their share.

    Only a confirmed booking collects payment. Unknown uids get False.
    """
    role = client_role(booking, client_uid)
    if role is None or booking.status != "confirmed":
        return False

    if role == "clientA":
        return booking.client_a_payment_status == "pending"
    return booking.client_b_payment_status == "pending"


def get_client_payment_status(booking, client_uid: str) -> Optional[dict]:
    """
    Get one client's view of the payment: status, share and Stripe session.

    Returns:
        Dict with status, amount and stripe_session_id, or None for a uid
        that is not part of the booking
    """
    role = client_role(booking, client_uid)
    if role is None:
        return None

    session_ids = booking.stripe_session_ids or {}
    if role == "clientA":
        return {
            "status": booking.client_a_payment_status or "pending",
            "amount": booking.client_a_share,
            "stripe_session_id": session_ids.get("clientA"),
        }
    return {
        "status": booking.client_b_payment_status or "pending",
        "amount": booking.client_b_share,
        "stripe_session_id": session_ids.get("clientB"),
    }


def format_currency(amount: Amount, currency: str = "USD") -> str:
    """
    Format an amount for display, en-US style.

    >>> format_currency(1000.5)
    '$1,000.50'
    >>> format_currency(100, "EUR")
    '€100.00'
    """
    code = currency.upper()
    digits = 0 if code in ZERO_DECIMAL_CURRENCIES else 2
    quantum = Decimal(1).scaleb(-digits)
    value = to_decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)

    sign = "-" if value < 0 else ""
    number = f"{abs(value):,.{digits}f}"

    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {number}"
    return f"{sign}{symbol}{number}"


def calculate_platform_fee(amount: Amount, fee_percentage: Amount = 0.05) -> Decimal:
    """
    Platform fee rounded half-up to the cent.

    >>> calculate_platform_fee(123.45, 0.05)
    Decimal('6.17')
    """
    fee = to_decimal(amount) * to_decimal(fee_percentage)
    return fee.quantize(CENT, rounding=ROUND_HALF_UP)
