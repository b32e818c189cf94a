"""Price calculator - group discount and promo code rules"""

from typing import Optional

from ...config import (
    GROUP_DISCOUNT_RATE,
    GROUP_DISCOUNT_THRESHOLD,
    MAX_PARTICIPANTS,
    MIN_PARTICIPANTS,
    PROMO_CODE,
    PROMO_RATE,
)
from .schemas import PriceBreakdown

INVALID_PROMO_MESSAGE = "Code promo invalide"
VALID_PROMO_MESSAGE = "Code promo -20% appliqué"


def clamp_participants(value: int) -> int:
    """Clamp a participant count to the bookable range"""
    return max(MIN_PARTICIPANTS, min(MAX_PARTICIPANTS, int(value)))


def normalize_promo_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def is_valid_promo_code(code: Optional[str]) -> bool:
    return normalize_promo_code(code) == PROMO_CODE


def calculate_price(
    unit_price: float, participants: int, promo_code: Optional[str] = None
) -> PriceBreakdown:
    """
    Compute the itemized price of a booking.

    subtotal = unit price x participants
    group discount = 10% of subtotal above 3 participants
    promo discount = 20% of (subtotal - group discount) for the recognised code
    total = subtotal - group discount - promo discount
    """
    if unit_price < 0:
        raise ValueError("Unit price cannot be negative")

    subtotal = unit_price * participants
    discount = subtotal * GROUP_DISCOUNT_RATE if participants > GROUP_DISCOUNT_THRESHOLD else 0.0

    code = normalize_promo_code(promo_code)
    promo_discount = 0.0
    promo_valid = None
    promo_message = None
    if code == PROMO_CODE:
        promo_discount = (subtotal - discount) * PROMO_RATE
        promo_valid = True
        promo_message = VALID_PROMO_MESSAGE
    elif code:
        promo_valid = False
        promo_message = INVALID_PROMO_MESSAGE

    return PriceBreakdown(
        unitPrice=unit_price,
        quantity=participants,
        subtotal=subtotal,
        discount=discount,
        promoCode=code if promo_valid else None,
        promoDiscount=promo_discount,
        total=subtotal - discount - promo_discount,
        promoCodeValid=promo_valid,
        promoMessage=promo_message,
    )
