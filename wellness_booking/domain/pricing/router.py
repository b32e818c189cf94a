"""Pricing router - exposes the price calculator to the booking form"""

import logging

from fastapi import APIRouter

from .calculator import calculate_price, clamp_participants
from .schemas import PriceQuoteRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["Pricing"])


@router.post("/quote")
async def quote_price(data: PriceQuoteRequest):
    """Return the itemized price for a service, participant count and promo code"""
    breakdown = calculate_price(
        data.unitPrice, clamp_participants(data.participants), data.promoCode
    )
    if breakdown.promoCodeValid is False:
        logger.info(f"⚠️ Rejected promo code: {data.promoCode}")
    return {"success": True, "pricing": breakdown.summary()}
