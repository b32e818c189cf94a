"""Pricing schemas - Pydantic models for the price calculator"""

from typing import Optional

from pydantic import BaseModel, field_validator


class PriceQuoteRequest(BaseModel):
    """Schema for a price calculation request"""

    unitPrice: float
    participants: int = 1
    promoCode: Optional[str] = None

    @field_validator("unitPrice")
    @classmethod
    def validate_unit_price(cls, v):
        if v < 0:
            raise ValueError("Unit price cannot be negative")
        return v


class PriceBreakdown(BaseModel):
    """Itemized price; amounts keep full precision, use summary() for display"""

    unitPrice: float
    quantity: int
    subtotal: float
    discount: float
    promoCode: Optional[str] = None
    promoDiscount: float
    total: float
    # None when no code was entered, False when the code was rejected
    promoCodeValid: Optional[bool] = None
    promoMessage: Optional[str] = None

    def summary(self) -> dict:
        """Amounts rounded to 2 decimals for display"""
        return {
            "unitPrice": round(self.unitPrice, 2),
            "quantity": self.quantity,
            "subtotal": round(self.subtotal, 2),
            "discount": round(self.discount, 2),
            "promoCode": self.promoCode,
            "promoDiscount": round(self.promoDiscount, 2),
            "total": round(self.total, 2),
            "promoCodeValid": self.promoCodeValid,
            "promoMessage": self.promoMessage,
        }
