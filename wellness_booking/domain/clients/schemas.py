"""Client domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone


class ClientProfileInput(BaseModel):
    """Data handed to the profile upsert for one booking"""

    email: str
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    amount: float = 0

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_phone(v)
        return v


class ClientProfile(BaseModel):
    """Stored client profile document, one per email"""

    email: str
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    totalBookings: int = 0
    totalSpent: float = 0
    loyaltyPoints: int = 0
    firstBookingDate: str
    lastBookingDate: str
    status: str = "active"
    tags: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    createdAt: str
    updatedAt: str
