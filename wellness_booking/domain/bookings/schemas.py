"""Booking domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import sanitize_string, validate_email, validate_phone, validate_time

BookingStatus = Literal["pending", "confirmed", "cancelled", "completed"]
PaymentStatus = Literal["unpaid", "partial", "paid"]


class BookingCreate(BaseModel):
    """Schema for the appointment request form"""

    serviceId: str
    serviceName: str
    unitPrice: float
    duration: int
    participants: int = 1
    promoCode: Optional[str] = None
    firstname: str
    lastname: str
    email: str
    phone: Optional[str] = None
    date: str
    time: str
    message: Optional[str] = None

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

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @field_validator("unitPrice")
    @classmethod
    def validate_unit_price(cls, v):
        if v < 0:
            raise ValueError("Unit price cannot be negative")
        return v

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        if v <= 0:
            raise ValueError("Duration must be greater than 0")
        return v

    @field_validator("firstname", "lastname", "serviceName", "message")
    @classmethod
    def sanitize_text(cls, v):
        return sanitize_string(v)

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


class Contact(BaseModel):
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    name: str
    email: str
    phone: Optional[str] = None


class BookingPricing(BaseModel):
    unitPrice: float
    quantity: int
    subtotal: float
    discount: float = 0
    promoCode: Optional[str] = None
    promoDiscount: float = 0
    total: float


class Workflow(BaseModel):
    """Milestone timestamps; each stays None until reached"""

    created: Optional[str] = None
    quoteSent: Optional[str] = None
    confirmed: Optional[str] = None
    invoiceSent: Optional[str] = None
    paid: Optional[str] = None
    completed: Optional[str] = None


class Booking(BaseModel):
    """Stored booking document"""

    bookingNumber: str
    quoteNumber: str
    invoiceNumber: Optional[str] = None
    serviceId: str
    serviceName: str
    date: str
    time: str
    duration: int
    participants: int
    pricing: BookingPricing
    contact: Contact
    message: Optional[str] = None
    clientId: Optional[str] = None
    status: BookingStatus = "pending"
    paymentStatus: PaymentStatus = "unpaid"
    workflow: Workflow
    createdAt: str
    updatedAt: str

    @field_validator("participants")
    @classmethod
    def validate_participants(cls, v):
        if v < 1:
            raise ValueError("A booking needs at least one participant")
        return v

    @field_validator("bookingNumber")
    @classmethod
    def validate_booking_number(cls, v):
        if not v.startswith("RES"):
            raise ValueError("Booking numbers start with RES")
        return v


class BookedSlot(BaseModel):
    date: str
    time: str
    duration: int
