"""Workflow schemas - quotes, invoices, payments and history entries"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import sanitize_string

PaymentMethod = Literal["cash", "card", "transfer", "check"]
HistoryType = Literal[
    "booking_created", "booking_confirmed", "invoice_generated", "payment_recorded"
]


class DocumentClient(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None


class DocumentService(BaseModel):
    name: str
    date: str
    time: str
    duration: int
    participants: int


class QuotePricing(BaseModel):
    unitPrice: float
    quantity: int
    subtotal: float
    discount: float = 0
    promoDiscount: float = 0
    total: float
    tva: float = 0  # VAT does not apply to therapeutic services


class InvoicePricing(QuotePricing):
    paid: float = 0
    remaining: float


class Quote(BaseModel):
    """Priced proposal issued with the booking; only status may change afterwards"""

    number: str
    bookingId: str
    bookingNumber: str
    clientId: Optional[str] = None
    date: str
    validUntil: str
    client: DocumentClient
    service: DocumentService
    pricing: QuotePricing
    terms: list[str] = Field(default_factory=list)
    status: str = "sent"
    createdAt: str


class Payment(BaseModel):
    """One entry of an invoice's payment log; never edited once appended"""

    id: str
    amount: float
    method: PaymentMethod
    date: str
    reference: str = ""
    notes: str = ""


class PaymentCreate(BaseModel):
    """Schema for recording a payment against an invoice"""

    amount: float
    method: PaymentMethod
    date: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Payment amount must be greater than 0")
        return v

    @field_validator("reference", "notes")
    @classmethod
    def sanitize_text(cls, v):
        return sanitize_string(v)


class Invoice(BaseModel):
    """Billing document created when a booking is confirmed"""

    number: str
    bookingId: str
    bookingNumber: str
    quoteNumber: str
    date: str
    dueDate: str
    client: DocumentClient
    service: DocumentService
    pricing: InvoicePricing
    payments: list[Payment] = Field(default_factory=list)
    status: str = "pending"
    paymentStatus: Literal["unpaid", "partial", "paid"] = "unpaid"
    createdAt: str
    updatedAt: str


class HistoryEntry(BaseModel):
    """Audit log record; written once"""

    type: HistoryType
    bookingId: Optional[str] = None
    bookingNumber: Optional[str] = None
    invoiceId: Optional[str] = None
    invoiceNumber: Optional[str] = None
    clientEmail: Optional[str] = None
    amount: Optional[float] = None
    method: Optional[str] = None
    description: str
    timestamp: str
