"""
Workflow service - Booking lifecycle orchestration

A booking moves through created/quoted -> confirmed -> invoiced -> paid. Creating a
booking also issues its quote; confirming it issues the invoice; payments are
appended to the invoice and mirrored onto the booking.

Multi-step operations are not atomic. Steps run one after another and a failure
part way leaves the earlier writes in place; the failure envelope lists the
completed steps. History entries and notifications run after the main writes and
their failures are only logged.
"""

import logging
import uuid
from typing import Optional, Union

from pydantic import BaseModel, ValidationError

from ...config import BOOKING_NUMBER_MODE, INVOICE_DUE_DAYS, QUOTE_TERMS, QUOTE_VALIDITY_DAYS
from ...document_store import DocumentStore
from ...services.notification_service import (
    LoggingNotificationSink,
    NotificationSink,
    send_booking_notifications,
)
from ...shared.dates import Clock, add_days_iso, to_iso, utc_now
from ...shared.exceptions import (
    NotFoundError,
    PartialWorkflowFailure,
    ValidationFailure,
    failure,
)
from ...shared.validators import validate_email
from ..bookings.repository import BookingRepository
from ..bookings.schemas import Booking, BookingCreate, BookingPricing, Contact, Workflow
from ..clients.schemas import ClientProfileInput
from ..clients.service import ClientService
from ..numbering.service import generate_booking_number, invoice_number_for, quote_number_for
from ..pricing.calculator import calculate_price, clamp_participants
from .repository import WorkflowRepository
from .schemas import (
    DocumentClient,
    DocumentService,
    HistoryEntry,
    Invoice,
    InvoicePricing,
    Payment,
    PaymentCreate,
    Quote,
    QuotePricing,
)

logger = logging.getLogger(__name__)


def payment_status_for(total_paid: float, remaining: float) -> str:
    if remaining <= 0:
        return "paid"
    if total_paid > 0:
        return "partial"
    return "unpaid"


def _parse(model: type[BaseModel], data):
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationFailure(f"Invalid {field or 'request'}: {first['msg']}") from e


def _document_parts(booking: dict) -> tuple[DocumentClient, DocumentService]:
    contact = booking.get("contact", {})
    client = DocumentClient(
        name=contact.get("name"), email=contact.get("email"), phone=contact.get("phone")
    )
    service = DocumentService(
        name=booking["serviceName"],
        date=booking["date"],
        time=booking["time"],
        duration=booking["duration"],
        participants=booking["participants"],
    )
    return client, service


class WorkflowService:
    """Service layer for the booking workflow"""

    def __init__(
        self,
        store: DocumentStore,
        notifier: Optional[NotificationSink] = None,
        clock: Clock = utc_now,
        number_mode: str = BOOKING_NUMBER_MODE,
    ):
        self.store = store
        self.notifier = notifier or LoggingNotificationSink()
        self.clock = clock
        self.number_mode = number_mode
        self.bookings = BookingRepository()
        self.repo = WorkflowRepository()
        self.clients = ClientService(store, clock)

    # ------------------------------------------------------------------
    # Booking creation
    # ------------------------------------------------------------------
    def create_full_booking(self, booking_data: Union[BookingCreate, dict]) -> dict:
        """
        Turn a submitted booking form into a booking, a client profile update and a quote.

        Returns {success, bookingId, bookingNumber, quoteNumber, quote, clientId, isNewClient}.
        """
        logger.info("📝 Creating full booking...")
        try:
            request = _parse(BookingCreate, booking_data)
            now_dt = self.clock()
            now = to_iso(now_dt)

            participants = clamp_participants(request.participants)
            price = calculate_price(request.unitPrice, participants, request.promoCode)
            if price.promoCodeValid is False:
                logger.warning(f"⚠️ Invalid promo code ignored: {request.promoCode}")

            booking_number = generate_booking_number(self.store, now_dt, self.number_mode)
            quote_number = quote_number_for(booking_number)

            booking = Booking(
                bookingNumber=booking_number,
                quoteNumber=quote_number,
                invoiceNumber=None,
                serviceId=request.serviceId,
                serviceName=request.serviceName,
                date=request.date,
                time=request.time,
                duration=request.duration,
                participants=participants,
                pricing=BookingPricing(
                    unitPrice=price.unitPrice,
                    quantity=price.quantity,
                    subtotal=price.subtotal,
                    discount=price.discount,
                    promoCode=price.promoCode,
                    promoDiscount=price.promoDiscount,
                    total=price.total,
                ),
                contact=Contact(
                    firstname=request.firstname,
                    lastname=request.lastname,
                    name=request.full_name,
                    email=request.email,
                    phone=request.phone,
                ),
                message=request.message,
                status="pending",
                paymentStatus="unpaid",
                workflow=Workflow(created=now, quoteSent=now),
                createdAt=now,
                updatedAt=now,
            )
            booking_id = self.bookings.create_booking(self.store, booking)
            logger.info(f"✅ Booking created: {booking_id} ({booking_number})")
        except Exception as e:
            logger.error(f"❌ Booking creation failed: {e}")
            return failure(e)

        completed_steps = ["booking"]
        try:
            profile = self.clients.create_or_update_client_profile(
                ClientProfileInput(
                    email=request.email,
                    firstname=request.firstname,
                    lastname=request.lastname,
                    name=request.full_name,
                    phone=request.phone,
                    amount=price.total,
                )
            )
            if not profile["success"]:
                raise PartialWorkflowFailure(
                    f"Client profile update failed: {profile['error']}", completed_steps
                )
            completed_steps.append("client_profile")
            client_id = profile["id"]
            self.bookings.update_booking(self.store, booking_id, {"clientId": client_id})

            quote = self._generate_quote(booking_id, booking, client_id, now_dt)
            completed_steps.append("quote")
        except Exception as e:
            logger.error(
                f"❌ Booking {booking_number} partially created (completed: {completed_steps}): {e}"
            )
            result = failure(PartialWorkflowFailure(str(e), completed_steps))
            result.update({"bookingId": booking_id, "bookingNumber": booking_number})
            return result

        booking_doc = {**booking.model_dump(), "id": booking_id, "clientId": client_id}
        self._append_history(
            HistoryEntry(
                type="booking_created",
                bookingId=booking_id,
                bookingNumber=booking_number,
                clientEmail=request.email,
                description=f"New booking created: {request.serviceName}",
                timestamp=now,
            )
        )
        self._notify(booking_doc, quote)

        return {
            "success": True,
            "bookingId": booking_id,
            "bookingNumber": booking_number,
            "quoteNumber": quote_number,
            "quote": quote,
            "clientId": client_id,
            "isNewClient": profile["isNew"],
        }

    def _generate_quote(self, booking_id: str, booking: Booking, client_id: str, now_dt) -> dict:
        client, service = _document_parts({**booking.model_dump(), "id": booking_id})
        now = to_iso(now_dt)
        quote = Quote(
            number=booking.quoteNumber,
            bookingId=booking_id,
            bookingNumber=booking.bookingNumber,
            clientId=client_id,
            date=now,
            validUntil=add_days_iso(now_dt, QUOTE_VALIDITY_DAYS),
            client=client,
            service=service,
            pricing=QuotePricing(
                unitPrice=booking.pricing.unitPrice,
                quantity=booking.pricing.quantity,
                subtotal=booking.pricing.subtotal,
                discount=booking.pricing.discount,
                promoDiscount=booking.pricing.promoDiscount,
                total=booking.pricing.total,
            ),
            terms=list(QUOTE_TERMS),
            status="sent",
            createdAt=now,
        )
        quote_id = self.repo.create_quote(self.store, quote)
        logger.info(f"✅ Quote generated: {quote_id} ({quote.number})")
        return {**quote.model_dump(), "id": quote_id}

    # ------------------------------------------------------------------
    # Confirmation and invoicing
    # ------------------------------------------------------------------
    def confirm_booking(self, booking_id: str) -> dict:
        """
        Mark a booking confirmed and issue its invoice. Returns {success, invoice}.

        A booking invoiced beforehand keeps its invoice; confirming only attaches it.
        """
        try:
            booking = self.bookings.get_booking(self.store, booking_id)
            if booking is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            if booking.get("status") == "confirmed":
                raise ValidationFailure(f"Booking {booking['bookingNumber']} is already confirmed")

            now = to_iso(self.clock())
            self.bookings.update_booking(
                self.store,
                booking_id,
                {"status": "confirmed", "workflow.confirmed": now, "updatedAt": now},
            )

            invoice = self._existing_invoice(booking, now) or self._generate_invoice(booking_id)

            self._append_history(
                HistoryEntry(
                    type="booking_confirmed",
                    bookingId=booking_id,
                    bookingNumber=booking["bookingNumber"],
                    clientEmail=booking.get("contact", {}).get("email"),
                    description=f"Booking confirmed: {booking['bookingNumber']}",
                    timestamp=now,
                )
            )
            logger.info(f"✅ Booking confirmed: {booking['bookingNumber']}")
            return {"success": True, "invoice": invoice}
        except Exception as e:
            logger.error(f"❌ Booking confirmation failed for {booking_id}: {e}")
            return failure(e)

    def generate_invoice_document(self, booking_id: str) -> dict:
        """Issue the invoice for a booking. Returns {success, invoice}."""
        try:
            return {"success": True, "invoice": self._generate_invoice(booking_id)}
        except Exception as e:
            logger.error(f"❌ Invoice generation failed for {booking_id}: {e}")
            return failure(e)

    def _existing_invoice(self, booking: dict, now: str) -> Optional[dict]:
        """Invoice already issued for a booking, re-linked to it if the link was lost"""
        invoice = self.repo.get_invoice_by_number(
            self.store, invoice_number_for(booking["bookingNumber"])
        )
        if invoice is None:
            return None

        if booking.get("invoiceNumber") != invoice["number"]:
            invoice_sent = (booking.get("workflow") or {}).get("invoiceSent") or invoice["date"]
            self.bookings.update_booking(
                self.store,
                booking["id"],
                {
                    "invoiceNumber": invoice["number"],
                    "workflow.invoiceSent": invoice_sent,
                    "updatedAt": now,
                },
            )
            logger.info(f"🔗 Invoice {invoice['number']} re-linked to {booking['bookingNumber']}")
        return invoice

    def _generate_invoice(self, booking_id: str) -> dict:
        booking = self.bookings.get_booking(self.store, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")

        invoice_number = invoice_number_for(booking["bookingNumber"])
        if booking.get("invoiceNumber") or self.repo.get_invoice_by_number(
            self.store, invoice_number
        ):
            raise ValidationFailure(f"Invoice {invoice_number} already exists")

        now_dt = self.clock()
        now = to_iso(now_dt)
        client, service = _document_parts(booking)
        pricing = booking["pricing"]
        invoice = Invoice(
            number=invoice_number,
            bookingId=booking_id,
            bookingNumber=booking["bookingNumber"],
            quoteNumber=booking["quoteNumber"],
            date=now,
            dueDate=add_days_iso(now_dt, INVOICE_DUE_DAYS),
            client=client,
            service=service,
            pricing=InvoicePricing(
                unitPrice=pricing["unitPrice"],
                quantity=pricing.get("quantity", booking["participants"]),
                subtotal=pricing.get("subtotal", pricing["unitPrice"] * booking["participants"]),
                discount=pricing.get("discount", 0),
                promoDiscount=pricing.get("promoDiscount", 0),
                total=pricing["total"],
                paid=0,
                remaining=pricing["total"],
            ),
            payments=[],
            status="pending",
            paymentStatus="unpaid",
            createdAt=now,
            updatedAt=now,
        )
        invoice_id = self.repo.create_invoice(self.store, invoice)

        self.bookings.update_booking(
            self.store,
            booking_id,
            {"invoiceNumber": invoice_number, "workflow.invoiceSent": now, "updatedAt": now},
        )

        self._append_history(
            HistoryEntry(
                type="invoice_generated",
                bookingId=booking_id,
                invoiceId=invoice_id,
                invoiceNumber=invoice_number,
                clientEmail=client.email,
                description=f"Invoice generated: {invoice_number}",
                timestamp=now,
            )
        )
        logger.info(f"✅ Invoice generated: {invoice_id} ({invoice_number})")
        return {**invoice.model_dump(), "id": invoice_id}

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------
    def record_payment(self, invoice_id: str, payment_data: Union[PaymentCreate, dict]) -> dict:
        """
        Append a payment to an invoice and recompute its settlement.

        The booking's workflow.paid timestamp is recomputed on every payment: set when
        the invoice is settled, reset to None otherwise.
        Returns {success, payment, totalPaid, remaining, paymentStatus}.
        """
        try:
            data = _parse(PaymentCreate, payment_data)
            invoice = self.repo.get_invoice(self.store, invoice_id)
            if invoice is None:
                raise NotFoundError(f"Invoice {invoice_id} not found")

            now = to_iso(self.clock())
            payment = Payment(
                id=f"PAY{uuid.uuid4().hex[:12].upper()}",
                amount=data.amount,
                method=data.method,
                date=data.date or now,
                reference=data.reference or "",
                notes=data.notes or "",
            )
            payments = list(invoice.get("payments") or [])
            payments.append(payment.model_dump())

            # Settlement is decided in cents; stored totals carry float noise
            total_paid = round(sum(p["amount"] for p in payments), 2)
            remaining = round(invoice["pricing"]["total"] - total_paid, 2)
            payment_status = payment_status_for(total_paid, remaining)

            self.repo.update_invoice(
                self.store,
                invoice_id,
                {
                    "payments": payments,
                    "pricing.paid": total_paid,
                    "pricing.remaining": remaining,
                    "paymentStatus": payment_status,
                    "updatedAt": now,
                },
            )

            booking = self.bookings.get_by_invoice_number(self.store, invoice["number"])
            if booking:
                self.bookings.update_booking(
                    self.store,
                    booking["id"],
                    {
                        "paymentStatus": payment_status,
                        "workflow.paid": now if payment_status == "paid" else None,
                        "updatedAt": now,
                    },
                )
            else:
                logger.warning(f"⚠️ No booking references invoice {invoice['number']}")

            self._append_history(
                HistoryEntry(
                    type="payment_recorded",
                    bookingId=invoice.get("bookingId"),
                    invoiceId=invoice_id,
                    invoiceNumber=invoice["number"],
                    clientEmail=invoice.get("client", {}).get("email"),
                    amount=data.amount,
                    method=data.method,
                    description=f"Payment recorded: {data.amount:.2f}€ ({data.method})",
                    timestamp=now,
                )
            )
            logger.info(f"✅ Payment recorded on {invoice['number']}: {payment_status}")
            return {
                "success": True,
                "payment": payment.model_dump(),
                "totalPaid": total_paid,
                "remaining": remaining,
                "paymentStatus": payment_status,
            }
        except Exception as e:
            logger.error(f"❌ Payment recording failed for invoice {invoice_id}: {e}")
            return failure(e)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def get_client_history(self, email: str) -> dict:
        """History entries for a client, newest first"""
        try:
            if not email or not email.strip():
                raise ValidationFailure("Email is required")
            try:
                normalized = validate_email(email)
            except ValueError as e:
                raise ValidationFailure(str(e)) from e
            history = self.repo.get_history_by_email(self.store, normalized)
            return {"success": True, "history": history}
        except Exception as e:
            logger.error(f"❌ History lookup failed: {e}")
            return failure(e)

    # ------------------------------------------------------------------
    # Post-commit hooks
    # ------------------------------------------------------------------
    def _append_history(self, entry: HistoryEntry) -> None:
        try:
            self.repo.add_history(self.store, entry)
        except Exception as e:
            logger.error(f"❌ Failed to append {entry.type} history entry: {e}")

    def _notify(self, booking: dict, quote: dict) -> None:
        try:
            result = send_booking_notifications(self.notifier, booking, quote)
            if result["errors"]:
                logger.warning(f"⚠️ Booking notifications incomplete: {result['errors']}")
        except Exception as e:
            logger.error(f"❌ Booking notifications failed: {e}")
