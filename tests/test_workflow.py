import re
from datetime import datetime

import pytest

from wellness_booking.config import QUOTE_VALIDITY_DAYS
from wellness_booking.domain.pricing.calculator import calculate_price
from wellness_booking.domain.workflow.service import WorkflowService, payment_status_for
from wellness_booking.services.notification_service import NotificationSink
from wellness_booking.shared.exceptions import StoreFailure


def _create(workflow, booking_form, **overrides):
    result = workflow.create_full_booking({**booking_form, **overrides})
    assert result["success"], result
    return result


def _confirmed_invoice(workflow, booking_form, **overrides):
    created = _create(workflow, booking_form, **overrides)
    confirmed = workflow.confirm_booking(created["bookingId"])
    assert confirmed["success"], confirmed
    return created, confirmed["invoice"]


# ============================================================================
# createFullBooking
# ============================================================================


def test_create_full_booking_end_to_end(workflow, booking_form, store):
    result = _create(workflow, booking_form)

    assert re.fullmatch(r"RES\d{8}", result["bookingNumber"])
    assert result["quoteNumber"] == "DEV" + result["bookingNumber"][3:]
    assert result["isNewClient"] is True

    booking = store.get("bookings", result["bookingId"])
    assert booking["status"] == "pending"
    assert booking["paymentStatus"] == "unpaid"
    assert booking["invoiceNumber"] is None
    assert booking["pricing"]["total"] == 60
    assert booking["contact"]["email"] == "camille.martin@example.com"
    assert booking["contact"]["phone"] == "+33612345678"
    assert booking["clientId"] == result["clientId"]
    assert booking["workflow"]["created"] == booking["workflow"]["quoteSent"]
    assert booking["workflow"]["confirmed"] is None


def test_quote_is_stored_with_validity_window(workflow, booking_form, store):
    result = _create(workflow, booking_form, participants=4, promoCode="decouverte20")

    quote = store.get("quotes", result["quote"]["id"])
    assert quote["number"] == result["quoteNumber"]
    assert quote["bookingId"] == result["bookingId"]
    assert quote["clientId"] == result["clientId"]
    assert quote["status"] == "sent"
    assert quote["pricing"]["subtotal"] == 240
    assert quote["pricing"]["discount"] == pytest.approx(24)
    assert quote["pricing"]["promoDiscount"] == pytest.approx(43.2)
    assert quote["pricing"]["total"] == pytest.approx(172.8)
    assert quote["pricing"]["tva"] == 0
    assert quote["terms"][0] == f"Devis valable {QUOTE_VALIDITY_DAYS} jours"
    issued = datetime.fromisoformat(quote["date"])
    valid_until = datetime.fromisoformat(quote["validUntil"])
    assert (valid_until - issued).days == 30


def test_invalid_promo_code_books_without_discount(workflow, booking_form, store):
    result = _create(workflow, booking_form, promoCode="XYZ")

    booking = store.get("bookings", result["bookingId"])
    assert booking["pricing"]["promoDiscount"] == 0
    assert booking["pricing"]["promoCode"] is None
    assert booking["pricing"]["total"] == 60


def test_participants_are_clamped(workflow, booking_form, store):
    result = _create(workflow, booking_form, participants=25)

    assert store.get("bookings", result["bookingId"])["participants"] == 10


def test_sequential_bookings_get_increasing_numbers(workflow, booking_form):
    first = _create(workflow, booking_form)
    second = _create(workflow, booking_form, email="other@example.com")

    assert int(second["bookingNumber"][-4:]) == int(first["bookingNumber"][-4:]) + 1


def test_returning_client_is_not_new(workflow, booking_form, store):
    first = _create(workflow, booking_form)
    second = _create(workflow, booking_form)

    assert second["isNewClient"] is False
    assert second["clientId"] == first["clientId"]
    assert store.get("clients", first["clientId"])["totalBookings"] == 2


def test_missing_email_fails_without_writing(workflow, booking_form, store):
    form = dict(booking_form)
    del form["email"]

    result = workflow.create_full_booking(form)

    assert result["success"] is False
    assert result["errorType"] == "validation"
    assert store.query("bookings") == []


def test_failure_after_booking_insert_reports_completed_steps(workflow, booking_form, store, monkeypatch):
    def broken_quote(*args, **kwargs):
        raise StoreFailure("Failed to write to quotes")

    monkeypatch.setattr(workflow.repo, "create_quote", broken_quote)

    result = workflow.create_full_booking(booking_form)

    assert result["success"] is False
    assert result["errorType"] == "partial_workflow"
    assert result["completedSteps"] == ["booking", "client_profile"]
    # Earlier writes stay in place
    assert store.get("bookings", result["bookingId"]) is not None
    assert len(store.query("clients")) == 1
    assert store.query("quotes") == []


def test_notifications_go_to_client_and_practitioner(workflow, booking_form, sink):
    result = _create(workflow, booking_form)

    recipients = [message.to for message in sink.messages]
    assert recipients == ["camille.martin@example.com", "sabrine.sjk@gmail.com"]
    assert all(message.kind == "booking_confirmation" for message in sink.messages)
    assert sink.messages[0].payload["bookingNumber"] == result["bookingNumber"]


def test_notification_failure_does_not_fail_booking(store, clock, booking_form):
    class BrokenSink(NotificationSink):
        def send(self, message):
            raise ConnectionError("mail server unreachable")

    result = WorkflowService(store, BrokenSink(), clock).create_full_booking(booking_form)

    assert result["success"] is True


def test_history_failure_does_not_fail_booking(workflow, booking_form, monkeypatch):
    def broken_history(*args, **kwargs):
        raise StoreFailure("Failed to write to history")

    monkeypatch.setattr(workflow.repo, "add_history", broken_history)

    assert workflow.create_full_booking(booking_form)["success"] is True


# ============================================================================
# confirmBooking / generateInvoiceDocument
# ============================================================================


def test_confirm_booking_issues_invoice(workflow, booking_form, store):
    created, invoice = _confirmed_invoice(workflow, booking_form)

    booking = store.get("bookings", created["bookingId"])
    assert booking["status"] == "confirmed"
    assert booking["invoiceNumber"] == "FACT" + created["bookingNumber"][3:]
    assert booking["workflow"]["confirmed"] is not None
    assert booking["workflow"]["invoiceSent"] is not None

    assert invoice["number"] == booking["invoiceNumber"]
    assert invoice["quoteNumber"] == created["quoteNumber"]
    assert invoice["payments"] == []
    assert invoice["paymentStatus"] == "unpaid"
    assert invoice["status"] == "pending"
    assert invoice["pricing"]["paid"] == 0
    assert invoice["pricing"]["remaining"] == 60
    due = datetime.fromisoformat(invoice["dueDate"])
    issued = datetime.fromisoformat(invoice["date"])
    assert (due - issued).days == 15
    assert store.get("invoices", invoice["id"])["number"] == invoice["number"]


def test_confirm_unknown_booking_is_not_found(workflow):
    result = workflow.confirm_booking("does-not-exist")

    assert result["success"] is False
    assert result["errorType"] == "not_found"


def test_confirming_twice_keeps_a_single_invoice(workflow, booking_form, store):
    created, _invoice = _confirmed_invoice(workflow, booking_form)

    again = workflow.confirm_booking(created["bookingId"])

    assert again["success"] is False
    assert again["errorType"] == "validation"
    assert len(store.query("invoices")) == 1


def test_generate_invoice_document_directly(workflow, booking_form, store):
    created = _create(workflow, booking_form)

    result = workflow.generate_invoice_document(created["bookingId"])

    assert result["success"] is True
    booking = store.get("bookings", created["bookingId"])
    assert booking["invoiceNumber"] == result["invoice"]["number"]
    # Invoicing alone does not confirm the booking
    assert booking["status"] == "pending"


def test_confirm_after_invoicing_reuses_the_invoice(workflow, booking_form, store):
    created = _create(workflow, booking_form)
    issued = workflow.generate_invoice_document(created["bookingId"])["invoice"]

    result = workflow.confirm_booking(created["bookingId"])

    assert result["success"] is True
    assert result["invoice"]["id"] == issued["id"]
    booking = store.get("bookings", created["bookingId"])
    assert booking["status"] == "confirmed"
    assert booking["workflow"]["confirmed"] is not None
    assert booking["invoiceNumber"] == issued["number"]
    assert len(store.query("invoices")) == 1


def test_confirm_relinks_invoice_missing_from_booking(workflow, booking_form, store):
    created = _create(workflow, booking_form)
    issued = workflow.generate_invoice_document(created["bookingId"])["invoice"]
    # Invoice written but the booking never got its number
    store.update(
        "bookings",
        created["bookingId"],
        {"invoiceNumber": None, "workflow.invoiceSent": None},
    )

    result = workflow.confirm_booking(created["bookingId"])

    assert result["success"] is True
    booking = store.get("bookings", created["bookingId"])
    assert booking["status"] == "confirmed"
    assert booking["invoiceNumber"] == issued["number"]
    assert booking["workflow"]["invoiceSent"] == issued["date"]
    assert len(store.query("invoices")) == 1


def test_generate_invoice_for_unknown_booking(workflow):
    result = workflow.generate_invoice_document("missing")

    assert result["errorType"] == "not_found"


# ============================================================================
# recordPayment
# ============================================================================


def test_payments_settle_invoice(workflow, booking_form, store):
    created, invoice = _confirmed_invoice(workflow, booking_form, unitPrice=200)

    partial = workflow.record_payment(invoice["id"], {"amount": 80, "method": "card"})
    assert partial["success"] is True
    assert partial["totalPaid"] == 80
    assert partial["remaining"] == 120
    assert partial["paymentStatus"] == "partial"
    booking = store.get("bookings", created["bookingId"])
    assert booking["paymentStatus"] == "partial"
    assert booking["workflow"]["paid"] is None

    settled = workflow.record_payment(
        invoice["id"], {"amount": 120, "method": "transfer", "reference": "VIR-001"}
    )
    assert settled["totalPaid"] == 200
    assert settled["remaining"] == 0
    assert settled["paymentStatus"] == "paid"

    stored = store.get("invoices", invoice["id"])
    assert [p["amount"] for p in stored["payments"]] == [80, 120]
    assert stored["payments"][0] == partial["payment"]
    assert stored["pricing"]["paid"] == 200
    assert stored["pricing"]["remaining"] == 0
    assert stored["paymentStatus"] == "paid"

    booking = store.get("bookings", created["bookingId"])
    assert booking["paymentStatus"] == "paid"
    assert booking["workflow"]["paid"] is not None


def test_paying_the_displayed_total_settles_the_invoice(workflow, booking_form, store):
    # 9 x 9 with the promo code is 58.32 plus float noise
    _created, invoice = _confirmed_invoice(
        workflow, booking_form, unitPrice=9, participants=9, promoCode="DECOUVERTE20"
    )
    amount_due = calculate_price(9, 9, "DECOUVERTE20").summary()["total"]

    result = workflow.record_payment(invoice["id"], {"amount": amount_due, "method": "card"})

    assert amount_due == 58.32
    assert result["paymentStatus"] == "paid"
    assert result["remaining"] == 0
    assert store.get("invoices", invoice["id"])["pricing"]["remaining"] == 0


def test_payment_defaults(workflow, booking_form):
    _created, invoice = _confirmed_invoice(workflow, booking_form)

    result = workflow.record_payment(invoice["id"], {"amount": 60, "method": "cash"})

    payment = result["payment"]
    assert payment["id"].startswith("PAY")
    assert payment["reference"] == ""
    assert payment["notes"] == ""
    assert payment["date"]


def test_payment_on_unknown_invoice(workflow):
    result = workflow.record_payment("missing", {"amount": 10, "method": "cash"})

    assert result["errorType"] == "not_found"


@pytest.mark.parametrize(
    "payment",
    [
        {"amount": 10, "method": "bitcoin"},
        {"amount": 0, "method": "cash"},
        {"amount": -20, "method": "card"},
    ],
)
def test_invalid_payments_are_rejected(workflow, booking_form, payment, store):
    _created, invoice = _confirmed_invoice(workflow, booking_form)

    result = workflow.record_payment(invoice["id"], payment)

    assert result["errorType"] == "validation"
    assert store.get("invoices", invoice["id"])["payments"] == []


@pytest.mark.parametrize(
    "paid,remaining,expected",
    [(0, 60, "unpaid"), (20, 40, "partial"), (60, 0, "paid"), (70, -10, "paid")],
)
def test_payment_status_for(paid, remaining, expected):
    assert payment_status_for(paid, remaining) == expected


# ============================================================================
# History
# ============================================================================


def test_client_history_is_newest_first(workflow, booking_form):
    created, invoice = _confirmed_invoice(workflow, booking_form)
    # Another client's events are interleaved
    _create(workflow, booking_form, email="someone.else@example.com")
    workflow.record_payment(invoice["id"], {"amount": 60, "method": "card"})

    result = workflow.get_client_history("camille.martin@example.com")

    assert result["success"] is True
    history = result["history"]
    timestamps = [entry["timestamp"] for entry in history]
    assert timestamps == sorted(timestamps, reverse=True)
    assert {entry["clientEmail"] for entry in history} == {"camille.martin@example.com"}
    types = [entry["type"] for entry in history]
    assert types[0] == "payment_recorded"
    assert types[-1] == "booking_created"
    assert set(types) == {
        "booking_created",
        "booking_confirmed",
        "invoice_generated",
        "payment_recorded",
    }
    assert history[-1]["bookingId"] == created["bookingId"]


def test_client_history_requires_email(workflow):
    assert workflow.get_client_history("")["errorType"] == "validation"
