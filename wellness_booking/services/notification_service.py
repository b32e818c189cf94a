"""
Booking Notification Service
Hands booking confirmations to the email and SMS channels.
Delivery is best-effort: no retry, no queue, failures are logged and reported in the result.
"""

import html
import logging
from typing import Literal, Optional

import httpx
import resend
from pydantic import BaseModel, Field

from ..config import (
    EMAIL_FROM_ADDRESS,
    PRACTITIONER_EMAIL,
    RESEND_API_KEY,
    SMS_NOTIFICATIONS_ENABLED,
    TWILIO_ACCOUNT_SID,
    TWILIO_AUTH_TOKEN,
    TWILIO_FROM_NUMBER,
)

logger = logging.getLogger(__name__)


class NotificationMessage(BaseModel):
    """Structured message accepted by a notification sink"""

    to: str
    kind: str = "booking_confirmation"
    channel: Literal["email", "sms"] = "email"
    payload: dict = Field(default_factory=dict)


class NotificationSink:
    """Accepts or rejects a message; delivery confirmation is not part of the contract"""

    def send(self, message: NotificationMessage) -> bool:
        raise NotImplementedError


class LoggingNotificationSink(NotificationSink):
    """Default sink when no provider is configured"""

    def send(self, message: NotificationMessage) -> bool:
        icon = "📱" if message.channel == "sms" else "📧"
        logger.info(f"{icon} {message.kind} notification for {message.to}")
        return True


def render_booking_email(payload: dict) -> tuple[str, str]:
    """Subject and HTML body for a booking confirmation"""
    subject = f"Réservation - {payload.get('serviceName')}"
    html = (
        "<h2>Nouvelle réservation</h2>"
        f"<p>Service : {payload.get('serviceName')}<br>"
        f"Nombre de personnes : {payload.get('participants')}<br>"
        f"Date : {payload.get('date')} à {payload.get('time')}</p>"
        f"<p>Client : {payload.get('clientName')}<br>"
        f"Email : {payload.get('clientEmail')}<br>"
        f"Téléphone : {payload.get('clientPhone') or '-'}</p>"
        f"<p>Réservation : {payload.get('bookingNumber')}<br>"
        f"Devis : {payload.get('quoteNumber')} (valable jusqu'au {payload.get('validUntil')})</p>"
        f"<p>Prix unitaire : {payload.get('unitPrice')}€<br>"
        f"Remise groupe : -{payload.get('discount', 0):.2f}€<br>"
        f"Remise promo : -{payload.get('promoDiscount', 0):.2f}€<br>"
        f"<strong>TOTAL : {payload.get('total', 0):.2f}€</strong></p>"
    )
    if payload.get("message"):
        html += f"<p>Message : {payload['message']}</p>"
    return subject, html


class ResendEmailSink(NotificationSink):
    """Send email messages through Resend"""

    def __init__(self, api_key: str, from_address: str = EMAIL_FROM_ADDRESS):
        resend.api_key = api_key
        self.from_address = from_address

    def send(self, message: NotificationMessage) -> bool:
        subject, html = render_booking_email(message.payload)
        logger.info(f"📧 Sending {message.kind} email via Resend to: {message.to}")
        response = resend.Emails.send(
            {
                "from": self.from_address,
                "to": [message.to],
                "subject": subject,
                "html": html,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return True


class TwilioSmsSink(NotificationSink):
    """Send SMS messages through the Twilio REST API"""

    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number

    def send(self, message: NotificationMessage) -> bool:
        if not message.to.startswith("+"):
            logger.warning(f"Phone number not in E.164 format: {message.to}")
            return False

        payload = message.payload
        # Form text is stored HTML-escaped; SMS is plain text
        service_name = html.unescape(payload.get("serviceName") or "")
        body = (
            f"Votre demande de réservation {payload.get('bookingNumber')} "
            f"({service_name}, {payload.get('date')} à {payload.get('time')}) "
            "a bien été reçue."
        )
        logger.info(f"🚀 Sending SMS to Twilio API for {message.to}")
        response = httpx.post(
            f"https://api.twilio.com/2010-04-01/Accounts/{self.account_sid}/Messages.json",
            auth=(self.account_sid, self.auth_token),
            data={"To": message.to, "From": self.from_number, "Body": body},
            timeout=10.0,
        )
        logger.info(f"📡 Twilio API response status: {response.status_code}")
        if response.status_code in [200, 201]:
            return True

        error_data = response.json()
        logger.warning(f"⚠️ SMS not sent to {message.to}: {error_data.get('message', 'Unknown error')}")
        return False


class CompositeNotificationSink(NotificationSink):
    """Route each message to the sink registered for its channel"""

    def __init__(self, email: NotificationSink, sms: Optional[NotificationSink] = None):
        self.sinks = {"email": email, "sms": sms}

    def send(self, message: NotificationMessage) -> bool:
        sink = self.sinks.get(message.channel)
        if sink is None:
            logger.debug(f"No sink for {message.channel} channel, dropping {message.kind}")
            return False
        return sink.send(message)


def build_notification_sink() -> NotificationSink:
    """Sink wired from configuration; falls back to logging when a provider is missing"""
    email_sink: NotificationSink = LoggingNotificationSink()
    if RESEND_API_KEY:
        email_sink = ResendEmailSink(RESEND_API_KEY)
    else:
        logger.warning("⚠️ RESEND_API_KEY missing - booking emails will only be logged")

    sms_sink: NotificationSink = LoggingNotificationSink()
    if TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER:
        sms_sink = TwilioSmsSink(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_FROM_NUMBER)

    return CompositeNotificationSink(email=email_sink, sms=sms_sink)


def build_booking_payload(booking: dict, quote: dict) -> dict:
    contact = booking.get("contact", {})
    pricing = booking.get("pricing", {})
    return {
        "bookingNumber": booking.get("bookingNumber"),
        "quoteNumber": quote.get("number"),
        "validUntil": quote.get("validUntil"),
        "serviceName": booking.get("serviceName"),
        "date": booking.get("date"),
        "time": booking.get("time"),
        "participants": booking.get("participants"),
        "clientName": contact.get("name"),
        "clientEmail": contact.get("email"),
        "clientPhone": contact.get("phone"),
        "unitPrice": pricing.get("unitPrice"),
        "discount": pricing.get("discount", 0),
        "promoDiscount": pricing.get("promoDiscount", 0),
        "total": pricing.get("total", 0),
        "message": booking.get("message"),
    }


def _deliver(sink: NotificationSink, message: NotificationMessage) -> tuple[bool, Optional[str]]:
    try:
        accepted = sink.send(message)
        if not accepted:
            return False, "Rejected by sink"
        return True, None
    except Exception as e:
        logger.error(f"❌ Failed to send {message.kind} {message.channel} to {message.to}: {e}")
        return False, str(e)


def send_booking_notifications(
    sink: NotificationSink,
    booking: dict,
    quote: dict,
    practitioner_email: str = PRACTITIONER_EMAIL,
    sms_enabled: bool = SMS_NOTIFICATIONS_ENABLED,
) -> dict:
    """
    Notify the client and the practitioner about a new booking request.

    Args:
        sink: Where messages are handed off
        booking: Stored booking document
        quote: Stored quote document
        practitioner_email: Practice inbox receiving a copy
        sms_enabled: Also text the client when a phone number is present

    Returns:
        Dict with client_email_sent, practitioner_email_sent, sms_sent and errors
    """
    payload = build_booking_payload(booking, quote)
    result = {
        "client_email_sent": False,
        "practitioner_email_sent": False,
        "sms_sent": False,
        "errors": [],
    }

    client_email = payload.get("clientEmail")
    if client_email:
        logger.info(f"📧 Client notification: {client_email}")
        sent, error = _deliver(sink, NotificationMessage(to=client_email, payload=payload))
        result["client_email_sent"] = sent
        if error:
            result["errors"].append(f"client_email: {error}")

    if practitioner_email:
        logger.info(f"📧 Practitioner notification: {practitioner_email}")
        sent, error = _deliver(sink, NotificationMessage(to=practitioner_email, payload=payload))
        result["practitioner_email_sent"] = sent
        if error:
            result["errors"].append(f"practitioner_email: {error}")

    client_phone = payload.get("clientPhone")
    if sms_enabled and client_phone:
        logger.info(f"📱 SMS notification: {client_phone}")
        sent, error = _deliver(
            sink, NotificationMessage(to=client_phone, channel="sms", payload=payload)
        )
        result["sms_sent"] = sent
        if error:
            result["errors"].append(f"sms: {error}")
    else:
        logger.debug(f"⚠️ No SMS for booking {payload.get('bookingNumber')}")

    return result
