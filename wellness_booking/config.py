import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./wellness_booking.db")

# Month boundaries for booking numbers are computed in the practice's local time
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Europe/Paris")

# "count" reproduces the read-count-then-format numbering, "sequence" uses an atomic counter row
BOOKING_NUMBER_MODE = os.getenv("BOOKING_NUMBER_MODE", "count").lower()

# Notifications
PRACTITIONER_EMAIL = os.getenv("PRACTITIONER_EMAIL", "sabrine.sjk@gmail.com")
SMS_NOTIFICATIONS_ENABLED = os.getenv("SMS_NOTIFICATIONS_ENABLED", "false").lower() == "true"

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Sabrine SJK <noreply@sabrinesjk.fr>")

# Twilio SMS Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_FROM_NUMBER = os.getenv("TWILIO_FROM_NUMBER")

# Pricing rules
PROMO_CODE = os.getenv("PROMO_CODE", "DECOUVERTE20").strip().upper()
PROMO_RATE = float(os.getenv("PROMO_RATE", "0.20"))
GROUP_DISCOUNT_THRESHOLD = int(os.getenv("GROUP_DISCOUNT_THRESHOLD", "3"))  # discount applies above this
GROUP_DISCOUNT_RATE = float(os.getenv("GROUP_DISCOUNT_RATE", "0.10"))
MIN_PARTICIPANTS = int(os.getenv("MIN_PARTICIPANTS", "1"))
MAX_PARTICIPANTS = int(os.getenv("MAX_PARTICIPANTS", "10"))

# Document validity windows (days)
QUOTE_VALIDITY_DAYS = int(os.getenv("QUOTE_VALIDITY_DAYS", "30"))
INVOICE_DUE_DAYS = int(os.getenv("INVOICE_DUE_DAYS", "15"))

# Printed on every quote; therapeutic services carry no VAT
QUOTE_TERMS = [
    f"Devis valable {QUOTE_VALIDITY_DAYS} jours",
    "Acompte de 30% à la réservation",
    "Solde à régler le jour de la séance",
    "Annulation gratuite jusqu'à 48h avant la séance",
]

# Frontend origins allowed to call the API
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5500",
).split(",")
