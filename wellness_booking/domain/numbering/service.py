"""
Document numbering

Booking numbers look like RES26100007: prefix, 2-digit year, 2-digit month and a
4-digit sequence within the month. Quote and invoice numbers reuse the booking
digits with the DEV and FACT prefixes.

In "count" mode the sequence is the number of bookings created this month plus
one. Two submissions racing inside the same month can read the same count and
receive the same number. "sequence" mode reserves the value with an atomic
per-month counter instead.
"""

import logging
from datetime import datetime

from ...config import BOOKING_NUMBER_MODE, BUSINESS_TIMEZONE
from ...document_store import DocumentStore
from ...shared.dates import local_year_month, month_bounds

logger = logging.getLogger(__name__)

BOOKING_PREFIX = "RES"
QUOTE_PREFIX = "DEV"
INVOICE_PREFIX = "FACT"


def generate_booking_number(
    store: DocumentStore,
    now: datetime,
    mode: str = BOOKING_NUMBER_MODE,
    tz_name: str = BUSINESS_TIMEZONE,
) -> str:
    year, month = local_year_month(now, tz_name)

    if mode == "sequence":
        sequence = store.next_sequence(f"bookings:{year}{month}")
    else:
        start, end = month_bounds(now, tz_name)
        sequence = (
            store.count("bookings", [("createdAt", ">=", start), ("createdAt", "<=", end)]) + 1
        )

    number = f"{BOOKING_PREFIX}{year}{month}{sequence:04d}"
    logger.debug(f"Generated booking number {number} ({mode} mode)")
    return number


def _swap_prefix(booking_number: str, prefix: str) -> str:
    if not booking_number.startswith(BOOKING_PREFIX):
        raise ValueError(f"Not a booking number: {booking_number}")
    return prefix + booking_number[len(BOOKING_PREFIX):]


def quote_number_for(booking_number: str) -> str:
    return _swap_prefix(booking_number, QUOTE_PREFIX)


def invoice_number_for(booking_number: str) -> str:
    return _swap_prefix(booking_number, INVOICE_PREFIX)
