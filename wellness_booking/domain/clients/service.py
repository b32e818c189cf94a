"""Client service - Business logic for client profiles"""

import logging
import math
from typing import Optional, Union

from pydantic import ValidationError

from ...document_store import DocumentStore
from ...shared.dates import Clock, to_iso, utc_now
from ...shared.exceptions import NotFoundError, ValidationFailure, failure
from ...shared.validators import validate_email
from .repository import ClientRepository
from .schemas import ClientProfile, ClientProfileInput

logger = logging.getLogger(__name__)

NEW_CLIENT_TAG = "nouveau-client"


def loyalty_points_for(amount: float) -> int:
    """One loyalty point per full 10 currency units spent"""
    return math.floor((amount or 0) / 10)


class ClientService:
    """Service layer for client profile business logic"""

    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock
        self.repo = ClientRepository()

    def create_or_update_client_profile(
        self, client_data: Union[ClientProfileInput, dict]
    ) -> dict:
        """
        Create the profile for a first-time email, or add one booking to an existing one.

        Every call counts as a booking: calling twice for the same logical booking
        counts it twice. Returns {success, id, isNew} or a failure envelope.
        """
        try:
            data = self._parse_input(client_data)
            now = to_iso(self.clock())
            existing = self.repo.get_client_by_email(self.store, data.email)

            if existing is None:
                profile = ClientProfile(
                    email=data.email,
                    firstname=data.firstname,
                    lastname=data.lastname,
                    name=data.name,
                    phone=data.phone,
                    totalBookings=1,
                    totalSpent=data.amount,
                    loyaltyPoints=loyalty_points_for(data.amount),
                    firstBookingDate=now,
                    lastBookingDate=now,
                    status="active",
                    tags=[NEW_CLIENT_TAG],
                    notes=[],
                    createdAt=now,
                    updatedAt=now,
                )
                client_id = self.repo.create_client(self.store, profile)
                logger.info(f"✅ New client profile created: {client_id}")
                return {"success": True, "id": client_id, "isNew": True}

            self.repo.update_client(
                self.store,
                existing["id"],
                {
                    "totalBookings": (existing.get("totalBookings") or 0) + 1,
                    "totalSpent": (existing.get("totalSpent") or 0) + data.amount,
                    "lastBookingDate": now,
                    "loyaltyPoints": (existing.get("loyaltyPoints") or 0)
                    + loyalty_points_for(data.amount),
                    "updatedAt": now,
                },
            )
            logger.info(f"✅ Client profile updated: {existing['id']}")
            return {"success": True, "id": existing["id"], "isNew": False}

        except Exception as e:
            logger.error(f"❌ Client profile upsert failed: {e}")
            return failure(e)

    def get_client_profile(self, email: str) -> dict:
        """Get the profile stored for an email"""
        try:
            normalized = self._normalize_email(email)
            profile = self.repo.get_client_by_email(self.store, normalized)
            if profile is None:
                raise NotFoundError(f"No client profile for {normalized}")
            return {"success": True, "client": profile}
        except Exception as e:
            logger.error(f"❌ Client profile lookup failed: {e}")
            return failure(e)

    @staticmethod
    def _parse_input(client_data: Union[ClientProfileInput, dict]) -> ClientProfileInput:
        if isinstance(client_data, ClientProfileInput):
            return client_data
        try:
            return ClientProfileInput.model_validate(client_data or {})
        except ValidationError as e:
            raise ValidationFailure(f"Invalid client data: {e.errors()[0]['msg']}") from e

    @staticmethod
    def _normalize_email(email: Optional[str]) -> str:
        if not email or not email.strip():
            raise ValidationFailure("Email is required")
        try:
            return validate_email(email)
        except ValueError as e:
            raise ValidationFailure(str(e)) from e
