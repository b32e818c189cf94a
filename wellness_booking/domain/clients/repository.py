"""Client repository - Document store operations for client profiles"""

from typing import Optional

from ...document_store import DocumentStore, validated
from .schemas import ClientProfile

COLLECTION = "clients"


class ClientRepository:
    """Repository for client profile documents"""

    @staticmethod
    def get_client_by_email(store: DocumentStore, email: str) -> Optional[dict]:
        """Get the profile for an exact email match"""
        matches = store.query(COLLECTION, [("email", "==", email)])
        return matches[0] if matches else None

    @staticmethod
    def create_client(store: DocumentStore, profile: ClientProfile) -> str:
        return store.insert(COLLECTION, validated(ClientProfile, profile))

    @staticmethod
    def update_client(store: DocumentStore, client_id: str, fields: dict) -> dict:
        return store.update(COLLECTION, client_id, fields)
