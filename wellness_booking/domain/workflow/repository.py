"""Workflow repository - Document store operations for quotes, invoices and history"""

from typing import Optional

from ...document_store import DocumentStore, validated
from .schemas import HistoryEntry, Invoice, Quote

QUOTES = "quotes"
INVOICES = "invoices"
HISTORY = "history"


class WorkflowRepository:
    """Repository for workflow documents"""

    # Quotes
    @staticmethod
    def create_quote(store: DocumentStore, quote: Quote) -> str:
        return store.insert(QUOTES, validated(Quote, quote))

    # Invoices
    @staticmethod
    def create_invoice(store: DocumentStore, invoice: Invoice) -> str:
        return store.insert(INVOICES, validated(Invoice, invoice))

    @staticmethod
    def get_invoice(store: DocumentStore, invoice_id: str) -> Optional[dict]:
        return store.get(INVOICES, invoice_id)

    @staticmethod
    def get_invoice_by_number(store: DocumentStore, number: str) -> Optional[dict]:
        matches = store.query(INVOICES, [("number", "==", number)])
        return matches[0] if matches else None

    @staticmethod
    def update_invoice(store: DocumentStore, invoice_id: str, fields: dict) -> dict:
        return store.update(INVOICES, invoice_id, fields)

    # History
    @staticmethod
    def add_history(store: DocumentStore, entry: HistoryEntry) -> str:
        return store.insert(HISTORY, validated(HistoryEntry, entry))

    @staticmethod
    def get_history_by_email(store: DocumentStore, email: str) -> list[dict]:
        """History entries for a client, newest first"""
        return store.query(
            HISTORY,
            [("clientEmail", "==", email)],
            order_by="timestamp",
            direction="desc",
        )
