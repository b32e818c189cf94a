"""
Storage models for the booking document store
"""

import uuid

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from .database import Base


def generate_document_id():
    """Generate a unique id for a new document"""
    return uuid.uuid4().hex


class Document(Base):
    """One JSON document inside a named collection (bookings, clients, quotes, invoices, history)"""

    __tablename__ = "documents"

    id = Column(String(32), primary_key=True, default=generate_document_id)
    collection = Column(String(50), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)

    # Audit
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class NumberSequence(Base):
    """Named monotonically increasing counter (e.g. bookings:2610)"""

    __tablename__ = "number_sequences"

    key = Column(String(50), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
